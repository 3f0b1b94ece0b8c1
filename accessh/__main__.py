"""Allow `python -m accessh`."""

from accessh.main import main

main()
