from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config.json")
DEFAULT_HOST_KEY_PATH = Path(".ssh") / "accessh_ed25519"
LOCAL_LOG_PATH = (Path("~/.accessh") / "accessh.log").expanduser()
