"""Constants used across Accessh.

This module defines shared constants to ensure consistency.
"""

# Reveal timing
REVEAL_DELAY_MS = 8500  # How long a lookup result stays on screen before the prompt resets

# Prompt text
DEFAULT_PLACEHOLDER = "Enter where you're trying to go (e.g., exit.zachl.tech, zachl.tech)"
HELP_COMMAND = "help"
PROMPT_PREFIX = "> "

# Layout
VIEWPORT_RESERVE_ROWS = 9  # Rows kept for the help header/footer
HORIZONTAL_INSET = 2
WRAP_MARGIN = 4  # Total columns lost to the inset on both sides
MIN_TERMINAL_WIDTH = 20
MIN_TERMINAL_HEIGHT = 10

# Messages
QUIT_HINT = "(Ctrl+C to quit)"
HELP_HEADER = "Public Services (Esc to go back):"
HELP_FOOTER = "↑/↓: Navigate • Esc: Go back"
NO_PTY_MESSAGE = "Requires an active PTY\n"

# SSH server
DEFAULT_SSH_HOST = "0.0.0.0"
DEFAULT_SSH_PORT = 23234
SHUTDOWN_GRACE_S = 30.0
STREAM_READ_SIZE = 1024

# Logging
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
