"""
Board Relay - Shared Constants
Constants used by the relay server and its clients.
"""

# Communication
DEFAULT_RELAY_HOST = "127.0.0.1"
DEFAULT_RELAY_PORT = 3074
DEFAULT_ALLOWED_ORIGIN = "http://localhost:3232"

# Boards
DEFAULT_BOARD_TIMEOUT = 3.0  # seconds the driver waits for a board to respond

# Status codes
STATUS_OK = 200
STATUS_BAD_REQUEST = 400
STATUS_ERROR = 500
