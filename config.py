"""
Central configuration for vcalc.
Avoids hardcoded literals spread across files.
"""

# Networking
HOST = "0.0.0.0"
CLIENT_HOST = "localhost"
PORT = 33333
BACKLOG = 10
ACCEPT_POLL_INTERVAL = 0.5  # seconds between shutdown checks in the accept loop

# Files
CONFIG_FILE = "./vcalc.conf"
LOG_FILE = "./log/vcalc.log"

# Protocol limits
MAX_FIELD_BYTES = 1024
MAX_VECTOR_LEN = 1 << 20

# Signed 16-bit domain
INT16_MIN = -32768
INT16_MAX = 32767

# Authentication status bytes
AUTH_OK = b"\x01"
AUTH_FAIL = b"\x00"
