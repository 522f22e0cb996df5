"""
SSHReady Configuration Constants.

Centralized constants for timeouts, limits, and other magic values.
"""

# Probe timeouts (milliseconds)
NETWORK_CHECK_TIMEOUT_MS = 5_000
AUTH_METHOD_PROBE_TIMEOUT_MS = 10_000
AUTH_TIMEOUT_MS = 15_000

# Retry loop
DEFAULT_MAX_ATTEMPTS = 3
PASSWORD_ATTEMPT_LIMIT = 3
NON_INTERACTIVE_BACKOFF_SECONDS = 2.0

# Credential cache
DEFAULT_CACHE_TTL_SECONDS = 15 * 60

# Key discovery
DEFAULT_KEY_NAMES = ("id_rsa", "id_ed25519", "id_ecdsa", "id_dsa")
MAX_KEYS_TO_TRY = 5
MAX_SCANNED_KEY_FILES = 10
KEY_HEADER_PEEK_BYTES = 64
DEFAULT_KEY_PATH_HINT = "~/.ssh/id_rsa"

# SSH client
DEFAULT_SSH_PORT = 22
DEFAULT_SSH_BINARY = "ssh"
DEFAULT_SSHPASS_BINARY = "sshpass"

# Exit codes (CLI only)
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 2

# Loopback names that never need a DNS lookup
LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})
