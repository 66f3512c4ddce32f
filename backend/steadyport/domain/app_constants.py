"""
Single Source of Truth for application metadata and the canonical runtime values.
All app-wide constants MUST be defined here.
ConfigStore reads the network and data directory values from this module;
nothing here is overridden from the environment.
"""

APP_NAME = "SteadyPort"
APP_VERSION = "0.1.0"

# Network (fixed per project, no fallback port)
BACKEND_HOST = "127.0.0.1"
BACKEND_PORT = 8000
FRONTEND_DEV_PORT = 1420
ALLOWED_HOSTS = ("127.0.0.1", "localhost", "::1")
LISTEN_BACKLOG = 2048

# Storage (project-relative, resolved to an absolute path at load time)
DATA_DIR = "backend/data"
JOURNAL_FILE = ("runtime", "launches.json")
JOURNAL_MAX_ENTRIES = 50

# OS integration
ENV_PREFIX = "STEADYPORT_"
SESSION_TOKEN_SECRET = "session_token"
SESSION_TOKEN_HEADER = "X-Session-Token"

# Seconds stop() waits for a serving uvicorn to hand back the socket
SHUTDOWN_GRACE_S = 5.0

# Process exit codes
EXIT_OK = 0
EXIT_STARTUP_FAULT = 1
EXIT_CONFIG_ERROR = 2
EXIT_BIND_CONFLICT = 3
