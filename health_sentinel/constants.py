"""Shared constants for Health Sentinel."""

SERVER_NAME = "Health Sentinel"
SERVER_VERSION = "0.1.0"

# Status API defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9100

# Logging defaults
LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "INFO"

# Probe transport defaults
DEFAULT_PROBE_SCHEME = "https"
DEFAULT_PROBE_PATH = "readyz"
DEFAULT_EXPECTED_STATUS = 200

# Target file watcher
DEFAULT_WATCH_INTERVAL = 2.0  # seconds between mtime polls
DEFAULT_WATCH_DEBOUNCE = 0.5  # seconds to let editors finish writing

# Config discovery
CONFIG_ENV_VAR = "HEALTH_SENTINEL_CONFIG"
