"""Static configuration and environment-driven settings."""

import os

# ─── API ─────────────────────────────────────────────────────────────────────

BASE_URL = "https://api.20i.com"
REQUEST_TIMEOUT = 30.0

# ─── Credentials ─────────────────────────────────────────────────────────────

API_KEY_ENV = "TWENTYI_API_KEY"
OAUTH_KEY_ENV = "TWENTYI_OAUTH_KEY"
COMBINED_KEY_ENV = "TWENTYI_COMBINED_KEY"

# Plain-text fallback, resolved against the working directory.
CREDENTIALS_FILE = "ignor.txt"

# ─── Server ──────────────────────────────────────────────────────────────────

SERVER_NAME = "twentyi_mcp"
LOG_LEVEL = os.environ.get("TWENTYI_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("TWENTYI_LOG_FORMAT", "console").lower()
