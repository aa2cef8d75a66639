"""Make the project importable and pin the settings the suite depends on."""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "SPOTIFY_CLIENT_ID": "test-client-id",
    "SPOTIFY_CLIENT_SECRET": "test-client-secret",
    "SPOTIFY_REDIRECT_URI": "https://bridge.example.com/callback",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)

# Asserted verbatim by the route tests.
os.environ["BASE_URL"] = "https://bridge.example.com"
for key in ("BOT_SHARED_SECRET", "OAUTH_STATE_COOKIE", "OAUTH_STATE_TTL", "APP_ENV"):
    os.environ.pop(key, None)
