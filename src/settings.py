"""Process-level settings for the Teams notifier.

Per-invocation options (webhook, templates, toggles) arrive from the host in
the raw config map. Only settings that belong to the process itself live
here, read once from the environment (and a local .env file, if any).
"""

import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Overall bound on one webhook delivery, redirects included.
REQUEST_TIMEOUT_SECONDS = float(os.getenv("TEAMS_NOTIFY_TIMEOUT_SECONDS", "10") or "10")

# Logging configuration. The webhook URL carries a credential in its path, so
# redaction of known secrets is on unless explicitly disabled.
LOGGING = {
    "enabled": _env_flag("TEAMS_NOTIFY_LOGGING", True),
    "level": os.getenv("TEAMS_NOTIFY_LOG_LEVEL", "INFO"),
    "console": True,
    "file": {
        "enabled": bool(os.getenv("TEAMS_NOTIFY_LOG_FILE")),
        "path": os.getenv("TEAMS_NOTIFY_LOG_FILE", "logs/teams-notify.log"),
        "max_bytes": 5 * 1024 * 1024,
        "backup_count": 5,
    },
    "redact": {
        "enabled": _env_flag("TEAMS_NOTIFY_REDACT", True),
        "patterns": ["TEAMS_WEBHOOK_URL"],
    },
}
