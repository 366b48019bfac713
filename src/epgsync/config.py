"""
Configuration for the listings sync engine.

Values that operators may want to tune come from the environment; the env file is
loaded with python-dotenv.
"""

import os
from datetime import timedelta, tzinfo
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

SCHEDULES_DIRECT_API_URL = "https://json.schedulesdirect.org/20141201"

# Tokens are issued for 24h; refresh well before the server rejects them
TOKEN_TTL = timedelta(hours=20)
AUTH_COOLDOWN = timedelta(minutes=1)

REQUEST_TIMEOUT = int(os.getenv("SCHEDULES_DIRECT_TIMEOUT", "60"))
RATE_LIMIT_MAX = int(os.getenv("SCHEDULES_DIRECT_RATE_LIMIT", "5"))
RATE_LIMIT_PERIOD = 1.0


def load_env():
    """Load environment variables from env file.

    Defaults to config/local.env for local development.
    Set ENV_FILE environment variable to override.
    """
    env = os.getenv("ENV_FILE", "config/local.env")
    load_dotenv(env)


def get_local_timezone() -> tzinfo | None:
    """Timezone used when widening schedule date ranges.

    Returns None when EPGSYNC_LOCAL_TIMEZONE is unset, meaning the system zone.
    """
    name = os.getenv("EPGSYNC_LOCAL_TIMEZONE")
    if not name:
        return None
    return ZoneInfo(name)
