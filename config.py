import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _is_truthy(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


# -----------------------
# Config
# -----------------------
API_KEY_ENV = "DIVINATION_BRIDGE_API_KEY"
DEFAULT_TZ = os.getenv("DEFAULT_TZ", "Asia/Shanghai")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# adds the equation of time on top of the longitude correction
SOLAR_TIME_EOT = _is_truthy(os.getenv("SOLAR_TIME_EOT", "false"))
