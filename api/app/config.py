import json
import os
from typing import Any

ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "")
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PAIRING_CRON_ENABLED = os.getenv("PAIRING_CRON_ENABLED", "true").lower() == "true"
PAIRING_CRON_SCHEDULE = os.getenv("PAIRING_CRON_SCHEDULE", "0 0 * * 1")

PAIRING_DEFAULT_PERIOD_DAYS = int(os.getenv("PAIRING_DEFAULT_PERIOD_DAYS", "21"))
PAIRING_MIN_PERIOD_DAYS = int(os.getenv("PAIRING_MIN_PERIOD_DAYS", "7"))
PAIRING_MAX_PERIOD_DAYS = int(os.getenv("PAIRING_MAX_PERIOD_DAYS", "365"))

# INT4 bounds of algorithm_setting.random_seed
RANDOM_SEED_MIN = 1
RANDOM_SEED_MAX = 2_147_483_647

DEFAULT_PAIRING_CONFIG: dict[str, Any] = {
    "HISTORY_LOOKBACK_PERIODS": int(os.getenv("PAIRING_HISTORY_LOOKBACK_PERIODS", "2")),
    "SWAP_WINDOW": int(os.getenv("PAIRING_SWAP_WINDOW", "8")),
    "SWAP_MAX_ATTEMPTS": int(os.getenv("PAIRING_SWAP_MAX_ATTEMPTS", "64")),
}

if os.getenv("PAIRING_CONFIG_JSON"):
    try:
        DEFAULT_PAIRING_CONFIG.update(json.loads(os.getenv("PAIRING_CONFIG_JSON", "{}")))
    except json.JSONDecodeError:
        pass

PAIRING_HISTORY_LOOKBACK_PERIODS = int(DEFAULT_PAIRING_CONFIG["HISTORY_LOOKBACK_PERIODS"])
PAIRING_SWAP_WINDOW = int(DEFAULT_PAIRING_CONFIG["SWAP_WINDOW"])
PAIRING_SWAP_MAX_ATTEMPTS = int(DEFAULT_PAIRING_CONFIG["SWAP_MAX_ATTEMPTS"])
