"""Configuration management for the settlement calculator bot."""
import os
from dotenv import load_dotenv

load_dotenv()


def clean_env_value(value):
    """Clean environment variable value - strip whitespace AND quotes.

    Hosting dashboards sometimes add quotes around pasted values.
    This function removes them so tokens work correctly.
    """
    if not value:
        return ""
    value = value.strip()
    if len(value) >= 2:
        if (value.startswith('"') and value.endswith('"')) or \
           (value.startswith("'") and value.endswith("'")):
            value = value[1:-1]
        elif value.startswith('"') or value.startswith("'"):
            value = value[1:]
        elif value.endswith('"') or value.endswith("'"):
            value = value[:-1]
    return value.strip()


def _float_env(name, default):
    try:
        return float(clean_env_value(os.getenv(name)) or default)
    except ValueError:
        return float(default)


# Telegram Bot Token (get from @BotFather)
TELEGRAM_BOT_TOKEN = clean_env_value(os.getenv("TELEGRAM_BOT_TOKEN"))

# Telegram user IDs allowed to use the bot (empty = everyone)
ALLOWED_USER_IDS = [int(id.strip()) for id in os.getenv("ALLOWED_USER_IDS", "").split(",") if id.strip()]

# Anthropic API Key for document extraction and calculation
ANTHROPIC_API_KEY = clean_env_value(os.getenv("ANTHROPIC_API_KEY"))

# "preciso" model runs with extended thinking, "rapido" without
CLAUDE_MODEL = clean_env_value(os.getenv("CLAUDE_MODEL")) or "claude-sonnet-4-5-20250929"
CLAUDE_FAST_MODEL = clean_env_value(os.getenv("CLAUDE_FAST_MODEL")) or "claude-haiku-4-5-20251001"
DEFAULT_MODEL_VARIANT = clean_env_value(os.getenv("DEFAULT_MODEL_VARIANT")) or "rapido"
THINKING_BUDGET_TOKENS = int(os.getenv("THINKING_BUDGET_TOKENS", "8000"))
AI_MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "16000"))
AI_TIMEOUT_SECONDS = _float_env("AI_TIMEOUT_SECONDS", 300)

# Backoff on 429 / quota errors: base * 2^attempt + random(0, jitter)
QUOTA_MAX_RETRIES = int(os.getenv("QUOTA_MAX_RETRIES", "5"))
QUOTA_BASE_DELAY_SECONDS = _float_env("QUOTA_BASE_DELAY_SECONDS", 1.5)
QUOTA_JITTER_SECONDS = _float_env("QUOTA_JITTER_SECONDS", 1.0)

# Upload limits
MAX_FILE_SIZE_MB = _float_env("MAX_FILE_SIZE_MB", 15)
MAX_FILE_SIZE_BYTES = int(MAX_FILE_SIZE_MB * 1024 * 1024)

# Employer social-security share (INSS patronal) suggested to the model
DEFAULT_EMPLOYER_CHARGE_PERCENT = clean_env_value(os.getenv("DEFAULT_EMPLOYER_CHARGE_PERCENT")) or "23"

# Where the SQLite history lives
DATA_DIR = os.getenv("DATA_DIR", "./data")
