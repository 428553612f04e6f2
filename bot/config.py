"""Configuration for the oracle scan bot."""
import os

BOT_TOKEN = os.environ.get("BOT_TOKEN")
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
AI_MODEL = os.environ.get("AI_MODEL", "gpt-4o")
AI_MAX_TOKENS = int(os.environ.get("AI_MAX_TOKENS", "1500"))
PORT = int(os.environ.get("PORT", "5000"))
WEBHOOK_URL = os.environ.get("WEBHOOK_URL")
TELEGRAM_API_ROOT = os.environ.get("TELEGRAM_API_ROOT", "https://api.telegram.org")

# /scan may be used once per user per window; 5 minutes by default
SCAN_RATE_LIMIT_SECONDS = float(os.environ.get("SCAN_RATE_LIMIT_SECONDS", "300"))

ALLOWED_GROUP_IDS = [g.strip() for g in os.environ.get("ALLOWED_GROUP_IDS", "").split(",") if g.strip()]
ONLY_ALLOWED_GROUPS = os.environ.get("ONLY_ALLOWED_GROUPS", "false").lower() in ("1", "true", "yes")

IRAI_API_KEY = os.environ.get("IRAI_API_KEY", "")
IRAI_API_ROOT = os.environ.get("IRAI_API_ROOT", "https://api.irai.co")
ORACLE_API_URL = os.environ.get(
    "ORACLE_API_URL", "https://app.8bitoracle.ai/api/generate/hexagram?includeText=true"
)
NEWS_TOP_K = int(os.environ.get("NEWS_TOP_K", "5"))

TEMPLATES_DIR = os.environ.get("TEMPLATES_DIR", "characters")
DIVINATION_TEMPLATE_PATH = os.environ.get("DIVINATION_TEMPLATE_PATH")
DKG_MEMORY_TEMPLATE_PATH = os.environ.get("DKG_MEMORY_TEMPLATE_PATH")

DKG_ENVIRONMENT = os.environ.get("DKG_ENVIRONMENT")
DKG_HOSTNAME = os.environ.get("DKG_HOSTNAME")
DKG_PORT = os.environ.get("DKG_PORT")
DKG_BLOCKCHAIN_NAME = os.environ.get("DKG_BLOCKCHAIN_NAME")
DKG_PUBLIC_KEY = os.environ.get("DKG_PUBLIC_KEY")
DKG_PRIVATE_KEY = os.environ.get("DKG_PRIVATE_KEY")
DKG_PUBLISH_TIMEOUT = float(os.environ.get("DKG_PUBLISH_TIMEOUT", "600"))
DKG_ENABLED = os.environ.get("DKG_ENABLED", "false").lower() in ("1", "true", "yes")

def validate_config():
    missing = [k for k in ["BOT_TOKEN", "OPENAI_API_KEY"] if not os.environ.get(k)]
    if missing:
        raise ValueError(f"Missing: {', '.join(missing)}")
