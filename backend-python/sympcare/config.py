# config.py
# Service settings, overridable through the environment (or a .env file).
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///sympcare.db")

# Doctor notification hook for critical alerts
NOTIFY_URL = os.getenv("NOTIFY_URL", "http://localhost:4567/notify")
NOTIFY_TIMEOUT = float(os.getenv("NOTIFY_TIMEOUT", "1.5"))

WS_ORIGIN = os.getenv("WS_ORIGIN", "*")

# OpenAI-compatible text generation
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
AI_TIMEOUT = float(os.getenv("AI_TIMEOUT", "30"))

# Bounded histories (oldest rows are pruned first)
ALERT_HISTORY_LIMIT = int(os.getenv("ALERT_HISTORY_LIMIT", "100"))
VITALS_HISTORY_LIMIT = int(os.getenv("VITALS_HISTORY_LIMIT", "1000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
