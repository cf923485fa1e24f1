# market/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", 10))
SESSION_FILE = os.getenv("SESSION_FILE", os.path.expanduser("~/.farmers-market/session.json"))

# M-Pesa STK push limits (KSh)
CHECKOUT_MIN_AMOUNT = int(os.getenv("CHECKOUT_MIN_AMOUNT", 1))
CHECKOUT_MAX_AMOUNT = int(os.getenv("CHECKOUT_MAX_AMOUNT", 70000))
PAYMENT_CONFIRMATION_WINDOW = int(os.getenv("PAYMENT_CONFIRMATION_WINDOW", 60))

PAYMENT_POLL_ATTEMPTS = int(os.getenv("PAYMENT_POLL_ATTEMPTS", 8))
PAYMENT_POLL_INITIAL_DELAY = float(os.getenv("PAYMENT_POLL_INITIAL_DELAY", 2))
PAYMENT_POLL_MAX_DELAY = float(os.getenv("PAYMENT_POLL_MAX_DELAY", 15))

CHAT_POLL_INTERVAL = float(os.getenv("CHAT_POLL_INTERVAL", 5))

DEV_DATABASE_URL = os.getenv("DEV_DATABASE_URL", "sqlite:///./market-dev.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
