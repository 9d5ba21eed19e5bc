import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///storefront.db")
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "dev-key")
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")

    SITE_NAME = os.getenv("SITE_NAME", "My Shop")
    CURRENCY = os.getenv("CURRENCY", "usd").lower()

    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")

    # mail transport for sign-in links and alerts
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    SMTP_FROM = os.getenv("SMTP_FROM")

    SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL")
    ALERT_EMAIL_TO = os.getenv("ALERT_EMAIL_TO")

    LOG_FILE = os.getenv("LOG_FILE", "app.log")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    CART_COOKIE = "cart_session"
    CART_COOKIE_MAX_AGE = 60 * 60 * 24 * 30
    SIGNIN_TOKEN_HOURS = 24
