# orderdesk/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self):
        self.APP_NAME: str = os.getenv("APP_NAME", "Grocery Order Management")
        self.SUPABASE_URL: str = os.getenv("SUPABASE_URL")
        self.SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY")

        self.SESSION_COOKIE: str = os.getenv("SESSION_COOKIE", "orderdesk_session")
        self.FLASH_COOKIE: str = os.getenv("FLASH_COOKIE", "orderdesk_flash")
        self.COOKIE_SECURE: bool = _flag("COOKIE_SECURE")
        self.DISPLAY_TIMEZONE: str = os.getenv("DISPLAY_TIMEZONE", "UTC")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

        # Web Push
        self.VAPID_PUBLIC_KEY: str = os.getenv("VAPID_PUBLIC_KEY")
        self.VAPID_PRIVATE_KEY: str = os.getenv("VAPID_PRIVATE_KEY")
        self.VAPID_CLAIMS_EMAIL: str = os.getenv("VAPID_CLAIMS_EMAIL", "admin@example.com")
        self.NOTIFICATION_PERMISSION: str = os.getenv("NOTIFICATION_PERMISSION", "default")
        self.NOTIFICATION_ICON: str = os.getenv("NOTIFICATION_ICON", "/static/icon.svg")

        # staff account used by the new-order notifier
        self.NOTIFIER_EMAIL: str = os.getenv("NOTIFIER_EMAIL")
        self.NOTIFIER_PASSWORD: str = os.getenv("NOTIFIER_PASSWORD")


settings = Settings()
