import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # App
    app_name: str = "Booking Automation"
    debug: bool = os.getenv("DEBUG", "False").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    brand_name: str = os.getenv("BRAND_NAME", "The 3 Tree")

    # Origin used to build meeting links, e.g. https://the3tree.com
    app_base_url: str = os.getenv("APP_BASE_URL", "http://localhost:5173")
    display_timezone: str = os.getenv("DISPLAY_TIMEZONE", "Asia/Kolkata")
    default_country_code: str = os.getenv("DEFAULT_COUNTRY_CODE", "91")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./booking_automation.db")

    # Remote functions ("local" runs the providers in-process, "http" calls the deployed functions)
    remote_functions_mode: str = os.getenv("REMOTE_FUNCTIONS_MODE", "local")
    remote_functions_url: str = os.getenv("REMOTE_FUNCTIONS_URL", "")
    remote_functions_key: str = os.getenv("REMOTE_FUNCTIONS_KEY", "")
    remote_functions_timeout: float = float(os.getenv("REMOTE_FUNCTIONS_TIMEOUT", "30"))

    # Email (Resend)
    resend_api_key: str = os.getenv("RESEND_API_KEY", "")
    email_from_address: str = os.getenv("EMAIL_FROM_ADDRESS", "The 3 Tree <noreply@the3tree.com>")

    # SMS
    sms_provider: str = os.getenv("SMS_PROVIDER", "twilio")
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_phone_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    msg91_auth_key: str = os.getenv("MSG91_AUTH_KEY", "")
    msg91_sender_id: str = os.getenv("MSG91_SENDER_ID", "THE3TR")
    msg91_route: str = os.getenv("MSG91_ROUTE", "4")

    # Background jobs
    scheduler_enabled: bool = os.getenv("SCHEDULER_ENABLED", "True").lower() == "true"
    reminder_poll_minutes: int = int(os.getenv("REMINDER_POLL_MINUTES", "5"))
    feedback_poll_minutes: int = int(os.getenv("FEEDBACK_POLL_MINUTES", "60"))

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
