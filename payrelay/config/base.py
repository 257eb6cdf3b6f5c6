import os


class ConfigurationError(Exception):
    """
    Raised when an invalid or unsupported configuration is requested.
    """
    pass


def _bool(name, default="false"):
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _csv(name, default=""):
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


class BaseConfig:
    """
    Base configuration shared by all environments.
    """

    # Flask
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    ENV_NAME = "base"

    # Application
    APP_NAME = os.getenv("APP_NAME", "Paystack Payment Server")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

    # URLs
    FRONTEND_URL = os.getenv("FRONTEND_URL", "").rstrip("/")
    BACKEND_URL = os.getenv("BACKEND_URL", "").rstrip("/")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///payments.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Paystack
    PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
    PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co").rstrip("/")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "NGN")
    REFERENCE_PREFIX = os.getenv("REFERENCE_PREFIX", "ROYAL_SCHOLARS")

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

    # Admin notifications
    MESSAGE_RELAY_URL = os.getenv("MESSAGE_RELAY_URL", "http://localhost:3001/send-message")
    ADMIN_PHONE = os.getenv("ADMIN_PHONE")
    NOTIFY_TIMEZONE = os.getenv("NOTIFY_TIMEZONE", "Africa/Lagos")
    NOTIFY_TIMEZONE_LABEL = os.getenv("NOTIFY_TIMEZONE_LABEL", "WAT")
    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₦")

    # CORS
    CORS_ORIGINS = [
        "http://localhost:8000",
        "http://127.0.0.1:8000",
        "http://0.0.0.0:8000",
    ]
    CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    CORS_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]
    CORS_SUPPORTS_CREDENTIALS = True

    # Observability
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_REQUESTS = _bool("LOG_REQUESTS")
    METRICS_ENABLED = _bool("METRICS_ENABLED")
    SENTRY_DSN = os.getenv("SENTRY_DSN")
    CREATE_TABLES_ON_START = _bool("CREATE_TABLES_ON_START", "true")

    @classmethod
    def validate(cls):
        """Hook for environment-specific checks; the base config accepts anything."""
        return cls
