from urllib.parse import urlparse

from .base import BaseConfig, ConfigurationError


class ProductionConfig(BaseConfig):
    """
    Production configuration.
    """

    DEBUG = False
    ENV_NAME = "production"

    CREATE_TABLES_ON_START = False

    @classmethod
    def validate(cls):
        if not cls.PAYSTACK_SECRET_KEY:
            raise ConfigurationError("PAYSTACK_SECRET_KEY is required in production")

        if urlparse(cls.SQLALCHEMY_DATABASE_URI).scheme.startswith("sqlite"):
            raise ConfigurationError("SQLite is not allowed in production. Use PostgreSQL or MySQL.")

        if not cls.FRONTEND_URL:
            raise ConfigurationError("FRONTEND_URL is required in production (Paystack callback_url)")

        return cls
