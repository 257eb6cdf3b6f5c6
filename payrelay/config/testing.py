from .base import BaseConfig


class TestingConfig(BaseConfig):
    """
    Test configuration: in-memory database, fixed secrets, no outbound URLs
    that could be reached by accident.
    """

    TESTING = True
    ENV_NAME = "testing"

    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"

    PAYSTACK_SECRET_KEY = "sk_test_payrelay"
    PAYSTACK_BASE_URL = "https://paystack.test"
    FRONTEND_URL = "https://donate.example.test"
    REFERENCE_PREFIX = "TEST"

    MESSAGE_RELAY_URL = "http://relay.test/send-message"
    ADMIN_PHONE = "2348000000000"

    LOG_LEVEL = "WARNING"
    LOG_REQUESTS = False
    METRICS_ENABLED = False
    SENTRY_DSN = None
    CREATE_TABLES_ON_START = True
