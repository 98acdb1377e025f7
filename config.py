"""
Application configuration.

Environment-based config classes following the 12-factor app methodology.
Sensitive values are read exclusively from environment variables.
"""

import os


class Config:
    """Base configuration shared by all environments."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    # MongoDB
    MONGODB_URI = os.environ.get(
        "MONGODB_URI", "mongodb://localhost:27017/invoicely"
    )
    MONGODB_CONNECT_OPTIONS: dict = {}

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # API tokens
    TOKEN_MAX_AGE = int(os.environ.get("TOKEN_MAX_AGE", 86400))  # 24 hours

    # How many times a new invoice number is recomputed after a collision
    INVOICE_NUMBER_MAX_ATTEMPTS = int(os.environ.get("INVOICE_NUMBER_MAX_ATTEMPTS", 3))


class DevelopmentConfig(Config):
    """Local development — debug on."""

    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    """Production — expects MONGODB_URI and SECRET_KEY in env."""

    DEBUG = False


class TestingConfig(Config):
    """Automated tests — separate test database."""

    TESTING = True
    SECRET_KEY = "testing-secret"
    MONGODB_URI = os.environ.get(
        "MONGODB_URI", "mongodb://localhost:27017/invoicely_test"
    )


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
