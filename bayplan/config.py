import os
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value):
    """Split a comma-separated environment value into a tuple of non-empty items."""
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


class Config:
    """Base configuration class with common settings."""
    # CORS configuration
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE")  # stdout only when unset

    # Calendar days are taken in the shop's local timezone, for every app in the process
    SHOP_TIMEZONE = os.environ.get("SHOP_TIMEZONE", "America/Denver")

    # Window for "starting soon" schedules and upcoming ship dates
    UPCOMING_HORIZON_DAYS = int(os.environ.get("UPCOMING_HORIZON_DAYS", "14"))

    # Weekly bay forecast
    FORECAST_WEEKS = int(os.environ.get("FORECAST_WEEKS", "26"))  # ~6 months
    FORECAST_EXCLUDED_TEAMS = _split_csv(os.environ.get("FORECAST_EXCLUDED_TEAMS", "LIBBY"))


class LocalConfig(Config):
    """Configuration for local development."""
    ENV = "local"
    DEBUG = True


class SandboxConfig(Config):
    """Configuration for sandbox/staging environment."""
    ENV = "sandbox"
    DEBUG = False


class ProductionConfig(Config):
    """Configuration for production environment."""
    ENV = "production"
    DEBUG = False


def get_config():
    """Get the appropriate configuration class based on environment variable.

    Environment is determined by FLASK_ENV or ENVIRONMENT variable:
    - 'local' or 'development' -> LocalConfig
    - 'sandbox' or 'staging' -> SandboxConfig
    - 'production' or 'prod' -> ProductionConfig

    Defaults to LocalConfig if not set.
    """
    env = (os.environ.get("FLASK_ENV") or os.environ.get("ENVIRONMENT", "local")).lower()

    if env in ["local", "development", "dev"]:
        return LocalConfig
    elif env in ["sandbox", "staging", "stage"]:
        return SandboxConfig
    elif env in ["production", "prod"]:
        return ProductionConfig
    else:
        # Default to local for safety
        return LocalConfig
