import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as queueslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "queueslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Wait on SQLite's write lock instead of failing straight away
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}} if SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

    # Defaults for newly registered businesses/departments
    DEFAULT_BUSINESS_TIMEZONE = os.getenv("DEFAULT_BUSINESS_TIMEZONE", "UTC")
    DEFAULT_AVERAGE_SERVICE_MINUTES = int(os.getenv("DEFAULT_AVERAGE_SERVICE_MINUTES", "15"))
    DEFAULT_NO_SHOW_GRACE_MINUTES = int(os.getenv("DEFAULT_NO_SHOW_GRACE_MINUTES", "15"))

    # Lost compare-and-swap races are retried this many times before a 503
    ALLOCATION_MAX_RETRIES = int(os.getenv("ALLOCATION_MAX_RETRIES", "3"))

    # Trusted header set by the gateway after it authenticated the caller
    ACTOR_HEADER = "X-Actor-Role"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
