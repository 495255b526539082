"""Environment-variable-based configuration."""

import os

from unidb.models.settings import DatabaseSettings

_settings: DatabaseSettings | None = None


def get_driver() -> str:
    """Return the driver name from UNIDB_DRIVER."""
    return os.environ.get("UNIDB_DRIVER", "sqlite").lower()


def get_host() -> str | None:
    """Return the database server host from UNIDB_HOST."""
    return os.environ.get("UNIDB_HOST")


def get_port() -> int | None:
    """Return the database server port from UNIDB_PORT."""
    raw = os.environ.get("UNIDB_PORT")
    return int(raw) if raw else None


def get_username() -> str | None:
    """Return the login name from UNIDB_USERNAME."""
    return os.environ.get("UNIDB_USERNAME")


def get_password() -> str | None:
    """Return the login password from UNIDB_PASSWORD."""
    return os.environ.get("UNIDB_PASSWORD")


def get_db_name() -> str | None:
    """Return the database name (file path for SQLite) from UNIDB_NAME."""
    return os.environ.get("UNIDB_NAME")


def get_charset() -> str:
    """Return the connection character set from UNIDB_CHARSET."""
    return os.environ.get("UNIDB_CHARSET", "utf8")


def load_settings() -> DatabaseSettings:
    """Build connection settings from the environment."""
    return DatabaseSettings(
        driver=get_driver(),
        host=get_host(),
        port=get_port(),
        username=get_username(),
        password=get_password(),
        name=get_db_name(),
        charset=get_charset(),
    )


def configure(settings: DatabaseSettings | None) -> None:
    """Install process-wide settings, or clear them with None."""
    global _settings
    _settings = settings


def get_settings() -> DatabaseSettings:
    """Return the process-wide settings, falling back to the environment."""
    if _settings is not None:
        return _settings
    return load_settings()
