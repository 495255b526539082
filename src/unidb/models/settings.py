"""Connection settings model."""

from enum import StrEnum

from pydantic import BaseModel


class Driver(StrEnum):
    """Supported database drivers."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class DatabaseSettings(BaseModel):
    """Parameters used to open the single database connection.

    Required values (host, username, password, name) may be left unset;
    they are handed to the driver as-is and the driver decides whether
    the connection attempt fails. SQLite only uses ``name`` (a file path
    or ``:memory:``) and ``charset``.
    """

    driver: Driver = Driver.SQLITE
    host: str | None = None
    port: int | None = None
    username: str | None = None
    password: str | None = None
    name: str | None = None
    charset: str = "utf8"
