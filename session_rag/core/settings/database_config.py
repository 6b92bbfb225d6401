"""Database connection configuration."""

from pydantic import BaseModel, SecretStr

_ASYNC_DRIVER_PREFIX = "postgresql+asyncpg://"


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    url: SecretStr
    echo: bool = False

    @property
    def async_url(self) -> str:
        """DB URL with the asyncpg driver for bare PostgreSQL URLs."""
        base = self.url.get_secret_value()
        for scheme in ("postgresql://", "postgres://"):
            if base.startswith(scheme):
                return _ASYNC_DRIVER_PREFIX + base[len(scheme):]
        return base
