"""
restkit — Service Configuration
================================

What:  The CORS policy, the frozen configuration a Service runs with, and
       environment-driven defaults.
How:   `CORSPolicy` and `ServiceConfig` are frozen pydantic models built by
       `ServiceBuilder`. `Settings` reads `RESTKIT_*` environment variables
       (or a .env file) through pydantic-settings.
When:  Built once at process startup; never modified once the service listens.
"""

from typing import List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.middleware import Middleware

DEFAULT_ADDR = "127.0.0.1:8080"
WILDCARD = "*"


class CORSPolicy(BaseModel):
    """
    Which cross-origin requests the service accepts.

    Origins are either the wildcard or an explicit list compared by exact
    string match (scheme, host and port included).
    """

    model_config = ConfigDict(frozen=True)

    allow_origins: Tuple[str, ...] = (WILDCARD,)
    allow_methods: Tuple[str, ...] = (WILDCARD,)
    allow_headers: Tuple[str, ...] = (WILDCARD,)
    allow_credentials: bool = True
    expose_headers: Tuple[str, ...] = ("x-request-id",)

    @classmethod
    def permissive(cls) -> "CORSPolicy":
        """Allow every origin, method and header, with credentials."""
        return cls()

    @classmethod
    def allow_list(
        cls,
        origins: Sequence[str],
        methods: Sequence[str],
        headers: Sequence[str],
    ) -> "CORSPolicy":
        """Allow only the listed origins, without credentials."""
        return cls(
            allow_origins=tuple(origins),
            allow_methods=tuple(methods),
            allow_headers=tuple(headers),
            allow_credentials=False,
        )


class ServiceConfig(BaseModel):
    """Frozen result of `ServiceBuilder.build()`."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    bind_address: str = DEFAULT_ADDR
    cors: CORSPolicy = Field(default_factory=CORSPolicy.permissive)
    middleware: Tuple[Middleware, ...] = ()


class Settings(BaseSettings):
    """
    Environment-driven defaults for `ServiceBuilder.from_settings()`.

    Environment:
        RESTKIT_BIND_ADDRESS   host:port to listen on (default 127.0.0.1:8080)
        RESTKIT_CORS_ORIGINS   comma-separated origins, or * (default *)
        RESTKIT_LOG_LEVEL      DEBUG, INFO, WARNING, ERROR, CRITICAL (default INFO)
    """

    bind_address: str = Field(default=DEFAULT_ADDR)

    cors_origins: str = Field(default=WILDCARD)

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = SettingsConfigDict(
        env_prefix="RESTKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def cors_policy(self) -> CORSPolicy:
        origins = self.cors_origins_list
        if not origins or origins == [WILDCARD]:
            return CORSPolicy.permissive()
        return CORSPolicy.allow_list(origins, [WILDCARD], [WILDCARD])
