"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite:///./vertex.db"

    # Session Token (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 4

    # Role cache (invalidation on promotion is the primary mechanism, TTL is a fallback)
    ROLE_CACHE_TTL_SECONDS: float = 30.0
    ROLE_CACHE_MAX_ENTRIES: int = 4096

    # Upper bound for a single profile/role lookup; exceeding it denies
    ROLE_LOOKUP_TIMEOUT_SECONDS: float = 2.0

    # Optional Redis for cross-worker role cache invalidation ("memory://" disables)
    REDIS_URL: str = ""

    # Redirect target for unauthenticated requests
    LOGIN_PATH: str = "/login"

    # Dev-only
    DEV_SECRET: str = "change-me"

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"


settings = Settings()
