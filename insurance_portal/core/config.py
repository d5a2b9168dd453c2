"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


INSECURE_JWT_SECRET = "change-this-in-production"
INSECURE_ADMIN_ACCESS_KEY = "1924"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./insurance_portal.db"

    # Session Token (supports key rotation)
    JWT_SECRET: str = INSECURE_JWT_SECRET
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    JWT_EXPIRES_HOURS: int = 24

    # Admin login (fixed access key, synthetic identity)
    ADMIN_ACCESS_KEY: str = INSECURE_ADMIN_ACCESS_KEY
    ADMIN_EMAIL: str = "admin@system.local"
    ADMIN_DISPLAY_NAME: str = "System Administrator"

    # Lazily provisioned tenants
    ADMIN_ORG_NAME: str = "System Org"
    CLIENT_ORG_NAME: str = "Default Org"

    # Uploads (local disk, served under UPLOAD_URL_PREFIX)
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10 MB

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_AUTH: int = 10  # Login attempts

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

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

    @property
    def insecure_defaults(self) -> list[str]:
        """Names of secrets still carrying their shipped default."""
        names = []
        if self.JWT_SECRET == INSECURE_JWT_SECRET:
            names.append("JWT_SECRET")
        if self.ADMIN_ACCESS_KEY == INSECURE_ADMIN_ACCESS_KEY:
            names.append("ADMIN_ACCESS_KEY")
        return names


settings = Settings()
