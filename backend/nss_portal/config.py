from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_prefix="APP_",
    )

    SECRET_KEY: str
    WORKERS: int = 1
    PORT: int = 8000
    DEBUG: bool = False
    CORS_ORIGINS: list[str] | str = "http://localhost:3000"
    APP_VERSION: str = "1.0"

    DATABASE_URL: str

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024

    STATUS_SWEEP_ENABLED: bool = True
    STATUS_SWEEP_INTERVAL_SECONDS: int = 60
    REGISTRATION_CUTOFF_HOURS: int = 2

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    SQL_LOG: bool = False

    ERROR_WEBHOOK: str | None = None

    @property
    def cors_origins(self) -> list[str]:
        if isinstance(self.CORS_ORIGINS, str):
            return [
                origin.strip()
                for origin in self.CORS_ORIGINS.split(",")
                if origin.strip()
            ]
        return self.CORS_ORIGINS


settings = AppConfig()
