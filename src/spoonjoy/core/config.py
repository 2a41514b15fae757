from pathlib import Path
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent
ENV_PATH = BASE_DIR / ".env"


class Settings(BaseSettings):

    DATABASE_URL: str | None = None  # full URL override (sqlite+aiosqlite://... etc.)
    DB_USER: str = "spoonjoy"
    DB_PASSWORD: SecretStr = SecretStr("spoonjoy")
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "spoonjoy"
    DB_ECHO: bool = False

    REDIS_URL: str = "redis://localhost:6379/0"

    SESSION_SECRET: SecretStr = SecretStr("default-dev-secret-please-change-in-production")
    SESSION_COOKIE_NAME: str = "__session"
    SESSION_MAX_AGE_SECONDS: int = 60 * 60 * 24 * 30
    SESSION_COOKIE_SECURE: bool = False

    OPENAI_API_KEY: SecretStr | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    PUBLIC_BASE_URL: str = "http://localhost:8000"
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: SecretStr | None = None
    APPLE_CLIENT_ID: str | None = None
    APPLE_TEAM_ID: str | None = None
    APPLE_KEY_ID: str | None = None
    APPLE_PRIVATE_KEY: SecretStr | None = None

    OBJECT_STORE_ENDPOINT: str | None = None
    OBJECT_STORE_REGION: str = "auto"
    OBJECT_STORE_BUCKET: str = "spoonjoy-photos"
    OBJECT_STORE_ACCESS_KEY_ID: str | None = None
    OBJECT_STORE_SECRET_ACCESS_KEY: SecretStr | None = None
    PHOTO_MAX_BYTES: int = 5 * 1024 * 1024
    DEFAULT_PHOTO_URL: str = "/static/default-avatar.png"
    DEFAULT_RECIPE_IMAGE_URL: str = (
        "https://res.cloudinary.com/dpjmyc4uz/image/upload/v1674541350/clbe7wr180009tkhggghtl1qd.png"
    )

    LOG_LEVEL: str = "INFO"
    CREATE_TABLES_ON_STARTUP: bool = False

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        password = self.DB_PASSWORD.get_secret_value()
        return f"postgresql+asyncpg://{self.DB_USER}:{password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )


settings = Settings()
