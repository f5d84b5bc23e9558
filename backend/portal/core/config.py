from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOCATIONS_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Blood Bond backend
    BACKEND_API_URL: str = "https://blood-bond-backend.vercel.app"
    BACKEND_TIMEOUT: float = 10.0

    # Security
    JWT_SECRET: str = ""  # empty: claims are read unverified, backend stays the authority

    # Redis (shared in-flight guard across workers)
    REDIS_URL: str | None = None
    INFLIGHT_TTL: int = 30

    # Static lookup data
    LOCATIONS_DIR: Path = DEFAULT_LOCATIONS_DIR

    # Payments
    PAYMENT_PUBLISHABLE_KEY: str = ""
    MIN_FUNDING_AMOUNT: float = 50.0

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


settings = Settings()
