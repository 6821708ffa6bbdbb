from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), case_sensitive=False)

    APP_NAME: str = "Gift Miner Backend"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    BACKEND_HOST: str = "0.0.0.0"
    PORT: int = 3000

    DATABASE_URL: str = "sqlite:///./giftminer.db"

    BOT_TOKEN: SecretStr = SecretStr("")
    # 0 disables the auth_date freshness check.
    INIT_DATA_MAX_AGE_SECONDS: int = 0

    CLAIM_MAX_RETRIES: int = 3

    CORS_ORIGINS: str = "*"

    @property
    def cors_origins(self) -> List[str]:
        return [value.strip().rstrip("/") for value in self.CORS_ORIGINS.split(",") if value.strip()]

    @property
    def bot_token(self) -> str:
        return self.BOT_TOKEN.get_secret_value()


@lru_cache
def get_settings() -> Settings:
    return Settings()
