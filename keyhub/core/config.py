import os
from dataclasses import dataclass, field
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str):
    return field(default_factory=lambda: os.getenv(name, default))


def _env_int(name: str, default: int):
    return field(default_factory=lambda: int(os.getenv(name, str(default))))


@dataclass
class Settings:
    APP_NAME: str = "Keyhub License Backend"
    DATA_DIR: str = _env("DATA_DIR", "/tmp/data")
    # Every /api route is mounted below this prefix, e.g. "/.netlify/functions/server"
    BASE_PATH: str = _env("BASE_PATH", "")

    JWT_SECRET_KEY: str = _env("JWT_SECRET_KEY", "change_this_secret")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)

    # Seeded on first boot only. Rotate through /api/change-password.
    ADMIN_USERNAME: str = _env("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD: str = _env("ADMIN_PASSWORD", "password")

    PASSWORD_SALT_BYTES: int = 16
    PASSWORD_HASH_BYTES: int = 64

    MAX_KEYS_PER_BATCH: int = _env_int("MAX_KEYS_PER_BATCH", 1000)

    CORS_ORIGINS: str = _env("CORS_ORIGINS", "*")

    def uses_default_admin(self) -> bool:
        return self.ADMIN_USERNAME == "admin" and self.ADMIN_PASSWORD == "password"


def access_token_expires(settings: Settings) -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
