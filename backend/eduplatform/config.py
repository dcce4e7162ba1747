"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent
DEFAULT_SECRET = "change_me_for_prod"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    ENV: str
    DATABASE_URL: str
    SQL_ECHO: bool
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    JWT_ISSUER: str
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    ALLOW_ADMIN_SIGNUP: bool
    API_PREFIX: str
    LOG_LEVEL: str

    def __init__(self, **overrides):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'eduplatform.db'}")
        self.SQL_ECHO = _flag("SQL_ECHO", "false")
        self.JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_SECRET)
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.JWT_ISSUER = os.getenv("JWT_ISSUER", "educational-platform-api")
        self.ALLOW_INSECURE_JWT = _flag("ALLOW_INSECURE_JWT", "false")
        self.ALLOW_DEV_CORS = _flag("ALLOW_DEV_CORS", "true")
        # admin self-registration is a bootstrap convenience for local setups
        self.ALLOW_ADMIN_SIGNUP = _flag("ALLOW_ADMIN_SIGNUP", "true" if self.ENV == "dev" else "false")
        self.API_PREFIX = os.getenv("API_PREFIX", "/api/v1")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"unknown setting: {key}")
            setattr(self, key, value)
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == DEFAULT_SECRET:
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.JWT_EXPIRE_HOURS <= 0:
            raise RuntimeError("JWT_EXPIRE_HOURS must be positive")


settings = Settings()
