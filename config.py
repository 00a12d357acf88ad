import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once at startup and passed around explicitly."""

    database_url: str = "sqlite:///./tasks.db"
    secret_key: str = "change-this"
    algorithm: str = "HS256"
    bcrypt_rounds: int = 12
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1
    ssl_keyfile: Optional[str] = None
    ssl_certfile: Optional[str] = None
    static_dir: str = "public"
    log_level: str = "INFO"
    create_tables: bool = True

    @property
    def use_tls(self) -> bool:
        return bool(self.ssl_keyfile and self.ssl_certfile)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))  # read .env locally; in prod the platform provides vars

        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./tasks.db"),
            secret_key=os.getenv("SECRET_KEY", "change-this"),
            algorithm=os.getenv("ALGORITHM", "HS256"),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            cors_origins=_split(os.getenv("CORS_ORIGINS", "*")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            workers=int(os.getenv("WEB_CONCURRENCY", str(os.cpu_count() or 1))),
            ssl_keyfile=os.getenv("SSL_KEYFILE") or None,
            ssl_certfile=os.getenv("SSL_CERTFILE") or None,
            static_dir=os.getenv("STATIC_DIR", "public"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            create_tables=_flag(os.getenv("CREATE_TABLES", "true")),
        )
