from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Resolve paths relative to /backend so the app doesn't depend on the working directory.
BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_SQLITE_PATH = (BASE_DIR / "usuarios.db").resolve()

# Mayor sal (en bytes) cuyo base64 cabe en la columna credenciales.salt.
MAX_SALT_LENGTH = 48


def _env_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _env_str(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    db_driver: str
    db_host: Optional[str]
    db_port: Optional[int]
    db_name: Optional[str]
    db_user: Optional[str]
    db_pass: Optional[str]
    database_url: Optional[str]
    db_echo: bool
    db_pool_timeout: int
    salt_length: int
    hash_rounds: int
    log_level: str

    def sqlalchemy_url(self) -> Union[str, URL]:
        """
        URL de conexión final. DATABASE_URL tiene prioridad; con driver sqlite y
        sin DB_NAME se usa el archivo usuarios.db junto a /backend.
        """
        if self.database_url:
            return self.database_url
        if self.db_driver.startswith("sqlite"):
            path = self.db_name or DEFAULT_SQLITE_PATH.as_posix()
            return f"{self.db_driver}:///{path}"
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_pass,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Carga .env (sin pisar variables ya definidas) y construye Settings."""
    load_dotenv(env_file or BASE_DIR / ".env")
    port = _env_str(os.getenv("DB_PORT"))
    salt_length = _env_int(os.getenv("PASSWORD_SALT_LENGTH"), 16)
    if not 0 < salt_length <= MAX_SALT_LENGTH:
        raise ValueError(f"PASSWORD_SALT_LENGTH debe estar entre 1 y {MAX_SALT_LENGTH} (recibido {salt_length})")
    return Settings(
        db_driver=_env_str(os.getenv("DB_DRIVER")) or "sqlite",
        db_host=_env_str(os.getenv("DB_HOST")),
        db_port=int(port) if port else None,
        db_name=_env_str(os.getenv("DB_NAME")),
        db_user=_env_str(os.getenv("DB_USER")),
        db_pass=os.getenv("DB_PASS"),
        database_url=_env_str(os.getenv("DATABASE_URL")),
        db_echo=_env_bool(os.getenv("DB_ECHO")),
        db_pool_timeout=_env_int(os.getenv("DB_POOL_TIMEOUT"), 30),
        salt_length=salt_length,
        hash_rounds=_env_int(os.getenv("PASSWORD_HASH_ROUNDS"), 29000),
        log_level=(_env_str(os.getenv("LOG_LEVEL")) or "INFO").upper(),
    )


settings = load_settings()
