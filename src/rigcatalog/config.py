from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

# 相对路径按进程工作目录解析 - relative paths resolve against the working directory
DEFAULT_DB_PATH = Path("data") / "components.db"

DEFAULT_CORS_ALLOWED_ORIGINS = (
    "http://localhost:3000,http://localhost:3001,http://localhost:3002,http://localhost:5173"
)

DbDriver = Literal["postgres", "sqlite"]
CacheBackend = Literal["redis", "memory", "none"]


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(env: Mapping[str, str], name: str, default: str = "") -> str:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    db_driver: DbDriver = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""
    db_sslmode: str = "disable"
    db_path: Path = DEFAULT_DB_PATH
    db_pool_max: int = 25
    store_timeout_seconds: int = 5

    cache_backend: CacheBackend = "redis"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0
    cache_ttl_seconds: int = 60

    port: int = 8080
    cors_allowed_origins: List[str] = field(
        default_factory=lambda: DEFAULT_CORS_ALLOWED_ORIGINS.split(",")
    )
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        if env is None:
            load_dotenv(find_dotenv(usecwd=True))
            env = os.environ

        db_driver = _env_str(env, "DB_DRIVER", "postgres").lower()
        if db_driver not in {"postgres", "sqlite"}:
            raise ValueError(f"unsupported DB_DRIVER: {db_driver}")

        cache_backend = _env_str(env, "CACHE_BACKEND", "redis").lower()
        if cache_backend not in {"redis", "memory", "none"}:
            raise ValueError(f"unsupported CACHE_BACKEND: {cache_backend}")

        # REDIS_DB 非法直接失败，与其他整数键不同 - a bad REDIS_DB is a startup error
        redis_db_raw = _env_str(env, "REDIS_DB", "0")
        try:
            redis_db = int(redis_db_raw)
        except ValueError as exc:
            raise ValueError(f"invalid REDIS_DB value: {redis_db_raw}") from exc

        origins = [
            o.strip()
            for o in _env_str(env, "CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ALLOWED_ORIGINS).split(",")
            if o.strip()
        ]

        return cls(
            db_driver=db_driver,
            db_host=_env_str(env, "DB_HOST", "localhost"),
            db_port=_env_int(env, "DB_PORT", 5432),
            db_user=_env_str(env, "DB_USER"),
            db_password=_env_str(env, "DB_PASSWORD"),
            db_name=_env_str(env, "DB_NAME"),
            db_sslmode=_env_str(env, "DB_SSLMODE", "disable"),
            db_path=Path(_env_str(env, "DB_PATH", str(DEFAULT_DB_PATH))),
            db_pool_max=max(1, _env_int(env, "DB_POOL_MAX", 25)),
            store_timeout_seconds=max(1, _env_int(env, "STORE_TIMEOUT_SECONDS", 5)),
            cache_backend=cache_backend,
            redis_host=_env_str(env, "REDIS_HOST", "localhost"),
            redis_port=_env_int(env, "REDIS_PORT", 6379),
            redis_password=_env_str(env, "REDIS_PASSWORD") or None,
            redis_db=redis_db,
            cache_ttl_seconds=max(0, _env_int(env, "CACHE_TTL_SECONDS", 60)),
            port=_env_int(env, "PORT", 8080),
            cors_allowed_origins=origins,
            log_level=_env_str(env, "LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """Check keys the configured store needs; called when the store is built, not at import."""
        if self.db_driver != "postgres":
            return
        missing = [
            name
            for name, value in (
                ("DB_USER", self.db_user),
                ("DB_PASSWORD", self.db_password),
                ("DB_NAME", self.db_name),
            )
            if not value
        ]
        if missing:
            raise ValueError(f"required environment variable missing: {', '.join(missing)}")
