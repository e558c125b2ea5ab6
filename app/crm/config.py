import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    default_page_limit: int
    max_page_limit: int

    cors_origins: str
    client_build_dir: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///crm.db"),
        default_page_limit=_getenv_int("DEFAULT_PAGE_LIMIT", 5),
        max_page_limit=_getenv_int("MAX_PAGE_LIMIT", 100),
        cors_origins=_getenv("CORS_ORIGINS", "*"),
        client_build_dir=_getenv("CLIENT_BUILD_DIR", ""),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        # listing defaults
        "DEFAULT_PAGE_LIMIT": s.default_page_limit,
        "MAX_PAGE_LIMIT": s.max_page_limit,
        "CORS_ORIGINS": [o.strip() for o in s.cors_origins.split(",") if o.strip()],
        "CLIENT_BUILD_DIR": s.client_build_dir,
    }
