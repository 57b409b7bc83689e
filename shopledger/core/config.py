import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class Settings:
    app_name: str
    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    issuer: str
    cors_origins: tuple[str, ...]
    database_url: str
    database_sslmode: str
    database_echo: bool
    default_shop_id: str
    fund_owner_id: int | None
    report_timezone: str
    default_page_size: int
    max_page_size: int
    log_level: str


settings = Settings(
    app_name=os.getenv("APP_NAME", "Shop Ledger API"),
    secret_key=os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION_32_CHAR_MIN_SECRET_KEY"),
    algorithm=os.getenv("ALGORITHM", "HS256"),
    access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7, min_value=1),
    issuer=os.getenv("TOKEN_ISSUER", "shopledger-api"),
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:5174").split(",")
        if origin.strip()
    ),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./shopledger.db"),
    database_sslmode=os.getenv("DATABASE_SSLMODE", "").strip(),
    database_echo=_env_bool("DATABASE_ECHO", False),
    default_shop_id=os.getenv("DEFAULT_SHOP_ID", "shop1").strip() or "shop1",
    fund_owner_id=_env_optional_int("FUND_OWNER_ID"),
    report_timezone=os.getenv("REPORT_TIMEZONE", "Asia/Kolkata"),
    default_page_size=_env_int("DEFAULT_PAGE_SIZE", 50, min_value=1),
    max_page_size=_env_int("MAX_PAGE_SIZE", 200, min_value=1),
    log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
)
