import os

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./peerrank.db")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "adminpassword")

# Ties (two peers given the same rank by one rater on one question) are
# accepted unless this is switched off.
RATING_ALLOW_TIED_RANKS = _get_bool(os.getenv("RATING_ALLOW_TIED_RANKS"), default=True)
RATING_REQUIRE_ROOM_MEMBERSHIP = _get_bool(os.getenv("RATING_REQUIRE_ROOM_MEMBERSHIP"), default=False)

LEADERBOARD_ORDER = os.getenv("LEADERBOARD_ORDER", "descending").strip().lower()
SUBMISSION_LOCK_STRIPES = int(os.getenv("SUBMISSION_LOCK_STRIPES", "64"))


def validate_runtime_config() -> None:
    if LEADERBOARD_ORDER not in {"ascending", "descending"}:
        raise RuntimeError("LEADERBOARD_ORDER must be 'ascending' or 'descending'.")
    if SUBMISSION_LOCK_STRIPES < 1:
        raise RuntimeError("SUBMISSION_LOCK_STRIPES must be at least 1.")
    if APP_ENV.lower() == "production":
        if JWT_SECRET_KEY == "change-me":
            raise RuntimeError("JWT_SECRET_KEY must be set in production.")
        if ADMIN_PASSWORD == "adminpassword":
            raise RuntimeError("ADMIN_PASSWORD must be set in production.")
