import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Required. Use "memory://" for a throwaway in-process store.
DATABASE_URL = os.getenv("DATABASE_URL", "")
MEMORY_DATABASE_URL = "memory://"

# Required. There is deliberately no fallback secret.
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "1440"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

SEED_ADMIN_ENABLED = _get_bool(os.getenv("SEED_ADMIN_ENABLED"), default=True)
SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@university.edu")
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
SEED_ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Admin User")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), default=["http://localhost:5173"])

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))


def validate_runtime_config(require_database: bool = True) -> None:
    required = [("JWT_SECRET_KEY", JWT_SECRET_KEY)]
    if require_database:
        required.append(("DATABASE_URL", DATABASE_URL))
    missing = [name for name, value in required if not value]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}.")
    if JWT_EXPIRES_MINUTES <= 0:
        raise RuntimeError("JWT_EXPIRES_MINUTES must be positive.")
