import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from None


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/film_gear.db")

# JWT configuration
SECRET_KEY = os.getenv("SECRET_KEY", "film-gear-dev-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = _int_env("ACCESS_TOKEN_EXPIRE_MINUTES", "30")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Bounded retries for the message timestamp compare-and-set
MESSAGE_APPEND_ATTEMPTS = _int_env("MESSAGE_APPEND_ATTEMPTS", "5")
