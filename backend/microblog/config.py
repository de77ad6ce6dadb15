# microblog/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _split_csv(val: str | None) -> list[str]:
    return [v.strip() for v in (val or "").split(",") if v.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Microblog API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))

    # CORS origins for the static front-end
    CORS_ORIGINS: list[str] = _split_csv(os.getenv("CORS_ORIGINS")) or ["http://localhost:8080"]

    # Store connection string (Tortoise URL)
    database_url: str = os.getenv("DATABASE_URL", "sqlite://db.sqlite3")
    # Create tables on startup (handy for local runs; use Aerich migrations otherwise)
    generate_schemas: bool = os.getenv("GENERATE_SCHEMAS", "false").lower() in ("true", "1", "yes")

    # Token signing
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")
    jwt_alg: str = os.getenv("JWT_ALG", "HS256")
    # 0 disables expiry; sessions then live until logout
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))

settings = Settings()  # Instantiate configuration
