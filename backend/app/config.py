# app/config.py
import os
import tempfile
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = os.getenv("APP_NAME", "VideoTube Accounts API")
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        o.strip() for o in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        ).split(",") if o.strip()
    ]

    # JWT settings (access and refresh tokens are signed with different secrets)
    access_token_secret: str = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 1 day
    refresh_token_secret: str = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret")
    refresh_token_expire_minutes: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", "14400"))  # 10 days
    jwt_alg: str = os.getenv("JWT_ALG", "HS256")

    # Session cookies are always httpOnly; secure can be relaxed for local http development
    cookie_secure: bool = _env_flag("COOKIE_SECURE", "true")

    # Cloudinary settings (media host for avatars and cover images)
    cloudinary_cloud_name: str | None = os.getenv("CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: str | None = os.getenv("CLOUDINARY_API_KEY")
    cloudinary_api_secret: str | None = os.getenv("CLOUDINARY_API_SECRET")
    cloudinary_api_url: str = os.getenv("CLOUDINARY_API_URL", "https://api.cloudinary.com/v1_1")
    media_timeout_sec: float = float(os.getenv("MEDIA_TIMEOUT_SEC", "60"))

    # Uploaded files are buffered here before being pushed to the media host
    upload_tmp_dir: str = os.getenv("UPLOAD_TMP_DIR", tempfile.gettempdir())

settings = Settings()  # Instantiate configuration
