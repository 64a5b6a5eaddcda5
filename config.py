from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    APP_NAME: str = "Moodify API"
    DEBUG_MODE: bool = True

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./moodify.db")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 12

    # Uploads
    UPLOAD_PATH: str = os.getenv("UPLOAD_PATH", "./uploads/songs")
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_AUDIO_EXTENSIONS: List[str] = ["mp3", "wav", "flac", "m4a", "aac"]

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8501"]

    # Game catalog is seeded on startup when empty
    SEED_GAME_CATALOG: bool = True

    model_config = SettingsConfigDict(case_sensitive=True)

@lru_cache()
def get_settings():
    return Settings()
