import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    """Configuration settings for the application."""
    PROJECT_NAME: str = "Foodie API"
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "foodie")

    # auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "MySecretKey@123")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    VERIFY_SECRET_KEY: str = os.getenv("VERIFY_SECRET_KEY", "VerifySecret@123")
    VERIFY_TOKEN_EXPIRE_MINUTES: int = 15

    # deals
    DEALS_PER_LOCATION: int = 3
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    DEAL_EXPIRY_INTERVAL_SECONDS: int = 3600

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
