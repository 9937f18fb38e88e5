"""
Runtime configuration for the Academy Portal API.

Values come from the environment or a local .env file. MONGO_URI and
JWT_SECRET have no defaults, so a missing value fails startup.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    MONGO_URI: str = Field(..., description="MongoDB connection string")
    DATABASE_NAME: str = "academy"

    # Security
    JWT_SECRET: str = Field(..., description="Secret used to sign student tokens")
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # Server
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 10000
    CORS_ORIGINS: List[str] = [
        "https://academy-student-portal.onrender.com",
        "http://localhost:3000",
    ]
    FRONTEND_DIR: str = "frontend"

    # Media storage
    STORAGE_BACKEND: str = "local"  # local or s3
    UPLOAD_DIR: str = "uploads"
    S3_BUCKET_NAME: Optional[str] = None
    S3_REGION: Optional[str] = None
    AWS_ACCESS_KEY: Optional[str] = None
    AWS_SECRET_KEY: Optional[str] = None

    # Exams
    MAX_PDF_BYTES: int = 20 * 1024 * 1024
    MAX_QUESTIONS: int = 100
    MIN_OPTIONS: int = 3
    EXTRACT_STRATEGY: Literal["lines", "split"] = "lines"
    PLACEHOLDER_OPTIONS: bool = False  # A)-D) placeholders for blocks without options
    CASE_SENSITIVE_SCORING: bool = False
    EXPOSE_ANSWERS: bool = False

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
