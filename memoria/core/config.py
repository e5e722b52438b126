from typing import List, Optional, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    # Application
    APP_NAME: str = "MemoriaAPI"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DB_USER: str = "memoria"
    DB_PASSWORD: str = "memoria"
    DB_NAME: str = "memoria"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_URL: Optional[str] = None
    DB_CREATE_TABLES: bool = False

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Identity provider tokens
    AUTH_JWT_KEY: str
    AUTH_JWT_ALGORITHMS: Union[List[str], str] = ["HS256"]
    AUTH_JWT_ISSUER: Optional[str] = None
    AUTH_JWT_AUDIENCE: Optional[str] = None

    @field_validator("AUTH_JWT_ALGORITHMS", mode="before")
    @classmethod
    def assemble_jwt_algorithms(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and v.startswith("["):
            return json.loads(v)
        elif isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    # CORS
    BACKEND_CORS_ORIGINS: Union[List[str], str] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str) and v.startswith("["):
            return json.loads(v)
        return v

    # User search
    SEARCH_MIN_QUERY_LENGTH: int = 2
    SEARCH_RESULT_LIMIT: int = 10


settings = Settings()
