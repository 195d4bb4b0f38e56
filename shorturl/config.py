from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str
    ENVIRONMENT: str = "development"
    BASE_URL: str = "http://localhost:8000"

    CODE_LENGTH: int = 7
    MAX_CODE_ATTEMPTS: int = 10
    # Off by default: expired-but-active links keep resolving unless enabled
    ENFORCE_EXPIRY: bool = False

    CREATE_TABLES: bool = True
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
