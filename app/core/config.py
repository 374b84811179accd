from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional

class Settings(BaseSettings):
    SERVICE_NAME: str = Field(default="campus-gate", env="SERVICE_NAME")
    PROJECT_NAME: str = Field(default="campus-gate", env="PROJECT_NAME")
    VERSION: str = Field(default="1.0.0", env="VERSION")
    DEBUG: bool = Field(default=False, env="DEBUG")

    MONGODB_URL: str = Field(default="mongodb://localhost:27017", env="MONGODB_URL")
    DATABASE_NAME: str = Field(default="lms_platform", env="DATABASE_NAME")

    HOST: str = Field(default="0.0.0.0", env="HOST")
    PORT: int = Field(default=8000, env="PORT")

    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")

    # Auth service (GoTrue compatible)
    AUTH_SERVICE_URL: str = Field(default="http://localhost:9999", env="AUTH_SERVICE_URL")
    AUTH_SERVICE_API_KEY: Optional[str] = Field(default=None, env="AUTH_SERVICE_API_KEY")
    AUTH_COOKIE_PROJECT_REF: Optional[str] = Field(default=None, env="AUTH_COOKIE_PROJECT_REF")

    # Bare platform host, e.g. "platform.com". Derived from the Host header when unset.
    PLATFORM_DOMAIN: Optional[str] = Field(default=None, env="PLATFORM_DOMAIN")

    TENANT_LOOKUP_TIMEOUT_SECONDS: float = Field(default=3.0, env="TENANT_LOOKUP_TIMEOUT_SECONDS")
    SESSION_VALIDATION_TIMEOUT_SECONDS: float = Field(default=5.0, env="SESSION_VALIDATION_TIMEOUT_SECONDS")

    # 0 disables caching
    TENANT_CACHE_TTL_SECONDS: float = Field(default=300.0, env="TENANT_CACHE_TTL_SECONDS")
    SESSION_CACHE_TTL_SECONDS: float = Field(default=120.0, env="SESSION_CACHE_TTL_SECONDS")
    TENANT_CACHE_MAX_ENTRIES: int = Field(default=1024, env="TENANT_CACHE_MAX_ENTRIES")
    SESSION_CACHE_MAX_ENTRIES: int = Field(default=4096, env="SESSION_CACHE_MAX_ENTRIES")

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
