from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=True)

    # JWT
    jwt_secret_key: str
    jwt_algorithm: str = Field(default="HS256")
    jwt_expiration_hours: int = Field(default=24)

    # Passwords
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # Database
    database_url: str = Field(default="sqlite:///./mediconnect.db")

    # CORS
    frontend_url: Optional[str] = Field(default=None)
    cors_origins: str = Field(default="http://localhost:3000")

    # Profile picture uploads
    upload_dir: str = Field(default="./uploads")
    allowed_image_types: str = Field(default="jpg,jpeg,png,webp")
    max_upload_size_mb: int = Field(default=5)

    # Prescription storage
    storage_provider: str = Field(default="local")
    storage_path: str = Field(default="./storage")
    public_base_url: str = Field(default="http://localhost:5000")
    supabase_url: Optional[str] = Field(default=None)
    supabase_service_key: Optional[str] = Field(default=None)
    supabase_bucket: str = Field(default="prescriptions")
    storage_timeout_seconds: float = Field(default=30.0)

    # Monitoring
    prometheus_enabled: bool = Field(default=True)

    @field_validator("jwt_secret_key")
    @classmethod
    def secret_must_be_set(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("JWT_SECRET_KEY must be set")
        return value

    @property
    def allowed_image_types_list(self) -> List[str]:
        return [ext.strip().lower() for ext in self.allowed_image_types.split(",") if ext.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        if self.frontend_url:
            origins.append(self.frontend_url)
        return origins

settings = Settings()
