from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List
import os

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class Settings(BaseSettings):
    # === DATABASE ===
    DATABASE_URL: str = Field(default="sqlite:///./greenghost.db", description="SQLAlchemy database URL")

    # === JWT AUTH ===
    SECRET_KEY: str = Field(default="change-me", description="Secret key for JWT token signing")
    ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 12, description="Admin token lifetime in minutes")

    # === EMAIL ===
    EMAIL_HOST: str = Field(default="", description="SMTP host; empty means log emails instead of sending")
    EMAIL_PORT: int = Field(default=587, description="SMTP port")
    EMAIL_HOST_USER: str = Field(default="", description="SMTP username")
    EMAIL_HOST_PASSWORD: str = Field(default="", description="SMTP password")
    EMAIL_USE_SSL: bool = Field(default=False, description="Implicit TLS (465) instead of STARTTLS")
    EMAIL_FROM_NAME: str = Field(default="GreenGhost", description="Display name on outgoing mail")
    VERIFICATION_FROM: str = Field(default="verify@greenghost.io")
    WELCOME_FROM: str = Field(default="welcome@greenghost.io")
    MARKETING_FROM: str = Field(default="noreply@greenghost.io")
    TEMPLATE_DIR: str = Field(default=os.path.join(PACKAGE_DIR, "templates", "email"))

    # === WAITLIST ===
    VERIFICATION_CODE_TTL_SECONDS: int = Field(default=90, description="Lifetime of a verification code")
    CAMPAIGN_ERROR_LIMIT: int = Field(default=10, description="Error strings returned per campaign send")
    CHECK_EMAIL_MX: bool = Field(default=False, description="Reject signup emails whose domain has no MX record")
    ZIP_LOOKUP_URL: str = Field(default="https://api.zippopotam.us/us")

    # === HTTP ===
    CORS_ORIGINS: List[str] = Field(default=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "https://greenghost.io",
    ])

    # === DEBUG MODE ===
    DEBUG: bool = Field(default=False, description="Debug mode")

    class Config:
        env_file = ".env"
        case_sensitive = False


# Create settings instance
settings = Settings()
