"""Application configuration"""
import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Database Configuration
    DATABASE_USER = os.getenv("DATABASE_USER", "postgres")
    DATABASE_PASSWORD = os.getenv("DATABASE_PASSWORD", "123456")
    DATABASE_HOST = os.getenv("DATABASE_HOST", "localhost")
    DATABASE_PORT = os.getenv("DATABASE_PORT", "5432")
    DATABASE_NAME = os.getenv("DATABASE_NAME", "roast")

    @property
    def DATABASE_URL(self) -> str:
        """Use DATABASE_URL when set, otherwise construct a PostgreSQL URL"""
        url = os.getenv("DATABASE_URL")
        if url:
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://"):]
            return url
        return f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"

    # OpenAI Configuration
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
    OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", 0.85))
    # Single best-effort deadline for the analysis call; no retries.
    ANALYSIS_TIMEOUT_SECONDS = float(os.getenv("ANALYSIS_TIMEOUT_SECONDS", 60))

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "").strip()
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "").strip()
    STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd")
    # Public base URL of the front-end (used to build success/cancel URLs)
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")

    # Identity provider tokens
    AUTH_SECRET_KEY = os.getenv("AUTH_SECRET_KEY", "your-secret-key-change-this-in-production-min-32-chars")
    AUTH_ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")
    AUTH_AUDIENCE = os.getenv("AUTH_AUDIENCE") or None

    # Roast credits
    FREE_ROAST_ALLOTMENT = int(os.getenv("FREE_ROAST_ALLOTMENT", 3))
    SINGLE_ROAST_PRICE_CENTS = int(os.getenv("SINGLE_ROAST_PRICE_CENTS", 700))

    # Input limits
    MAX_RESUME_CHARS = int(os.getenv("MAX_RESUME_CHARS", 20000))
    MAX_JOB_DESCRIPTION_CHARS = int(os.getenv("MAX_JOB_DESCRIPTION_CHARS", 20000))

    # Logging Configuration
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "")

    # Comma-separated list of allowed front-end origins
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Development/Production Settings
    ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

    # Project Metadata
    PROJECT_NAME = "Rejection Roast API"
    PROJECT_VERSION = "1.0.0"
    API_V1_STR = "/api/v1"


settings = Settings()
