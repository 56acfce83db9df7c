# app/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Brainwave API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # Public frontend URL (OAuth redirects, PayPal return/cancel pages)
    app_url: str = os.getenv("APP_URL", os.getenv("VITE_APP_URL", "http://localhost:3000"))

    # CORS origins for frontend (comma-separated in CORS_ORIGINS)
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    # JWT / auth cookie
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me-before-deploying-brainwave")
    jwt_expires_in: str = os.getenv("JWT_EXPIRES_IN", "7d")  # 7d, 12h, 30m, 45s or plain seconds
    auth_cookie_name: str = os.getenv("AUTH_COOKIE_NAME", "token")

    # PayPal (Orders v2 API)
    paypal_mode: str = os.getenv("PAYPAL_MODE", "sandbox")  # "sandbox" or "live"
    paypal_client_id: str | None = os.getenv("PAYPAL_CLIENT_ID")
    paypal_client_secret: str | None = os.getenv("PAYPAL_CLIENT_SECRET")
    paypal_timeout_seconds: float = float(os.getenv("PAYPAL_TIMEOUT_SECONDS", "15"))
    paypal_brand_name: str = os.getenv("PAYPAL_BRAND_NAME", "Brainwave")

    # Google OAuth2 (federated login)
    google_client_id: str | None = os.getenv("GOOGLE_CLIENT_ID")
    google_client_secret: str | None = os.getenv("GOOGLE_CLIENT_SECRET")
    google_callback_url: str = os.getenv("GOOGLE_CALLBACK_URL", "http://localhost:8000/api/v1/auth/google/callback")

    # Image generation (OpenAI-compatible endpoint, e.g. OpenRouter)
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    ai_api_base: str = os.getenv("AI_API_BASE", "https://openrouter.ai/api/v1")
    ai_image_model: str = os.getenv("AI_IMAGE_MODEL", "dall-e-3")
    ai_timeout_seconds: float = float(os.getenv("AI_TIMEOUT_SECONDS", "60"))

    # Per-client-IP rate limits (limits notation: "<count> per <n> <unit>")
    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "1") == "1"
    rate_limit_default: str = os.getenv("RATE_LIMIT_DEFAULT", "100 per 15 minutes")
    rate_limit_auth: str = os.getenv("RATE_LIMIT_AUTH", "5 per 15 minutes")
    rate_limit_ai: str = os.getenv("RATE_LIMIT_AI", "10 per minute")
    rate_limit_storage_uri: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")  # e.g. redis://host:6379 across workers

    @property
    def is_production(self) -> bool:
        return self.env.lower() in ("prod", "production")

    @property
    def paypal_api_base(self) -> str:
        if self.paypal_mode == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"

settings = Settings()  # Instantiate configuration
