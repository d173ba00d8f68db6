"""
Configuración centralizada de la aplicación

Values come from environment variables or a local .env file.

Author: TM3
"""
import json
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # API Settings
    API_TITLE: str = "Comanda API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Inventario, pedidos e integración con MercadoPago"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    # Session cookie
    AUTH_SECRET: str = ""
    AUTH_COOKIE_NAME: str = "__session"
    AUTH_COOKIE_DOMAIN: str = ""
    AUTH_SESSION_TTL: int = 604800  # 7 days

    # MercadoPago OAuth + webhooks
    MP_CLIENT_ID: str = ""
    MP_CLIENT_SECRET: str = ""
    MP_REDIRECT_URI: str = ""
    MP_AUTH_BASE_URL: str = "https://auth.mercadopago.com.mx"
    MP_API_BASE_URL: str = "https://api.mercadopago.com"
    MP_WEBHOOK_SECRET: str = ""

    # Presentation
    DEFAULT_LOCALE: str = "es-MX"
    DEFAULT_CURRENCY: str = "MXN"
    DEFAULT_TIME_ZONE: str = "America/Mexico_City"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cookie_domain(self) -> Optional[str]:
        """Wildcard domains are not valid cookie domains, fall back to host-only"""
        if not self.AUTH_COOKIE_DOMAIN or "*" in self.AUTH_COOKIE_DOMAIN:
            return None
        return self.AUTH_COOKIE_DOMAIN

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
