"""
Configurações da aplicação.
Carrega variáveis de ambiente.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configurações carregadas do .env"""

    # App
    APP_NAME: str = "WhatsApp Gateway"
    ENVIRONMENT: str = "development"
    PORT: int = 8001

    # CORS - origens permitidas (separadas por vírgula)
    CORS_ORIGINS: str = "http://localhost:5173"

    # Sessao do driver
    # Ambos sao repassados ao driver sem interpretacao
    SESSION_STORAGE_PATH: str = "./auth_session"
    DRIVER_EXECUTABLE_PATH: Optional[str] = None

    # Evolution API
    EVOLUTION_API_URL: str = "http://localhost:8080"
    EVOLUTION_API_KEY: str = ""
    EVOLUTION_INSTANCE: str = "gateway"
    WEBHOOK_URL: str = ""  # URL publica de /webhook/evolution

    # Shutdown
    SHUTDOWN_TIMEOUT_SECONDS: float = 10.0

    @property
    def is_production(self) -> bool:
        """Retorna True se está em produção."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Retorna lista de origens CORS permitidas.

        Em produção, deve ser configurado explicitamente.
        """
        if self.CORS_ORIGINS == "*":
            if self.is_production:
                import logging
                logging.warning(
                    "CORS_ORIGINS='*' em produção. "
                    "Configure origens específicas para maior segurança."
                )
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignora variáveis extras do .env


@lru_cache()
def get_settings() -> Settings:
    """Retorna instância cacheada das configurações."""
    return Settings()


settings = get_settings()
