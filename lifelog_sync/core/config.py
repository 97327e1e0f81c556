"""
Configuracion central del servicio.
Gestiona variables de entorno y valores por defecto.

Variables obligatorias (el proceso termina con codigo 1 si falta alguna):
- LIMITLESS_API_KEY
- NOTION_API_KEY
- NOTION_DATABASE_ID
- OPENAI_API_KEY
"""
from typing import List

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings

from lifelog_sync.shared.exceptions.sync import ConfigurationError


REQUIRED_SETTINGS = (
    "LIMITLESS_API_KEY",
    "NOTION_API_KEY",
    "NOTION_DATABASE_ID",
    "OPENAI_API_KEY",
)


class Settings(BaseSettings):
    """
    Clase de configuracion del servicio.
    Lee variables de entorno (y .env) y proporciona valores por defecto.
    """

    APP_NAME: str = Field(default="Limitless -> Notion Sync")
    APP_VERSION: str = Field(default="1.0.0")

    # Limitless (origen)
    LIMITLESS_API_KEY: str = Field(default="")
    LIMITLESS_API_URL: str = Field(default="https://api.limitless.ai/v1/lifelogs")
    LIMITLESS_PAGE_LIMIT: int = Field(default=10, ge=1, le=100)

    # Notion (destino)
    NOTION_API_KEY: str = Field(default="")
    NOTION_DATABASE_ID: str = Field(default="")
    NOTION_API_URL: str = Field(default="https://api.notion.com/v1")
    NOTION_VERSION: str = Field(default="2022-06-28")

    # OpenAI (mapeo de propiedades)
    OPENAI_API_KEY: str = Field(default="")
    OPENAI_MODEL: str = Field(default="gpt-4o-mini")
    MAPPER_TEMPERATURE: float = Field(default=0.3, ge=0.0, le=2.0)

    # Polling
    POLL_INTERVAL_MS: int = Field(default=30000, gt=0)
    HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    SHUTDOWN_GRACE_SECONDS: float = Field(default=10.0, ge=0)

    # Archivos de estado
    STATE_FILE: str = Field(default=".last-seen-state.json")
    SCHEMA_CACHE_FILE: str = Field(default=".notion-schema-cache.json")
    SCHEMA_CACHE_TTL_MS: int = Field(default=3600000, gt=0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/lifelog_sync.log")

    @computed_field
    @property
    def poll_interval_seconds(self) -> float:
        """Intervalo de polling expresado en segundos."""
        return self.POLL_INTERVAL_MS / 1000

    def missing_required(self) -> List[str]:
        """Retorna los nombres de las variables obligatorias sin valor."""
        return [name for name in REQUIRED_SETTINGS if not getattr(self, name)]

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


def validate_config(config: Settings) -> None:
    """
    Valida que la configuracion critica este presente.

    Raises:
        ConfigurationError: Si falta alguna variable obligatoria
    """
    missing = config.missing_required()
    if missing:
        raise ConfigurationError(
            f"Faltan variables de entorno obligatorias: {', '.join(missing)}",
            missing=missing,
        )


def get_settings() -> Settings:
    """Construye la configuracion leyendo el entorno actual."""
    return Settings()
