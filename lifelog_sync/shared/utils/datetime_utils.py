"""
Utilidades para manejo de fechas y horas.
"""
import time
from datetime import datetime, timezone
from typing import Optional


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""

    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.

        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def now_epoch_ms() -> int:
        """Milisegundos desde epoch (formato del cache de schema)."""
        return int(time.time() * 1000)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """
        Normaliza datetime a UTC (aware).

        Los naive se asumen en UTC.
        """
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """
        Convierte un datetime a ISO 8601 en UTC con milisegundos y sufijo 'Z'.

        Ej: 2025-01-01T00:00:05.000Z

        Args:
            dt: Objeto datetime

        Returns:
            str: Fecha en formato ISO 8601
        """
        dt_utc = DateTimeUtils.ensure_utc(dt)
        return dt_utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @staticmethod
    def from_iso_string(iso_string: Optional[str]) -> Optional[datetime]:
        """
        Convierte un string ISO 8601 a datetime aware en UTC.

        Acepta el sufijo 'Z' que devuelven Limitless y Notion.

        Args:
            iso_string: String en formato ISO 8601

        Returns:
            Optional[datetime]: Objeto datetime o None si hay error
        """
        if not iso_string or not isinstance(iso_string, str):
            return None
        raw = iso_string.strip()
        if raw.endswith("Z") or raw.endswith("z"):
            raw = raw[:-1] + "+00:00"
        try:
            return DateTimeUtils.ensure_utc(datetime.fromisoformat(raw))
        except (ValueError, TypeError):
            return None
