"""
Entidad de dominio para un lifelog de Limitless.

Se mantiene libre de I/O para poder testearla facilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from lifelog_sync.shared.utils.datetime_utils import DateTimeUtils


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


@dataclass(frozen=True)
class SourceRecord:
    """
    Registro de origen (un lifelog marcado con estrella).

    - `raw` conserva el dict original de la API; es lo que se serializa en el
      prompt del mapper para que el LLM vea todos los campos (p.ej. `contents`).
    - Cualquier campo puede faltar; `id` no es confiable como clave.
    """

    id: Optional[str] = None
    title: Optional[str] = None
    markdown: Optional[str] = None
    text: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    updated_at: Optional[str] = None
    is_starred: bool = True
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "SourceRecord":
        """Construye el registro desde el payload de Limitless."""
        return cls(
            id=_optional_str(data.get("id")),
            title=_optional_str(data.get("title")),
            markdown=_optional_str(data.get("markdown")),
            text=_optional_str(data.get("text")),
            start_time=_optional_str(data.get("startTime")),
            end_time=_optional_str(data.get("endTime")),
            updated_at=_optional_str(data.get("updatedAt")),
            is_starred=bool(data.get("isStarred", True)),
            raw=dict(data),
        )

    @property
    def effective_timestamp(self) -> Optional[str]:
        """
        Timestamp usado contra el watermark: updatedAt > endTime > startTime.

        Retorna el string original (sin normalizar) o None si no hay ninguno.
        """
        return self.updated_at or self.end_time or self.start_time

    @property
    def effective_datetime(self) -> Optional[datetime]:
        """Timestamp efectivo parseado a UTC; None si falta o no es ISO 8601."""
        return DateTimeUtils.from_iso_string(self.effective_timestamp)

    @property
    def body_content(self) -> Optional[str]:
        """Contenido del cuerpo: markdown, si no text."""
        return self.markdown or self.text

    @property
    def display_title(self) -> str:
        """Titulo para logs: title, primer bloque de `contents`, o 'Untitled'."""
        if self.title:
            return self.title
        contents = self.raw.get("contents")
        if isinstance(contents, list) and contents and isinstance(contents[0], dict):
            content = contents[0].get("content")
            if content:
                return str(content)
        return "Untitled"

    @property
    def log_id(self) -> str:
        return self.id or "unknown"
