"""
Excepciones del pipeline de sincronizacion Limitless -> Notion.

Politica de propagacion:
- Errores por registro (MapperError, WriteError) no salen del procesamiento del registro.
- Errores por ciclo (UpstreamFetchError, SchemaFetchError) no salen del ciclo.
- Solo ConfigurationError y el fetch inicial del schema terminan el proceso.
"""
from typing import Any, Dict, Optional

from lifelog_sync.shared.exceptions.base import AppException


class ConfigurationError(AppException):
    """Configuracion obligatoria ausente o invalida (fatal, solo en startup)."""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        details = {"missing": missing} if missing else None
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=details
        )
        self.missing = missing or []


class UpstreamFetchError(AppException):
    """Fallo consultando lifelogs en Limitless (se salta el ciclo)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="UPSTREAM_FETCH_ERROR",
            details=details
        )


class SchemaFetchError(AppException):
    """Fallo obteniendo el schema de la base de datos Notion."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="SCHEMA_FETCH_ERROR",
            details=details
        )


class MapperError(AppException):
    """El mapeo inteligente fallo o devolvio una respuesta invalida (activa el fallback)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="MAPPER_ERROR",
            details=details
        )


class WriteError(AppException):
    """Notion rechazo la creacion de la pagina (se salta el registro)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        merged = dict(details or {})
        if status_code is not None:
            merged["status_code"] = status_code
        super().__init__(
            message=message,
            error_code="WRITE_ERROR",
            details=merged
        )
        self.status_code = status_code


class StateIOError(AppException):
    """Error de I/O en archivos de estado (watermark, cache de schema)."""

    def __init__(self, path: str, operation: str, reason: str):
        super().__init__(
            message=f"Error de estado en {operation} de '{path}': {reason}",
            error_code="STATE_IO_ERROR",
            details={"path": path, "operation": operation}
        )
        self.path = path
        self.operation = operation
