"""
Excepcion base para todas las excepciones personalizadas del servicio.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Excepcion base del servicio.
    Todas las excepciones personalizadas deben heredar de esta clase.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Inicializa la excepcion.

        Args:
            message: Mensaje de error descriptivo
            error_code: Codigo de error personalizado
            details: Contexto adicional (record id, etapa, status HTTP...)
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)
