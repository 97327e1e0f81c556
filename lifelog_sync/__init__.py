"""
Servicio de sincronizacion Limitless -> Notion.

Hace polling de lifelogs marcados con estrella, los mapea a propiedades de una
base de datos Notion (LLM + fallback determinista) y los inserta como paginas.
"""

__version__ = "1.0.0"
