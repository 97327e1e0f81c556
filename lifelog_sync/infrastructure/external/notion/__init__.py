"""
Integracion con la API de Notion (destino).
"""
