"""
Clientes de servicios de terceros: Limitless (origen), Notion (destino) y
OpenAI (mapeo de propiedades).
"""
