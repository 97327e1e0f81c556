"""
Integracion con la API de Limitless (origen de lifelogs).
"""
