"""
Mapeo inteligente de propiedades via LLM (OpenAI).
"""
