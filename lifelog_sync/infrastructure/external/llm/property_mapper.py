"""
OpenAIPropertyMapper - Mapea un lifelog de Limitless a propiedades de Notion usando el LLM.

El LLM recibe un resumen del schema (nombre, tipo y opciones cerradas) y el
lifelog serializado, y debe responder UNICAMENTE con un objeto JSON.
"""
import json
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from loguru import logger

from lifelog_sync.domain.entities.destination_schema import DestinationSchema
from lifelog_sync.domain.entities.lifelog import SourceRecord
from lifelog_sync.shared.exceptions.sync import MapperError


MAPPER_SYSTEM_PROMPT = (
    "You are a helpful assistant that maps data between different formats. "
    "Always return valid JSON only."
)


MAPPER_USER_PROMPT_TEMPLATE = """You are a data mapping assistant. Your task is to map data from a Limitless lifelog to a Notion database.

NOTION DATABASE SCHEMA:
{schema}

LIMITLESS LIFELOG DATA:
{lifelog}

Analyze the lifelog data and the available Notion properties. Determine the best way to map the lifelog data to the Notion properties.

Return a JSON object where each key is a Notion property name, and the value is the properly formatted Notion property value object according to the Notion API format.

IMPORTANT RULES:
1. Only include properties that exist in the schema
2. Use the correct Notion API format for each property type:
   - title: {{"title": [{{"text": {{"content": "value"}}}}]}}
   - rich_text: {{"rich_text": [{{"text": {{"content": "value"}}}}]}}
   - date: {{"date": {{"start": "ISO8601-string"}}}} or null
   - select: {{"select": {{"name": "option-name"}}}} or null (must match existing option)
   - multi_select: {{"multi_select": [{{"name": "option1"}}, {{"name": "option2"}}]}} (must match existing options)
   - status: {{"status": {{"name": "option-name"}}}} or null (must match existing option)
   - number: {{"number": 123.45}} or null
   - checkbox: {{"checkbox": true/false}}
   - url: {{"url": "https://..."}} or null
   - email: {{"email": "email@example.com"}} or null
   - phone_number: {{"phone_number": "+1234567890"}} or null
3. For select/multi_select/status, ONLY use option names listed in the schema. Never invent new options; omit the property if nothing fits
4. Extract meaningful information from the lifelog (title, markdown content, timestamps, etc.)
5. Be smart about mapping - if a property name suggests a purpose (e.g., "Tags", "Category", "Priority"), try to infer appropriate values from the lifelog content

Return ONLY valid JSON, no markdown, no explanation."""


def build_mapping_prompt(schema: DestinationSchema, record: SourceRecord) -> str:
    """Construye el prompt de usuario con el schema resumido y el lifelog serializado."""
    lifelog = record.raw or {
        "id": record.id,
        "title": record.title,
        "markdown": record.markdown,
        "text": record.text,
        "startTime": record.start_time,
        "endTime": record.end_time,
        "updatedAt": record.updated_at,
    }
    return MAPPER_USER_PROMPT_TEMPLATE.format(
        schema=json.dumps(schema.summary(), indent=2, ensure_ascii=False),
        lifelog=json.dumps(lifelog, indent=2, ensure_ascii=False, default=str),
    )


class OpenAIPropertyMapper:
    """
    Transformador inteligente lifelog -> propiedades Notion.

    Usa temperatura baja y `response_format=json_object` para obtener un
    unico objeto JSON casi determinista.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Args:
            api_key: API key de OpenAI
            model: Modelo de chat a usar
            temperature: Temperatura de muestreo
            client: Cliente inyectado (tests)
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self._client: Optional[AsyncOpenAI] = client

    def _ensure_client(self) -> AsyncOpenAI:
        """Inicializa el cliente de OpenAI si no existe."""
        if not self._client:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def _get_api_params(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }

    async def transform(self, schema: DestinationSchema, record: SourceRecord) -> Dict[str, dict]:
        """
        Pide al LLM el mapeo de propiedades para un lifelog.

        Raises:
            MapperError: Si la llamada falla o la respuesta no es un objeto JSON.
        """
        client = self._ensure_client()
        messages = [
            {"role": "system", "content": MAPPER_SYSTEM_PROMPT},
            {"role": "user", "content": build_mapping_prompt(schema, record)},
        ]

        try:
            response = await client.chat.completions.create(**self._get_api_params(messages))
        except Exception as e:
            raise MapperError(
                f"Error llamando a OpenAI: {e}",
                details={"record_id": record.log_id, "model": self.model},
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise MapperError("Respuesta vacia del LLM", details={"record_id": record.log_id})

        try:
            properties = json.loads(content.strip())
        except json.JSONDecodeError as e:
            raise MapperError(
                f"Error parseando respuesta del LLM: {e}",
                details={"record_id": record.log_id},
            ) from e

        if not isinstance(properties, dict):
            raise MapperError(
                f"El LLM devolvio {type(properties).__name__}, se esperaba un objeto JSON",
                details={"record_id": record.log_id},
            )

        logger.debug(f"LLM genero {len(properties)} propiedad(es) para lifelog {record.log_id}")
        return properties

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
