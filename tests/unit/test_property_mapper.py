"""
Tests unitarios para OpenAIPropertyMapper.
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from lifelog_sync.infrastructure.external.llm.property_mapper import (
    OpenAIPropertyMapper,
    build_mapping_prompt,
)
from lifelog_sync.shared.exceptions.sync import MapperError
from tests.helpers import make_record


def _completion(content):
    """Respuesta minima con la forma de ChatCompletion."""
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _mapper(response=None, error=None) -> OpenAIPropertyMapper:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
    client.close = AsyncMock()
    return OpenAIPropertyMapper(api_key="test", client=client)


class TestBuildMappingPrompt:
    """Tests para build_mapping_prompt()."""

    def test_includes_schema_and_lifelog(self, schema) -> None:
        record = make_record("rec-1", "2025-01-01T00:00:05Z", markdown="notas")

        prompt = build_mapping_prompt(schema, record)

        assert '"Category"' in prompt
        assert '"Work"' in prompt
        assert '"rec-1"' in prompt
        assert "notas" in prompt
        assert "Return ONLY valid JSON" in prompt


class TestTransform:
    """Tests para OpenAIPropertyMapper.transform()."""

    @pytest.mark.asyncio
    async def test_returns_parsed_properties(self, schema) -> None:
        mapped = {"Name": {"title": [{"text": {"content": "X"}}]}}
        mapper = _mapper(_completion(json.dumps(mapped)))

        assert await mapper.transform(schema, make_record("a")) == mapped

    @pytest.mark.asyncio
    async def test_requests_json_object_at_low_temperature(self, schema) -> None:
        mapper = _mapper(_completion("{}"))

        await mapper.transform(schema, make_record("a"))

        kwargs = mapper._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.3
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   ", "no es json", "[1, 2]"])
    async def test_invalid_content_raises_mapper_error(self, schema, content) -> None:
        mapper = _mapper(_completion(content))

        with pytest.raises(MapperError):
            await mapper.transform(schema, make_record("a"))

    @pytest.mark.asyncio
    async def test_api_error_raises_mapper_error(self, schema) -> None:
        mapper = _mapper(error=RuntimeError("rate limited"))

        with pytest.raises(MapperError) as exc_info:
            await mapper.transform(schema, make_record("a"))

        assert "rate limited" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self) -> None:
        mapper = _mapper(_completion("{}"))

        await mapper.aclose()

        mapper._client.close.assert_awaited_once()
