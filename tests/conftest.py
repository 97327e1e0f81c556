"""
Configuracion de fixtures para pytest.
"""
from typing import Any, Dict

import pytest

from lifelog_sync.domain.entities.destination_schema import DestinationSchema
from tests.helpers import NOTION_PROPERTIES


@pytest.fixture
def notion_properties() -> Dict[str, Any]:
    return NOTION_PROPERTIES


@pytest.fixture
def schema() -> DestinationSchema:
    return DestinationSchema.from_notion(NOTION_PROPERTIES)
