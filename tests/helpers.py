"""
Fakes y factories compartidos por los tests unitarios.
"""
from typing import Any, Dict, List, Optional

from lifelog_sync.domain.entities.destination_schema import DestinationSchema
from lifelog_sync.domain.entities.lifelog import SourceRecord
from lifelog_sync.shared.exceptions.sync import WriteError


NOTION_PROPERTIES: Dict[str, Any] = {
    "Name": {"id": "title", "type": "title", "title": {}},
    "Notes": {"id": "n1", "type": "rich_text", "rich_text": {}},
    "Summary": {"id": "s1", "type": "rich_text", "rich_text": {}},
    "Category": {
        "id": "c1",
        "type": "select",
        "select": {"options": [{"name": "Work"}, {"name": "Personal"}]},
    },
    "Tags": {
        "id": "t1",
        "type": "multi_select",
        "multi_select": {"options": [{"name": "idea"}, {"name": "meeting"}]},
    },
    "Date": {"id": "d1", "type": "date", "date": {}},
}


class FakeSource:
    """Origen en memoria con la firma de LimitlessClient.fetch_starred."""

    def __init__(self, records: Optional[List[SourceRecord]] = None, error: Optional[Exception] = None):
        self.records = records or []
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def fetch_starred(self, since: str, limit: Optional[int] = None) -> List[SourceRecord]:
        self.calls.append({"since": since, "limit": limit})
        if self.error is not None:
            raise self.error
        return list(self.records)


class FakeWriter:
    """Escritor en memoria; falla para los ids indicados."""

    def __init__(self, failing_ids: Optional[set] = None):
        self.failing_ids = failing_ids or set()
        self.pages: List[Dict[str, Any]] = []

    async def create_page(self, properties: Dict[str, dict], body_content: Optional[str] = None) -> str:
        record_id = properties.get("Name", {}).get("title", [{}])[0].get("text", {}).get("content")
        if record_id in self.failing_ids:
            raise WriteError("Notion API error: 400 Bad Request - validation_error", status_code=400)
        self.pages.append({"properties": properties, "body": body_content})
        return f"page-{len(self.pages)}"


class FakeSchemaProvider:
    """Proveedor de schema que cuenta fetches en vivo."""

    def __init__(self, raw_properties: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.raw_properties = raw_properties if raw_properties is not None else NOTION_PROPERTIES
        self.error = error
        self.fetch_count = 0

    async def fetch_schema(self) -> DestinationSchema:
        self.fetch_count += 1
        if self.error is not None:
            raise self.error
        return DestinationSchema.from_notion(self.raw_properties)


def make_record(record_id: str, updated_at: Optional[str] = None, **extra: Any) -> SourceRecord:
    """Construye un lifelog cuyo titulo es su id (facilita aserciones)."""
    data: Dict[str, Any] = {"id": record_id, "title": record_id, "isStarred": True}
    if updated_at is not None:
        data["updatedAt"] = updated_at
    data.update(extra)
    return SourceRecord.from_api(data)
