from lifelog_sync.domain.entities.destination_schema import (
    DestinationSchema,
    PropertyDescriptor,
    build_rich_text,
)
from lifelog_sync.domain.entities.lifelog import SourceRecord

__all__ = ["DestinationSchema", "PropertyDescriptor", "SourceRecord", "build_rich_text"]
