from lifelog_sync.application.interfaces.sync_ports import (
    DestinationWriter,
    LifelogSource,
    MappedProperties,
    PropertyTransformer,
    SchemaProvider,
)

__all__ = [
    "DestinationWriter",
    "LifelogSource",
    "MappedProperties",
    "PropertyTransformer",
    "SchemaProvider",
]
