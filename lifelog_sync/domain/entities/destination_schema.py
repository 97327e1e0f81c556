"""
Schema de la base de datos Notion de destino.

Notion describe cada propiedad como:
    {"id": "...", "type": "select", "select": {"options": [{"name": "A"}, ...]}}

Aqui se normaliza a PropertyDescriptor(name, type, options) sin lanzar nunca
por entradas malformadas: lo que no se entiende se trata como vacio.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


ENUMERABLE_TYPES = ("select", "multi_select", "status")
TITLE_TYPE = "title"
LONG_TEXT_TYPE = "rich_text"
DEFAULT_TITLE_PROPERTY = "Title"
RICH_TEXT_MAX_LENGTH = 2000


def build_rich_text(content: str) -> list[dict[str, Any]]:
    """
    Divide `content` en elementos rich_text consecutivos.

    Notion rechaza (400 validation_error) cualquier `text.content` de mas de
    RICH_TEXT_MAX_LENGTH caracteres.
    """
    return [
        {"text": {"content": content[start:start + RICH_TEXT_MAX_LENGTH]}}
        for start in range(0, len(content), RICH_TEXT_MAX_LENGTH)
    ]


def _option_names(descriptor: dict[str, Any], prop_type: str) -> tuple[str, ...]:
    config = descriptor.get(prop_type)
    if not isinstance(config, dict):
        return ()
    options = config.get("options")
    if not isinstance(options, list):
        return ()
    names = []
    for opt in options:
        if isinstance(opt, dict) and opt.get("name"):
            names.append(str(opt["name"]))
    return tuple(names)


@dataclass(frozen=True)
class PropertyDescriptor:
    """Descriptor de una propiedad de la base de datos."""

    name: str
    type: str
    options: tuple[str, ...] = ()

    @property
    def is_enumerable(self) -> bool:
        return self.type in ENUMERABLE_TYPES

    def summary(self) -> dict[str, Any]:
        """Resumen serializable para el prompt del mapper."""
        info: dict[str, Any] = {"name": self.name, "type": self.type}
        if self.is_enumerable:
            info["options"] = list(self.options)
        return info


@dataclass(frozen=True)
class DestinationSchema:
    """
    Mapeo nombre de propiedad -> descriptor.

    `raw` conserva el mapeo `properties` original de Notion; es lo que se
    persiste en el cache de schema.
    """

    properties: dict[str, PropertyDescriptor] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_notion(cls, raw_properties: Any) -> "DestinationSchema":
        """Construye el schema desde `database.properties` de Notion."""
        if not isinstance(raw_properties, dict):
            return cls()

        properties: dict[str, PropertyDescriptor] = {}
        for name, descriptor in raw_properties.items():
            if not isinstance(descriptor, dict):
                properties[str(name)] = PropertyDescriptor(name=str(name), type="unknown")
                continue
            prop_type = str(descriptor.get("type") or "unknown")
            options = _option_names(descriptor, prop_type) if prop_type in ENUMERABLE_TYPES else ()
            properties[str(name)] = PropertyDescriptor(name=str(name), type=prop_type, options=options)
        return cls(properties=properties, raw=dict(raw_properties))

    def __len__(self) -> int:
        return len(self.properties)

    def __contains__(self, name: object) -> bool:
        return name in self.properties

    def get(self, name: str) -> Optional[PropertyDescriptor]:
        return self.properties.get(name)

    def first_of_type(self, prop_type: str) -> Optional[PropertyDescriptor]:
        """Primera propiedad (en orden del schema) con el tipo indicado."""
        for descriptor in self.properties.values():
            if descriptor.type == prop_type:
                return descriptor
        return None

    def title_property_name(self) -> str:
        """Nombre de la propiedad con rol de titulo ('Title' si el schema no tiene una)."""
        descriptor = self.first_of_type(TITLE_TYPE)
        return descriptor.name if descriptor else DEFAULT_TITLE_PROPERTY

    def summary(self) -> list[dict[str, Any]]:
        return [descriptor.summary() for descriptor in self.properties.values()]
