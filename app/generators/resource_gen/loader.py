"""Load entity schemas from JSON or YAML documents."""
import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from app.generators.resource_gen.errors import MalformedFieldError
from app.generators.resource_gen.types import DataType, Entity, EntityField


def parse_field(entity_name: str, field_data: Dict[str, Any]) -> EntityField:
    name = field_data.get("name", "")
    raw_type = field_data.get("dataType")
    try:
        data_type = DataType(raw_type)
    except ValueError:
        raise MalformedFieldError(entity_name, name, f"unknown data type {raw_type!r}") from None
    return EntityField(
        name=name,
        data_type=data_type,
        required=bool(field_data.get("required", False)),
        unique=bool(field_data.get("unique", False)),
        searchable=bool(field_data.get("searchable", True)),
        properties=dict(field_data.get("properties") or {}),
    )


def parse_schema(data: Dict[str, Any]) -> Tuple[List[Entity], Dict[str, str]]:
    """
    Convert a schema document into entities and the entity id lookup.

    Entities declaring an ``id`` are added to the lookup unless
    ``entityIdToName`` already maps that id.
    """
    entities = []
    for entity_data in data.get("entities", []):
        name = entity_data.get("name", "")
        entities.append(Entity(
            name=name,
            fields=tuple(parse_field(name, f) for f in entity_data.get("fields", [])),
            id=entity_data.get("id"),
        ))

    entity_id_to_name = {entity.id: entity.name for entity in entities if entity.id is not None}
    entity_id_to_name.update(data.get("entityIdToName") or {})
    return entities, entity_id_to_name


def load_schema(schema_path: Path) -> Tuple[List[Entity], Dict[str, str]]:
    """Read a ``.json``, ``.yaml`` or ``.yml`` schema file."""
    with open(schema_path, "r", encoding="utf-8") as f:
        if schema_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)
    return parse_schema(data)
