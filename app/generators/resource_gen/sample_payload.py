"""Helper for generating sample payloads for generated controller tests."""
from typing import Dict, Any, Mapping

from app.generators.resource_gen.entity import (
    get_enum_options,
    resolve_related_entity_name,
)
from app.generators.resource_gen.types import DataType, Entity, EntityField, FieldKind

SAMPLE_ID = "sample-id"
SAMPLE_DATETIME = "2026-01-01T00:00:00Z"

SERVER_MANAGED_DATA_TYPES = {DataType.ID, DataType.CREATED_AT, DataType.UPDATED_AT}

_SCALAR_SAMPLES = {
    DataType.ID: SAMPLE_ID,
    DataType.CREATED_AT: SAMPLE_DATETIME,
    DataType.UPDATED_AT: SAMPLE_DATETIME,
    DataType.SINGLE_LINE_TEXT: "test",
    DataType.MULTI_LINE_TEXT: "test",
    DataType.EMAIL: "test@example.com",
    DataType.WHOLE_NUMBER: 1,
    DataType.DECIMAL_NUMBER: 1.5,
    DataType.DATE_TIME: SAMPLE_DATETIME,
    DataType.BOOLEAN: True,
    DataType.JSON: {},
}


def sample_value(entity: Entity, field: EntityField, entity_id_to_name: Mapping[str, str]) -> Any:
    """Return a value that validates against the field's generated type."""
    if field.kind == FieldKind.RELATION:
        resolve_related_entity_name(entity, field, entity_id_to_name)
        if field.is_to_many:
            return [{"id": SAMPLE_ID}]
        return {"id": SAMPLE_ID}
    if field.kind == FieldKind.ENUM:
        first = get_enum_options(entity, field)[0]
        value = first.get("value") if isinstance(first, dict) else first
        if field.data_type == DataType.MULTI_SELECT_OPTION_SET:
            return [value]
        return value
    return _SCALAR_SAMPLES[field.data_type]


def build_sample_payload(entity: Entity, entity_id_to_name: Mapping[str, str]) -> Dict[str, Any]:
    """
    Build a minimal create payload for an entity.

    Args:
        entity: Entity to build the payload for
        entity_id_to_name: Lookup used to validate relation targets

    Returns:
        Dictionary with every required writable field set to a sample value
    """
    payload = {}
    for field in entity.fields:
        # Skip server-managed fields
        if field.data_type in SERVER_MANAGED_DATA_TYPES:
            continue
        if not field.required:
            continue
        payload[field.name] = sample_value(entity, field, entity_id_to_name)

    return payload


def build_sample_record(entity: Entity, entity_id_to_name: Mapping[str, str]) -> Dict[str, Any]:
    """Build a record as the service would return it after a create."""
    payload = build_sample_payload(entity, entity_id_to_name)
    record = {}
    for field in entity.fields:
        if field.data_type in SERVER_MANAGED_DATA_TYPES:
            record[field.name] = _SCALAR_SAMPLES[field.data_type]
        # Relations are read back only when selected
        elif field.name in payload and field.kind != FieldKind.RELATION:
            record[field.name] = payload[field.name]
    return record
