"""Entity validation and lookup helpers."""
import keyword
import re
from typing import Dict, List, Mapping, Any

from pydantic import BaseModel

from app.generators.resource_gen.errors import (
    InvalidEntityNameError,
    MalformedFieldError,
    MissingRelationTargetError,
)
from app.generators.resource_gen.types import Entity, EntityField, FieldKind
from app.generators.resource_gen.utils import to_camel_case

ENTITY_NAME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9_]*$')

# Names that would shadow identifiers imported by the generated modules
RESERVED_NAMES = {
    "Any", "APIRouter", "BaseModel", "Depends", "Dict", "Enum", "FastAPI",
    "Field", "HTTPException", "List", "Optional", "Query", "TestClient",
    "date", "datetime", "router", "service",
}


def validate_entity_name(name: str) -> None:
    """Raise InvalidEntityNameError unless name can be used in generated code."""
    if not name:
        raise InvalidEntityNameError(name, "name must not be empty")
    if not ENTITY_NAME_PATTERN.match(name):
        raise InvalidEntityNameError(
            name, "name must start with a letter and contain only letters, digits and underscores"
        )
    if keyword.iskeyword(name) or keyword.iskeyword(to_camel_case(name)):
        raise InvalidEntityNameError(name, "name is a Python keyword")
    if name in RESERVED_NAMES:
        raise InvalidEntityNameError(name, "name is reserved")


def get_enum_fields(entity: Entity) -> List[EntityField]:
    return [f for f in entity.fields if f.kind == FieldKind.ENUM]


def get_relation_fields(entity: Entity) -> List[EntityField]:
    return [f for f in entity.fields if f.kind == FieldKind.RELATION]


def resolve_related_entity_name(
    entity: Entity,
    field: EntityField,
    entity_id_to_name: Mapping[str, str],
) -> str:
    """Return the display name of the entity a relation field points to."""
    related_id = field.properties.get("relatedEntityId")
    if not related_id:
        raise MalformedFieldError(entity.name, field.name, "relation field has no relatedEntityId")
    try:
        return entity_id_to_name[related_id]
    except KeyError:
        raise MissingRelationTargetError(entity.name, field.name, related_id) from None


def resolve_related_entity(
    entity: Entity,
    field: EntityField,
    entity_id_to_name: Mapping[str, str],
    entities_by_name: Mapping[str, Entity],
) -> Entity:
    related_name = resolve_related_entity_name(entity, field, entity_id_to_name)
    try:
        return entities_by_name[related_name]
    except KeyError:
        raise MissingRelationTargetError(entity.name, field.name, related_name) from None


def get_enum_options(entity: Entity, field: EntityField) -> List[Dict[str, Any]]:
    options = field.properties.get("options") or []
    if not options:
        raise MalformedFieldError(entity.name, field.name, "enum field has no options")
    return options


def validate_field_name(entity: Entity, field: EntityField) -> None:
    if not field.name.isidentifier() or keyword.iskeyword(field.name):
        raise MalformedFieldError(entity.name, field.name, "field name is not a valid identifier")
    # pydantic treats these as private, config or inherited model attributes
    if field.name.startswith(("_", "model_")) or hasattr(BaseModel, field.name):
        raise MalformedFieldError(entity.name, field.name, "field name clashes with a pydantic model attribute")
    if sum(1 for f in entity.fields if f.name == field.name) > 1:
        raise MalformedFieldError(entity.name, field.name, "field name is declared more than once")
