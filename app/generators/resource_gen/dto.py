"""DTO descriptor builders.

Every builder is a pure function of an entity (plus the entity id lookup) and
returns frozen descriptors, so building the same shape twice yields equal
results.
"""
from typing import Dict, List, Mapping, Tuple

from app.generators.resource_gen.entity import (
    get_enum_options,
    resolve_related_entity_name,
    validate_field_name,
)
from app.generators.resource_gen.errors import MalformedFieldError
from app.generators.resource_gen.types import (
    DataType,
    DTODescriptor,
    DTOKind,
    DTOProperty,
    DTOReference,
    Entity,
    EntityField,
    EnumDescriptor,
    EnumMember,
    FieldKind,
    InputDTOs,
    ReferenceKind,
)
from app.generators.resource_gen.utils import to_identifier


SCALAR_TYPES = {
    DataType.ID: "str",
    DataType.CREATED_AT: "datetime",
    DataType.UPDATED_AT: "datetime",
    DataType.SINGLE_LINE_TEXT: "str",
    DataType.MULTI_LINE_TEXT: "str",
    DataType.EMAIL: "str",
    DataType.WHOLE_NUMBER: "int",
    DataType.DECIMAL_NUMBER: "float",
    DataType.DATE_TIME: "datetime",
    DataType.BOOLEAN: "bool",
    DataType.JSON: "Dict[str, Any]",
}

UNEDITABLE_DATA_TYPES = {DataType.ID, DataType.CREATED_AT, DataType.UPDATED_AT}
UNFILTERABLE_DATA_TYPES = {DataType.JSON}

# filter name -> (value type, ((operator, is_list), ...))
_RANGE_OPERATORS = (("equals", False), ("in_", True), ("lt", False), ("lte", False), ("gt", False), ("gte", False))
SCALAR_FILTERS: Dict[str, Tuple[str, Tuple[Tuple[str, bool], ...]]] = {
    "StringFilter": ("str", (
        ("equals", False), ("in_", True), ("contains", False), ("startsWith", False), ("endsWith", False),
    )),
    "IntFilter": ("int", _RANGE_OPERATORS),
    "FloatFilter": ("float", _RANGE_OPERATORS),
    "DateTimeFilter": ("datetime", _RANGE_OPERATORS),
    "BooleanFilter": ("bool", (("equals", False),)),
}

_FILTER_BY_SCALAR = {
    "str": "StringFilter",
    "int": "IntFilter",
    "float": "FloatFilter",
    "datetime": "DateTimeFilter",
    "bool": "BooleanFilter",
}


def _scalar_type(entity: Entity, field: EntityField) -> str:
    try:
        return SCALAR_TYPES[field.data_type]
    except KeyError:
        raise MalformedFieldError(entity.name, field.name, f"no scalar type for {field.data_type.value}") from None


def _is_editable(field: EntityField) -> bool:
    return field.data_type not in UNEDITABLE_DATA_TYPES


def _is_unique(field: EntityField) -> bool:
    return field.kind == FieldKind.SCALAR and (field.data_type == DataType.ID or field.unique)


def _is_filterable(field: EntityField) -> bool:
    # Identifying fields are filterable even when not searchable
    if field.data_type in UNFILTERABLE_DATA_TYPES:
        return False
    return field.searchable or _is_unique(field)


def enum_name(entity: Entity, field: EntityField) -> str:
    explicit = field.properties.get("enumName")
    if explicit:
        if not str(explicit).isidentifier():
            raise MalformedFieldError(entity.name, field.name, f"enum name {explicit!r} is not an identifier")
        return explicit
    return f"Enum{entity.name}{field.name[:1].upper()}{field.name[1:]}"


def _enum_property(entity: Entity, field: EntityField, optional: bool) -> DTOProperty:
    name = enum_name(entity, field)
    return DTOProperty(
        name=field.name,
        type=name,
        optional=optional,
        is_list=field.data_type == DataType.MULTI_SELECT_OPTION_SET,
        reference=DTOReference(name=name, kind=ReferenceKind.ENUM, entity=entity.name),
    )


def _relation_property(
    entity: Entity,
    field: EntityField,
    entity_id_to_name: Mapping[str, str],
    suffix: str,
    kind: ReferenceKind,
    optional: bool,
    is_list: bool,
) -> DTOProperty:
    target = resolve_related_entity_name(entity, field, entity_id_to_name)
    name = f"{target}{suffix}"
    return DTOProperty(
        name=field.name,
        type=name,
        optional=optional,
        is_list=is_list,
        reference=DTOReference(name=name, kind=kind, entity=target),
    )


def create_entity_dto(entity: Entity, entity_id_to_name: Mapping[str, str]) -> DTODescriptor:
    """Build the full read shape of an entity."""
    properties = []
    for field in entity.fields:
        validate_field_name(entity, field)
        optional = not field.required
        if field.kind == FieldKind.RELATION:
            properties.append(_relation_property(
                entity, field, entity_id_to_name, "", ReferenceKind.ENTITY_DTO,
                optional=True, is_list=field.is_to_many,
            ))
        elif field.kind == FieldKind.ENUM:
            properties.append(_enum_property(entity, field, optional))
        else:
            properties.append(DTOProperty(field.name, _scalar_type(entity, field), optional))
    return DTODescriptor(entity.name, DTOKind.ENTITY, entity.name, tuple(properties))


def _create_input_properties(
    entity: Entity,
    entity_id_to_name: Mapping[str, str],
    all_optional: bool,
) -> Tuple[DTOProperty, ...]:
    properties = []
    for field in entity.fields:
        if not _is_editable(field):
            continue
        optional = all_optional or not field.required
        if field.kind == FieldKind.RELATION:
            properties.append(_relation_property(
                entity, field, entity_id_to_name, "WhereUniqueInput", ReferenceKind.WHERE_UNIQUE,
                optional=optional or field.is_to_many, is_list=field.is_to_many,
            ))
        elif field.kind == FieldKind.ENUM:
            properties.append(_enum_property(entity, field, optional))
        else:
            properties.append(DTOProperty(field.name, _scalar_type(entity, field), optional))
    return tuple(properties)


def create_create_input(entity: Entity, entity_id_to_name: Mapping[str, str]) -> DTODescriptor:
    """Writable fields; relations are connected by their unique input."""
    return DTODescriptor(
        f"{entity.name}CreateInput",
        DTOKind.CREATE_INPUT,
        entity.name,
        _create_input_properties(entity, entity_id_to_name, all_optional=False),
    )


def create_update_input(entity: Entity, entity_id_to_name: Mapping[str, str]) -> DTODescriptor:
    """Same fields as the create input, all optional."""
    return DTODescriptor(
        f"{entity.name}UpdateInput",
        DTOKind.UPDATE_INPUT,
        entity.name,
        _create_input_properties(entity, entity_id_to_name, all_optional=True),
    )


def create_where_input(entity: Entity, entity_id_to_name: Mapping[str, str]) -> DTODescriptor:
    properties = []
    for field in entity.fields:
        if not _is_filterable(field):
            continue
        if field.kind == FieldKind.RELATION:
            properties.append(_relation_property(
                entity, field, entity_id_to_name, "WhereInput", ReferenceKind.WHERE,
                optional=True, is_list=False,
            ))
        elif field.kind == FieldKind.ENUM:
            properties.append(_enum_property(entity, field, optional=True))
        else:
            filter_name = _FILTER_BY_SCALAR[_scalar_type(entity, field)]
            properties.append(DTOProperty(
                field.name,
                filter_name,
                optional=True,
                reference=DTOReference(name=filter_name, kind=ReferenceKind.FILTER),
            ))
    return DTODescriptor(f"{entity.name}WhereInput", DTOKind.WHERE_INPUT, entity.name, tuple(properties))


def create_where_unique_input(entity: Entity, entity_id_to_name: Mapping[str, str]) -> DTODescriptor:
    """Identifying fields only, required and compared by equality."""
    properties = [
        DTOProperty(field.name, _scalar_type(entity, field), optional=False)
        for field in entity.fields
        if _is_filterable(field) and _is_unique(field)
    ]
    return DTODescriptor(
        f"{entity.name}WhereUniqueInput", DTOKind.WHERE_UNIQUE_INPUT, entity.name, tuple(properties)
    )


def create_input_dtos(entity: Entity, entity_id_to_name: Mapping[str, str]) -> InputDTOs:
    return InputDTOs(
        create_input=create_create_input(entity, entity_id_to_name),
        update_input=create_update_input(entity, entity_id_to_name),
        where_input=create_where_input(entity, entity_id_to_name),
        where_unique_input=create_where_unique_input(entity, entity_id_to_name),
    )


def create_enum_dto(entity: Entity, field: EntityField) -> EnumDescriptor:
    members: List[EnumMember] = []
    seen = set()
    for option in get_enum_options(entity, field):
        if isinstance(option, dict):
            value = option.get("value")
            label = option.get("label") or value
        else:
            value = label = option
        if value is None or value == "":
            raise MalformedFieldError(entity.name, field.name, "enum option has no value")
        member_name = to_identifier(str(label))
        if member_name in seen:
            raise MalformedFieldError(entity.name, field.name, f"duplicate enum option {member_name}")
        seen.add(member_name)
        members.append(EnumMember(name=member_name, value=str(value)))
    return EnumDescriptor(name=enum_name(entity, field), members=tuple(members))
