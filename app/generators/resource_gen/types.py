"""Dataclasses for resource generation."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Any


class FieldKind(str, Enum):
    SCALAR = "scalar"
    RELATION = "relation"
    ENUM = "enum"


class DataType(str, Enum):
    """Field data types accepted in an entity schema."""
    ID = "Id"
    CREATED_AT = "CreatedAt"
    UPDATED_AT = "UpdatedAt"
    SINGLE_LINE_TEXT = "SingleLineText"
    MULTI_LINE_TEXT = "MultiLineText"
    EMAIL = "Email"
    WHOLE_NUMBER = "WholeNumber"
    DECIMAL_NUMBER = "DecimalNumber"
    DATE_TIME = "DateTime"
    BOOLEAN = "Boolean"
    JSON = "Json"
    OPTION_SET = "OptionSet"
    MULTI_SELECT_OPTION_SET = "MultiSelectOptionSet"
    LOOKUP = "Lookup"

    @property
    def kind(self) -> FieldKind:
        if self is DataType.LOOKUP:
            return FieldKind.RELATION
        if self in (DataType.OPTION_SET, DataType.MULTI_SELECT_OPTION_SET):
            return FieldKind.ENUM
        return FieldKind.SCALAR


@dataclass(frozen=True)
class EntityField:
    """One field of an entity."""
    name: str
    data_type: DataType
    required: bool = False
    unique: bool = False
    searchable: bool = True
    properties: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @property
    def kind(self) -> FieldKind:
        return self.data_type.kind

    @property
    def is_to_many(self) -> bool:
        return bool(self.properties.get("allowMultipleSelection", False))


@dataclass(frozen=True)
class Entity:
    """Entity specification as supplied by the schema loader."""
    name: str
    fields: Tuple[EntityField, ...]
    id: Optional[str] = None


class DTOKind(str, Enum):
    ENTITY = "entity"
    CREATE_INPUT = "create_input"
    UPDATE_INPUT = "update_input"
    WHERE_INPUT = "where_input"
    WHERE_UNIQUE_INPUT = "where_unique_input"


class ReferenceKind(str, Enum):
    ENTITY_DTO = "entity_dto"
    WHERE_UNIQUE = "where_unique"
    WHERE = "where"
    ENUM = "enum"
    FILTER = "filter"


@dataclass(frozen=True)
class DTOReference:
    """Reference from a DTO property to another generated shape."""
    name: str
    kind: ReferenceKind
    entity: Optional[str] = None  # owning entity type; None for inline filters


@dataclass(frozen=True)
class DTOProperty:
    name: str
    type: str  # python annotation of a single value
    optional: bool
    is_list: bool = False
    reference: Optional[DTOReference] = None


@dataclass(frozen=True)
class DTODescriptor:
    name: str
    kind: DTOKind
    entity: str
    properties: Tuple[DTOProperty, ...]

    @property
    def property_names(self) -> Tuple[str, ...]:
        return tuple(prop.name for prop in self.properties)

    def get(self, name: str) -> Optional[DTOProperty]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


@dataclass(frozen=True)
class EnumMember:
    name: str
    value: str


@dataclass(frozen=True)
class EnumDescriptor:
    name: str
    members: Tuple[EnumMember, ...]


@dataclass(frozen=True)
class InputDTOs:
    """The four operation-scoped DTOs of one entity."""
    create_input: DTODescriptor
    update_input: DTODescriptor
    where_input: DTODescriptor
    where_unique_input: DTODescriptor

    def as_tuple(self) -> Tuple[DTODescriptor, ...]:
        return (self.create_input, self.update_input, self.where_input, self.where_unique_input)


@dataclass(frozen=True)
class ResourceNaming:
    """Identifiers and paths derived from an entity type name."""
    entity_type: str  # PascalCase, as declared
    entity_name: str  # camelCase identifier
    resource: str  # kebab-case plural URL segment
    module_path: str  # wiring module path


@dataclass(frozen=True)
class GeneratedModule:
    """Represents a generated file."""
    path: str  # Relative path from output directory
    content: str  # File contents
    dependencies: Tuple[str, ...] = ()  # Paths of generated modules this one imports
