"""Render DTO and enum descriptors into pydantic modules.

Entity DTOs and where inputs of related entities may reference each other,
so those imports are deferred to the end of the module. Annotations are
postponed and pydantic resolves them against the module globals the first
time a model is used.
"""
import json
from typing import List, Union

from app.generators.resource_gen.dto import SCALAR_FILTERS
from app.generators.resource_gen.types import (
    DTODescriptor,
    DTOProperty,
    EnumDescriptor,
    GeneratedModule,
    ReferenceKind,
)
from app.generators.resource_gen.utils import (
    dto_module_path,
    module_to_import,
    to_camel_case,
)

# Reference kinds that can form import cycles between entities
DEFERRED_REFERENCES = {ReferenceKind.ENTITY_DTO, ReferenceKind.WHERE}


def _header(deferred: bool) -> List[str]:
    typing_names = "TYPE_CHECKING, Any, Dict, List, Optional" if deferred else "Any, Dict, List, Optional"
    return [
        "from __future__ import annotations",
        "",
        "from datetime import datetime",
        f"from typing import {typing_names}",
        "",
        "from pydantic import BaseModel, ConfigDict, Field",
    ]


def _annotation(prop: DTOProperty) -> str:
    base = f"List[{prop.type}]" if prop.is_list else prop.type
    if prop.optional:
        return f"Optional[{base}] = None"
    return base


def _filter_lines(filter_name: str) -> List[str]:
    value_type, operators = SCALAR_FILTERS[filter_name]
    lines = [f"class {filter_name}(BaseModel):"]
    lines.append("    model_config = ConfigDict(populate_by_name=True)")
    lines.append("")
    for operator, is_list in operators:
        annotation = f"List[{value_type}]" if is_list else value_type
        if operator.endswith("_"):
            lines.append(f'    {operator}: Optional[{annotation}] = Field(None, alias="{operator[:-1]}")')
        else:
            lines.append(f"    {operator}: Optional[{annotation}] = None")
    return lines


def render_dto(dto: DTODescriptor, entity_name: str) -> GeneratedModule:
    imports = []
    deferred = []
    dependencies = []
    filters = []
    for prop in dto.properties:
        ref = prop.reference
        if ref is None or ref.name == dto.name:
            continue
        if ref.kind == ReferenceKind.FILTER:
            if ref.name not in filters:
                filters.append(ref.name)
            continue
        path = dto_module_path(to_camel_case(ref.entity), ref.name)
        line = f"from {module_to_import(path)} import {ref.name}"
        target = deferred if ref.kind in DEFERRED_REFERENCES else imports
        if line not in target:
            target.append(line)
            dependencies.append(path)

    lines = _header(bool(deferred))
    if imports:
        lines.append("")
        lines.extend(sorted(imports))
    if deferred:
        lines.extend(["", "if TYPE_CHECKING:"])
        lines.extend(f"    {line}" for line in sorted(deferred))
    lines.extend(["", ""])

    for filter_name in filters:
        lines.extend(_filter_lines(filter_name))
        lines.extend(["", ""])

    lines.append(f"class {dto.name}(BaseModel):")
    lines.append("    model_config = ConfigDict(populate_by_name=True)")
    lines.append("")
    if not dto.properties:
        lines.append("    pass")
    for prop in dto.properties:
        lines.append(f"    {prop.name}: {_annotation(prop)}")

    if deferred:
        lines.extend(["", ""])
        lines.extend(f"{line}  # noqa: E402" for line in sorted(deferred))

    return GeneratedModule(
        path=dto_module_path(entity_name, dto.name),
        content="\n".join(lines) + "\n",
        dependencies=tuple(dependencies),
    )


def render_enum(enum: EnumDescriptor, entity_name: str) -> GeneratedModule:
    lines = [
        "from enum import Enum",
        "",
        "",
        f"class {enum.name}(str, Enum):",
    ]
    for member in enum.members:
        lines.append(f"    {member.name} = {json.dumps(member.value)}")
    return GeneratedModule(
        path=dto_module_path(entity_name, enum.name),
        content="\n".join(lines) + "\n",
    )


def create_dto_module(
    dto: Union[DTODescriptor, EnumDescriptor],
    entity_name: str,
) -> GeneratedModule:
    """Render one descriptor into the module stored under entity_name/base/."""
    if isinstance(dto, EnumDescriptor):
        return render_enum(dto, entity_name)
    return render_dto(dto, entity_name)
