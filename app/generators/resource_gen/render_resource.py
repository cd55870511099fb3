"""Assemblers for the service, controller, module and test of a resource."""
import json
from pprint import pformat
from typing import Dict, List, Mapping, Optional

from app.generators.resource_gen.dto import create_where_unique_input
from app.generators.resource_gen.entity import (
    get_relation_fields,
    resolve_related_entity,
)
from app.generators.resource_gen.sample_payload import (
    build_sample_payload,
    build_sample_record,
    sample_value,
)
from app.generators.resource_gen.types import (
    DTODescriptor,
    DTOProperty,
    Entity,
    GeneratedModule,
    InputDTOs,
    ReferenceKind,
)
from app.generators.resource_gen.utils import (
    controller_module_path,
    dto_module_path,
    module_to_import,
    service_module_path,
    test_module_path,
    to_camel_case,
    to_kebab_case,
    to_snake_case,
)


async def create_service_module(entity_name: str, entity_type: str) -> GeneratedModule:
    """Generate the service class delegating to a repository."""
    lines = [
        "from typing import Any, Dict, List, Optional",
        "",
        "",
        f"class {entity_type}Service:",
        f'    """Data access for {entity_type} records."""',
        "",
        f'    model = "{entity_type}"',
        "",
        "    def __init__(self, repository: Any = None):",
        "        self.repository = repository",
        "",
        "    async def count(self, where: Optional[Dict[str, Any]] = None) -> int:",
        "        return await self.repository.count(self.model, where=where or {})",
        "",
        "    async def find_many(",
        "        self,",
        "        where: Optional[Dict[str, Any]] = None,",
        "        skip: int = 0,",
        "        take: Optional[int] = None,",
        "        select: Optional[Dict[str, Any]] = None,",
        "    ) -> List[Dict[str, Any]]:",
        "        return await self.repository.find_many(",
        "            self.model, where=where or {}, skip=skip, take=take, select=select",
        "        )",
        "",
        "    async def find_one(",
        "        self, where: Dict[str, Any], select: Optional[Dict[str, Any]] = None",
        "    ) -> Optional[Dict[str, Any]]:",
        "        return await self.repository.find_one(self.model, where=where, select=select)",
        "",
        "    async def create(",
        "        self, data: Dict[str, Any], select: Optional[Dict[str, Any]] = None",
        "    ) -> Dict[str, Any]:",
        "        return await self.repository.create(self.model, data=data, select=select)",
        "",
        "    async def update(",
        "        self, where: Dict[str, Any], data: Dict[str, Any], select: Optional[Dict[str, Any]] = None",
        "    ) -> Optional[Dict[str, Any]]:",
        "        return await self.repository.update(self.model, where=where, data=data, select=select)",
        "",
        "    async def delete(self, where: Dict[str, Any]) -> Optional[Dict[str, Any]]:",
        "        return await self.repository.delete(self.model, where=where)",
        "",
        "    async def find_related(",
        "        self, where: Dict[str, Any], field: str, select: Optional[Dict[str, Any]] = None",
        "    ) -> Any:",
        "        return await self.repository.find_related(self.model, where=where, field=field, select=select)",
        "",
        "    async def connect(self, where: Dict[str, Any], field: str, targets: List[Dict[str, Any]]) -> None:",
        "        await self.repository.connect(self.model, where=where, field=field, targets=targets)",
        "",
        "    async def disconnect(self, where: Dict[str, Any], field: str, targets: List[Dict[str, Any]]) -> None:",
        "        await self.repository.disconnect(self.model, where=where, field=field, targets=targets)",
    ]
    return GeneratedModule(
        path=service_module_path(entity_name),
        content="\n".join(lines) + "\n",
    )


def _select_literal(dto: DTODescriptor, entity_dtos: Mapping[str, DTODescriptor]) -> Dict[str, object]:
    """Select every scalar field and the scalar fields of related entity DTOs."""
    select: Dict[str, object] = {}
    for prop in dto.properties:
        ref = prop.reference
        if ref is not None and ref.kind == ReferenceKind.ENTITY_DTO:
            if prop.is_list:
                continue
            related = entity_dtos[ref.entity]
            select[prop.name] = {"select": {
                p.name: True
                for p in related.properties
                if p.reference is None or p.reference.kind == ReferenceKind.ENUM
            }}
        else:
            select[prop.name] = True
    return select


def _key_field(where_unique: DTODescriptor) -> Optional[DTOProperty]:
    """The unique field addressing a single record in routes."""
    if "id" in where_unique.property_names:
        return where_unique.get("id")
    return where_unique.properties[0] if where_unique.properties else None


async def create_controller_module(
    resource: str,
    entity_name: str,
    entity_type: str,
    service_module_path: str,
    entity: Entity,
    dtos: InputDTOs,
    entity_dtos: Mapping[str, DTODescriptor],
    entity_id_to_name: Mapping[str, str],
    entities_by_name: Mapping[str, Entity],
) -> GeneratedModule:
    """Generate the CRUD router of an entity, including nested relation routes."""
    entity_dto = entity_dtos[entity_type]
    key_prop = _key_field(dtos.where_unique_input)
    key = key_prop.name if key_prop else None
    select_name = f"{to_snake_case(entity_type).upper()}_SELECT"

    dependencies = [service_module_path]
    dto_imports = []

    def import_dto(entity: str, name: str) -> None:
        path = dto_module_path(to_camel_case(entity), name)
        line = f"from {module_to_import(path)} import {name}"
        if line not in dto_imports:
            dto_imports.append(line)
            dependencies.append(path)

    import_dto(entity_type, entity_dto.name)
    for dto in dtos.as_tuple():
        import_dto(entity_type, dto.name)

    relations = []
    for field in get_relation_fields(entity):
        related = resolve_related_entity(entity, field, entity_id_to_name, entities_by_name)
        related_dto = entity_dtos[related.name]
        import_dto(related.name, related_dto.name)
        if field.is_to_many:
            import_dto(related.name, f"{related.name}WhereUniqueInput")
        relations.append((field, related_dto))

    lines = [
        "import json",
        "from typing import List, Optional",
        "",
        "from fastapi import APIRouter, Depends, HTTPException, Query",
        "from pydantic import ValidationError",
        "",
        f"from {module_to_import(service_module_path)} import {entity_type}Service",
    ]
    if key_prop is not None and key_prop.type == "datetime":
        lines.insert(1, "from datetime import datetime")
    lines.extend(dto_imports)
    lines.extend(["", ""])
    lines.append(f'router = APIRouter(prefix="/{resource}", tags=["{resource}"])')
    lines.append("")
    lines.append(f"{select_name} = {pformat(_select_literal(entity_dto, entity_dtos), sort_dicts=False)}")
    lines.extend(["", ""])
    lines.append(f"def get_service() -> {entity_type}Service:")
    lines.append(f"    return {entity_type}Service()")
    lines.extend(["", ""])

    # Create endpoint
    lines.append(f'@router.post("", response_model={entity_dto.name}, status_code=201)')
    lines.append(f"async def create_{entity_name}(")
    lines.append(f"    data: {dtos.create_input.name}, service: {entity_type}Service = Depends(get_service)")
    lines.append("):")
    lines.append(f"    return await service.create(data=data.model_dump(by_alias=True, exclude_none=True), select={select_name})")
    lines.extend(["", ""])

    # List endpoint
    lines.append(f'@router.get("", response_model=List[{entity_dto.name}])')
    lines.append(f"async def find_many_{entity_name}(")
    lines.append("    where: Optional[str] = Query(None),")
    lines.append("    skip: int = Query(0, ge=0),")
    lines.append("    take: Optional[int] = Query(None, ge=1),")
    lines.append(f"    service: {entity_type}Service = Depends(get_service),")
    lines.append("):")
    lines.append("    try:")
    lines.append(f"        args = {dtos.where_input.name}.model_validate(json.loads(where)) if where else {dtos.where_input.name}()")
    lines.append("    except (ValueError, ValidationError) as e:")
    lines.append("        raise HTTPException(status_code=400, detail=str(e))")
    lines.append("    return await service.find_many(")
    lines.append(f"        where=args.model_dump(by_alias=True, exclude_none=True), skip=skip, take=take, select={select_name}")
    lines.append("    )")

    if key is not None:
        where_unique = f'{{"{key}": {key}}}'
        not_found = f'raise HTTPException(status_code=404, detail=f"{entity_type} with {key} {{{key}}} not found")'
        lines.extend(["", ""])

        # Get endpoint
        lines.append(f'@router.get("/{{{key}}}", response_model={entity_dto.name})')
        lines.append(f"async def find_one_{entity_name}({key}: {key_prop.type}, service: {entity_type}Service = Depends(get_service)):")
        lines.append(f"    result = await service.find_one(where={where_unique}, select={select_name})")
        lines.append("    if result is None:")
        lines.append(f"        {not_found}")
        lines.append("    return result")
        lines.extend(["", ""])

        # Patch endpoint
        lines.append(f'@router.patch("/{{{key}}}", response_model={entity_dto.name})')
        lines.append(f"async def update_{entity_name}(")
        lines.append(f"    {key}: {key_prop.type}, data: {dtos.update_input.name}, service: {entity_type}Service = Depends(get_service)")
        lines.append("):")
        lines.append("    result = await service.update(")
        lines.append(f"        where={where_unique}, data=data.model_dump(by_alias=True, exclude_none=True), select={select_name}")
        lines.append("    )")
        lines.append("    if result is None:")
        lines.append(f"        {not_found}")
        lines.append("    return result")
        lines.extend(["", ""])

        # Delete endpoint
        lines.append(f'@router.delete("/{{{key}}}", status_code=204)')
        lines.append(f"async def delete_{entity_name}({key}: {key_prop.type}, service: {entity_type}Service = Depends(get_service)):")
        lines.append(f"    result = await service.delete(where={where_unique})")
        lines.append("    if result is None:")
        lines.append(f"        {not_found}")
        lines.append("    return None")

        for field, related_dto in relations:
            route = f"/{{{key}}}/{to_kebab_case(field.name)}"
            suffix = f"{entity_name}_{to_snake_case(field.name)}"
            related_select = repr({p.name: True for p in related_dto.properties if p.reference is None})
            lines.extend(["", ""])
            if field.is_to_many:
                lines.append(f'@router.get("{route}", response_model=List[{related_dto.name}])')
            else:
                lines.append(f'@router.get("{route}", response_model=Optional[{related_dto.name}])')
            lines.append(f"async def find_{suffix}({key}: {key_prop.type}, service: {entity_type}Service = Depends(get_service)):")
            lines.append(
                f'    return await service.find_related(where={where_unique}, field="{field.name}", select={related_select})'
            )
            if not field.is_to_many:
                continue
            unique_name = f"{related_dto.name}WhereUniqueInput"
            for verb, action in (("post", "connect"), ("delete", "disconnect")):
                lines.extend(["", ""])
                lines.append(f'@router.{verb}("{route}", status_code=204)')
                lines.append(f"async def {action}_{suffix}(")
                lines.append(
                    f"    {key}: {key_prop.type}, body: List[{unique_name}], service: {entity_type}Service = Depends(get_service)"
                )
                lines.append("):")
                lines.append(
                    f'    await service.{action}(where={where_unique}, field="{field.name}", '
                    f"targets=[item.model_dump(by_alias=True) for item in body])"
                )
                lines.append("    return None")

    return GeneratedModule(
        path=controller_module_path(entity_name),
        content="\n".join(lines) + "\n",
        dependencies=tuple(dependencies),
    )


async def create_module(
    module_path: str,
    entity_type: str,
    service_module_path: str,
    controller_module_path: str,
) -> GeneratedModule:
    """Generate the module wiring the service into the controller's router."""
    lines = [
        "from typing import Optional",
        "",
        "from fastapi import FastAPI",
        "",
        f"from {module_to_import(controller_module_path)} import get_service, router",
        f"from {module_to_import(service_module_path)} import {entity_type}Service",
        "",
        "",
        f"class {entity_type}Module:",
        f'    """Registers the {entity_type} router with its service."""',
        "",
        f"    def __init__(self, service: Optional[{entity_type}Service] = None):",
        f"        self.service = service or {entity_type}Service()",
        "        self.router = router",
        "",
        "    def register(self, app: FastAPI) -> None:",
        "        app.include_router(self.router)",
        "        app.dependency_overrides[get_service] = lambda: self.service",
    ]
    return GeneratedModule(
        path=module_path,
        content="\n".join(lines) + "\n",
        dependencies=(service_module_path, controller_module_path),
    )


def _literal(value: object) -> str:
    return pformat(value, sort_dicts=False)


async def create_test_module(
    resource: str,
    entity: Entity,
    entity_name: str,
    entity_type: str,
    service_module_path: str,
    module_path: str,
    entity_id_to_name: Mapping[str, str],
) -> GeneratedModule:
    """Generate a pytest scaffold exercising the router with a mocked service."""
    create_input = build_sample_payload(entity, entity_id_to_name)
    record = build_sample_record(entity, entity_id_to_name)
    key_prop = _key_field(create_where_unique_input(entity, entity_id_to_name))
    if key_prop is not None and key_prop.name not in record:
        key_field = next(f for f in entity.fields if f.name == key_prop.name)
        record[key_prop.name] = sample_value(entity, key_field, entity_id_to_name)

    lines: List[str] = [
        "from unittest.mock import AsyncMock, MagicMock",
        "",
        "from fastapi import FastAPI",
        "from fastapi.testclient import TestClient",
        "",
        f"from {module_to_import(module_path)} import {entity_type}Module",
        f"from {module_to_import(service_module_path)} import {entity_type}Service",
        "",
        f"CREATE_INPUT = {_literal(create_input)}",
        "",
        f"RESULT = {_literal(record)}",
        "",
        "",
        "def make_client(service):",
        "    app = FastAPI()",
        f"    {entity_type}Module(service).register(app)",
        "    return TestClient(app)",
        "",
        "",
        "def make_service(**methods):",
        f"    service = MagicMock(spec={entity_type}Service)",
        "    for name, value in methods.items():",
        "        setattr(service, name, AsyncMock(return_value=value))",
        "    return service",
        "",
        "",
        f"def test_create_{entity_name}():",
        "    service = make_service(create=RESULT)",
        f'    response = make_client(service).post("/{resource}", json=CREATE_INPUT)',
        "    assert response.status_code == 201",
        "    service.create.assert_awaited_once()",
        "",
        "",
        f"def test_find_many_{entity_name}():",
        "    service = make_service(find_many=[RESULT])",
        f'    response = make_client(service).get("/{resource}")',
        "    assert response.status_code == 200",
        "    assert len(response.json()) == 1",
    ]
    if key_prop is not None:
        key_value = record[key_prop.name]
        key_url = f"/{resource}/{key_value if isinstance(key_value, str) else json.dumps(key_value)}"
        lines.extend([
            "",
            "",
            f"def test_find_one_{entity_name}():",
            "    service = make_service(find_one=RESULT)",
            f'    response = make_client(service).get("{key_url}")',
            "    assert response.status_code == 200",
            f"    assert response.json()[{key_prop.name!r}] == RESULT[{key_prop.name!r}]",
            "",
            "",
            f"def test_find_one_{entity_name}_not_found():",
            "    service = make_service(find_one=None)",
            f'    response = make_client(service).get("{key_url}")',
            "    assert response.status_code == 404",
            "",
            "",
            f"def test_delete_{entity_name}():",
            "    service = make_service(delete=RESULT)",
            f'    response = make_client(service).delete("{key_url}")',
            "    assert response.status_code == 204",
        ])
    return GeneratedModule(
        path=test_module_path(entity_name),
        content="\n".join(lines) + "\n",
        dependencies=(service_module_path, module_path),
    )
