"""Orchestrator for resource code generation."""
import asyncio
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from app.core.workflow import ResourceStage
from app.generators.resource_gen.dto import (
    create_entity_dto,
    create_enum_dto,
    create_input_dtos,
)
from app.generators.resource_gen.entity import get_enum_fields, validate_entity_name
from app.generators.resource_gen.errors import (
    GenerationFailedError,
    InvalidEntityNameError,
    ResourceGenerationError,
)
from app.generators.resource_gen.loader import load_schema
from app.generators.resource_gen.render_dto import create_dto_module
from app.generators.resource_gen.render_resource import (
    create_controller_module,
    create_module,
    create_service_module,
    create_test_module,
)
from app.generators.resource_gen.types import (
    DTODescriptor,
    Entity,
    GeneratedModule,
    ResourceNaming,
)
from app.generators.resource_gen.utils import derive_resource_naming
from app.generators.resource_gen.writer import write_files

log = logging.getLogger(__name__)

NamingStrategy = Callable[[str], ResourceNaming]


def _raise_if_failed(results: Sequence[object]) -> None:
    errors = [r for r in results if isinstance(r, BaseException)]
    for error in errors:
        if not isinstance(error, ResourceGenerationError):
            raise error
    if errors:
        raise GenerationFailedError(errors)


def _build_entity_dtos(
    entities: Sequence[Entity],
    entity_id_to_name: Mapping[str, str],
    naming: NamingStrategy,
) -> Dict[str, DTODescriptor]:
    """Phase one: the full DTO of every entity, shared by all resources."""
    entity_dtos: Dict[str, DTODescriptor] = {}
    owners: Dict[str, str] = {}
    errors: List[ResourceGenerationError] = []
    for entity in entities:
        try:
            validate_entity_name(entity.name)
            if entity.name in entity_dtos:
                raise InvalidEntityNameError(entity.name, "name is declared more than once")
            # Entities sharing an identifier would be written to the same paths
            entity_name = naming(entity.name).entity_name
            if entity_name in owners:
                raise InvalidEntityNameError(
                    entity.name, f"name maps to {entity_name!r}, already used by {owners[entity_name]!r}"
                )
            owners[entity_name] = entity.name
            entity_dtos[entity.name] = create_entity_dto(entity, entity_id_to_name)
        except ResourceGenerationError as e:
            errors.append(e)
    _raise_if_failed(errors)
    return entity_dtos


async def create_resources_modules(
    entities: Sequence[Entity],
    entity_id_to_name: Mapping[str, str],
    logger: Optional[logging.Logger] = None,
    naming: NamingStrategy = derive_resource_naming,
) -> List[GeneratedModule]:
    """
    Generate the resource modules of every entity.

    Args:
        entities: Entities to generate resources for
        entity_id_to_name: Lookup from stable entity id to entity name
        logger: Receives one record per entity as its generation starts
        naming: Derives identifiers and paths from an entity name

    Returns:
        Per-entity modules in entity order, followed by one entity DTO
        module per entity

    Raises:
        GenerationFailedError: if any entity failed; no modules are returned
    """
    logger = logger or log
    entity_id_to_name = MappingProxyType(dict(entity_id_to_name))
    entities_by_name = MappingProxyType({entity.name: entity for entity in entities})

    logger.info("Building %d entity DTOs", len(entities), extra={"stage": ResourceStage.ENTITY_DTOS.value})
    entity_dtos = MappingProxyType(_build_entity_dtos(entities, entity_id_to_name, naming))

    results = await asyncio.gather(
        *(
            create_resource_modules(
                entity,
                entity_id_to_name,
                entity_dtos,
                entities_by_name,
                logger,
                naming,
            )
            for entity in entities
        ),
        return_exceptions=True,
    )
    _raise_if_failed(results)

    resource_modules = [module for modules in results for module in modules]
    entity_dto_modules = [
        create_dto_module(dto, naming(name).entity_name)
        for name, dto in entity_dtos.items()
    ]
    logger.info(
        "Generated %d modules for %d entities", len(resource_modules) + len(entity_dto_modules), len(entities),
        extra={"stage": ResourceStage.DONE.value},
    )
    return [*resource_modules, *entity_dto_modules]


async def create_resource_modules(
    entity: Entity,
    entity_id_to_name: Mapping[str, str],
    entity_dtos: Mapping[str, DTODescriptor],
    entities_by_name: Mapping[str, Entity],
    logger: logging.Logger,
    naming: NamingStrategy = derive_resource_naming,
) -> List[GeneratedModule]:
    """Generate DTO, service, controller, module and test modules of one entity."""
    entity_type = entity.name
    validate_entity_name(entity_type)

    logger.info("Creating %s...", entity_type, extra={"entity": entity_type, "stage": ResourceStage.VALIDATE.value})
    names = naming(entity_type)
    entity_name = names.entity_name

    input_dtos = create_input_dtos(entity, entity_id_to_name)
    enum_dtos = [create_enum_dto(entity, field) for field in get_enum_fields(entity)]
    dto_modules = [
        create_dto_module(dto, entity_name)
        for dto in [*input_dtos.as_tuple(), *enum_dtos]
    ]
    logger.debug(
        "Rendered %d DTO modules", len(dto_modules),
        extra={"entity": entity_type, "stage": ResourceStage.DTOS.value},
    )

    service_module = await create_service_module(entity_name, entity_type)

    controller_module = await create_controller_module(
        names.resource,
        entity_name,
        entity_type,
        service_module.path,
        entity,
        input_dtos,
        entity_dtos,
        entity_id_to_name,
        entities_by_name,
    )

    resource_module = await create_module(
        names.module_path,
        entity_type,
        service_module.path,
        controller_module.path,
    )

    test_module = await create_test_module(
        names.resource,
        entity,
        entity_name,
        entity_type,
        service_module.path,
        resource_module.path,
        entity_id_to_name,
    )

    return [
        *dto_modules,
        service_module,
        controller_module,
        resource_module,
        test_module,
    ]


def generate_resources(schema_path: Path, out_dir: Path) -> List[GeneratedModule]:
    """
    Generate resource code from a schema file.

    Args:
        schema_path: Path to a JSON or YAML entity schema
        out_dir: Output directory for generated files

    Returns:
        List of GeneratedModule objects
    """
    entities, entity_id_to_name = load_schema(schema_path)

    modules = asyncio.run(create_resources_modules(entities, entity_id_to_name))

    log.info("Writing %d modules to %s", len(modules), out_dir, extra={"stage": ResourceStage.WRITE.value})
    write_files(modules, out_dir)

    return modules
