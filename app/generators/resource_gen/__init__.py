from app.generators.resource_gen.generator import (
    create_resource_modules,
    create_resources_modules,
    generate_resources,
)

__all__ = [
    "create_resource_modules",
    "create_resources_modules",
    "generate_resources",
]
