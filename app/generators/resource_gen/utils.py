"""Naming helpers for resource generation."""
import re
from typing import List

from pluralizer import Pluralizer

from app.generators.resource_gen.types import ResourceNaming

_pluralizer = Pluralizer()

MODULE_SUFFIX = "_module"
DTO_PACKAGE = "base"


def _split_words(name: str) -> List[str]:
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    s2 = re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1)
    return [word for word in re.split(r'[_\-\s]+', s2.lower()) if word]


def to_snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case."""
    return "_".join(_split_words(name))


def to_kebab_case(name: str) -> str:
    """Convert PascalCase or camelCase to kebab-case."""
    return "-".join(_split_words(name))


def to_camel_case(name: str) -> str:
    """Convert PascalCase, snake_case or kebab-case to camelCase."""
    words = _split_words(name)
    if not words:
        return ""
    return words[0] + "".join(word.capitalize() for word in words[1:])


def pluralize(name: str) -> str:
    """Pluralize the last word of a kebab-case name."""
    words = name.split("-")
    words[-1] = _pluralizer.pluralize(words[-1])
    return "-".join(words)


def derive_resource_naming(entity_type: str) -> ResourceNaming:
    """Derive the identifier, URL segment and module path for an entity."""
    entity_name = to_camel_case(entity_type)
    return ResourceNaming(
        entity_type=entity_type,
        entity_name=entity_name,
        resource=pluralize(to_kebab_case(entity_name)),
        module_path=f"{entity_name}/{entity_name}{MODULE_SUFFIX}.py",
    )


def service_module_path(entity_name: str) -> str:
    return f"{entity_name}/{entity_name}_service.py"


def controller_module_path(entity_name: str) -> str:
    return f"{entity_name}/{entity_name}_controller.py"


def test_module_path(entity_name: str) -> str:
    return f"{entity_name}/test_{entity_name}_controller.py"


def dto_module_path(entity_name: str, dto_name: str) -> str:
    return f"{entity_name}/{DTO_PACKAGE}/{dto_name}.py"


def module_to_import(path: str) -> str:
    """Convert a generated module path to its dotted import path."""
    if path.endswith(".py"):
        path = path[:-3]
    return path.replace("/", ".")


def to_identifier(label: str) -> str:
    """Convert a free-form label to an UPPER_SNAKE identifier."""
    words = re.findall(r'[A-Za-z0-9]+', label)
    ident = "_".join(to_snake_case(word) for word in words).upper()
    if not ident:
        return "VALUE"
    if ident[0].isdigit():
        ident = f"_{ident}"
    return ident
