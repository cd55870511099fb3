"""Errors raised while generating resources."""
from typing import List, Sequence


class ResourceGenerationError(Exception):
    """Base class for structural defects in the input schema."""


class InvalidEntityNameError(ResourceGenerationError):
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid entity name {name!r}: {reason}")


class MissingRelationTargetError(ResourceGenerationError):
    def __init__(self, entity: str, field: str, target: str):
        self.entity = entity
        self.field = field
        self.target = target
        super().__init__(
            f"Field {entity}.{field} references unknown entity {target!r}"
        )


class MalformedFieldError(ResourceGenerationError):
    def __init__(self, entity: str, field: str, reason: str):
        self.entity = entity
        self.field = field
        self.reason = reason
        super().__init__(f"Malformed field {entity}.{field}: {reason}")


class GenerationFailedError(ResourceGenerationError):
    """One or more entities failed; carries every collected error."""

    def __init__(self, errors: Sequence[ResourceGenerationError]):
        self.errors: List[ResourceGenerationError] = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"Resource generation failed with {len(self.errors)} error(s):\n{lines}")
