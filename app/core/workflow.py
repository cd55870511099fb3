from enum import Enum

class ResourceStage(str, Enum):
    ENTITY_DTOS = "ENTITY_DTOS"
    VALIDATE = "VALIDATE"
    DTOS = "DTOS"
    WRITE = "WRITE"
    DONE = "DONE"
    FAILED = "FAILED"
