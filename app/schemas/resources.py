from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, Dict, Any, List

DataTypeName = Literal[
    "Id", "CreatedAt", "UpdatedAt", "SingleLineText", "MultiLineText", "Email",
    "WholeNumber", "DecimalNumber", "DateTime", "Boolean", "Json",
    "OptionSet", "MultiSelectOptionSet", "Lookup",
]

class FieldSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    data_type: DataTypeName = Field(..., alias="dataType", examples=["SingleLineText"])
    required: bool = False
    unique: bool = False
    searchable: bool = True
    properties: Dict[str, Any] = {}

class EntitySchema(BaseModel):
    name: str = Field(..., examples=["Post"])
    id: Optional[str] = None
    fields: List[FieldSchema] = []

class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entities: List[EntitySchema]
    entity_id_to_name: Dict[str, str] = Field(default_factory=dict, alias="entityIdToName")

class GeneratedModuleResponse(BaseModel):
    path: str
    content: str
    dependencies: List[str] = []

class GenerateResponse(BaseModel):
    total: int
    modules: List[GeneratedModuleResponse]

class GenerationErrorResponse(BaseModel):
    detail: str
    errors: List[str]
