import logging
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from app.core.workflow import ResourceStage
from app.generators.resource_gen import create_resources_modules
from app.generators.resource_gen.errors import GenerationFailedError, ResourceGenerationError
from app.generators.resource_gen.loader import parse_schema
from app.schemas.resources import (
    GenerateRequest,
    GenerateResponse,
    GeneratedModuleResponse,
    GenerationErrorResponse,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/resources")

@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={422: {"model": GenerationErrorResponse}},
)
async def generate(req: GenerateRequest):
    try:
        entities, entity_id_to_name = parse_schema(req.model_dump(by_alias=True))
        modules = await create_resources_modules(entities, entity_id_to_name, logger=log)
    except ResourceGenerationError as e:
        errors = e.errors if isinstance(e, GenerationFailedError) else [e]
        log.warning("Generation rejected: %s", e, extra={"stage": ResourceStage.FAILED.value})
        return JSONResponse(
            status_code=422,
            content=GenerationErrorResponse(
                detail="Resource generation failed",
                errors=[str(error) for error in errors],
            ).model_dump(),
        )

    return GenerateResponse(
        total=len(modules),
        modules=[
            GeneratedModuleResponse(path=m.path, content=m.content, dependencies=list(m.dependencies))
            for m in modules
        ],
    )
