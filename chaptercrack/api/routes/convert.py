import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel, ValidationError

from ...app import get_app_state
from ...core.config import DetectionConfig, get_app_config, get_settings
from ...models.chapters import Chapter
from ...models.progress import PipelineProgress
from ...services.media_paths import resolve_media_path
from ...services.processing_pipeline import ChapterPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


class ConvertRequest(BaseModel):
    path: str
    output_path: Optional[str] = None
    noise_threshold: Optional[str] = None
    min_silence_duration: Optional[float] = None
    metadata_only: bool = False


class ConvertStateResponse(BaseModel):
    running: bool
    step: str
    progress: PipelineProgress
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    metadata_path: Optional[str] = None
    chapters: List[Chapter] = []
    error: Optional[str] = None
    error_type: Optional[str] = None


def _detection_for(request: ConvertRequest) -> DetectionConfig:
    saved = get_app_config().detection
    return DetectionConfig(
        noise_threshold=request.noise_threshold if request.noise_threshold is not None else saved.noise_threshold,
        min_silence_duration=(
            request.min_silence_duration
            if request.min_silence_duration is not None
            else saved.min_silence_duration
        ),
    )


@router.post("/convert", response_model=dict)
async def start_conversion(request: ConvertRequest, background_tasks: BackgroundTasks):
    """Start converting a file under the media base into a chaptered audiobook"""
    settings = get_settings()
    app_state = get_app_state()

    valid, message, input_path = resolve_media_path(request.path, settings.MEDIA_BASE)
    if not valid:
        raise HTTPException(status_code=400, detail=message)

    output_path = None
    if request.output_path:
        valid, message, output_path = resolve_media_path(request.output_path, settings.MEDIA_BASE, must_exist=False)
        if not valid:
            raise HTTPException(status_code=400, detail=message)

    try:
        detection = _detection_for(request)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid detection parameters: {e.errors()[0]['msg']}")

    output_config = get_app_config().output
    pipeline = ChapterPipeline(
        input_path,
        detection=detection,
        output_path=output_path,
        keep_metadata_file=output_config.keep_metadata_file,
        metadata_only=request.metadata_only,
        audio_codec=output_config.audio_codec,
    )

    try:
        app_state.start_pipeline(pipeline)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))

    logger.info(f"Starting conversion of {input_path}")
    background_tasks.add_task(app_state.run_pipeline)

    return {"success": True, "input_path": str(input_path), "output_path": str(pipeline.output_path)}


@router.get("/convert", response_model=ConvertStateResponse)
async def get_conversion_state():
    """Current conversion progress, result or error"""
    app_state = get_app_state()
    result = app_state.result

    return ConvertStateResponse(
        running=app_state.running,
        step=app_state.step.value,
        progress=app_state.progress,
        input_path=str(app_state.pipeline.input_path) if app_state.pipeline else None,
        output_path=str(result.output_path) if result and result.output_path else None,
        metadata_path=str(result.metadata_path) if result and result.metadata_path else None,
        chapters=result.chapters if result else [],
        error=app_state.error,
        error_type=app_state.error_type,
    )
