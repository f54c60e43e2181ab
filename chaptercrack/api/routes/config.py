import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ValidationError

from ...core.config import DetectionConfig, OutputConfig, get_app_config, save_detection_config, update_app_config

logger = logging.getLogger(__name__)

router = APIRouter()


class DetectionConfigRequest(BaseModel):
    noise_threshold: str
    min_silence_duration: float


class OutputConfigRequest(BaseModel):
    keep_metadata_file: Optional[bool] = None
    audio_codec: Optional[str] = None


@router.get("/config/detection", response_model=DetectionConfig)
async def get_detection_config():
    """Get the saved silence detection defaults"""
    return get_app_config().detection


@router.post("/config/detection", response_model=DetectionConfig)
async def set_detection_config(request: DetectionConfigRequest):
    """Validate and save silence detection defaults"""
    try:
        detection = DetectionConfig(
            noise_threshold=request.noise_threshold,
            min_silence_duration=request.min_silence_duration,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid configuration: {e.errors()[0]['msg']}")

    if not save_detection_config(detection):
        raise HTTPException(status_code=500, detail="Failed to save configuration")

    logger.info(f"Saved detection defaults: noise={detection.noise_threshold}, duration={detection.min_silence_duration}")
    return detection


@router.get("/config/output", response_model=OutputConfig)
async def get_output_config():
    return get_app_config().output


@router.post("/config/output", response_model=OutputConfig)
async def set_output_config(request: OutputConfigRequest):
    """Update output preferences; omitted fields keep their saved value"""
    current = get_app_config()
    output = current.output.model_copy(update=request.model_dump(exclude_none=True))
    if not output.audio_codec.strip():
        raise HTTPException(status_code=422, detail="audio_codec must not be empty")

    if not update_app_config(current.model_copy(update={"output": output})):
        raise HTTPException(status_code=500, detail="Failed to save configuration")
    return output
