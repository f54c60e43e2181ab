import logging
from typing import List, Union

from fastapi import APIRouter
from pydantic import BaseModel

from ...core.errors import ChapterCrackError
from ...models.chapters import Chapter, ChapterRecord
from ...services.chapter_inference import infer_chapters
from ...services.ffmetadata import encode_chapter_document
from ...core.durations import parse_duration, validate_duration
from ...services.silence_service import parse_silence_report
from ..errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


class PreviewRequest(BaseModel):
    report: str
    duration: Union[str, float]  # raw ffprobe output or seconds


class PreviewResponse(BaseModel):
    duration: float
    silence_starts: List[float]
    silence_ends: List[float]
    chapters: List[Chapter]
    records: List[ChapterRecord]
    document: str


@router.post("/chapters/preview", response_model=PreviewResponse)
async def preview_chapters(request: PreviewRequest):
    """Build the chapter document from a silencedetect report and a duration without running ffmpeg"""
    try:
        if isinstance(request.duration, str):
            duration = parse_duration(request.duration)
        else:
            duration = validate_duration(request.duration)
        report = parse_silence_report(request.report)
        chapters = infer_chapters(report.ends, duration)
        document = encode_chapter_document(chapters, duration)
    except ChapterCrackError as e:
        logger.warning(f"Chapter preview rejected: {e}")
        raise to_http_exception(e)

    return PreviewResponse(
        duration=duration,
        silence_starts=list(report.starts),
        silence_ends=list(report.ends),
        chapters=chapters,
        records=list(document.records),
        document=document.text,
    )
