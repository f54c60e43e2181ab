import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel

from ..core.config import DetectionConfig, get_settings
from ..core.errors import ChapterCrackError
from ..models.chapters import Chapter, ChapterDocument, SilenceReport
from ..models.enums import Step
from ..models.progress import PipelineProgress, ProgressCallback
from .chapter_inference import infer_chapters
from .ffmetadata import encode_chapter_document, write_chapter_document
from .mux_service import MuxService
from .probe_service import DurationProbeService
from .silence_service import SilenceDetectionService

logger = logging.getLogger(__name__)


class PipelineResult(BaseModel):
    input_path: Path
    output_path: Optional[Path] = None
    metadata_path: Optional[Path] = None
    duration: float
    silence_starts: List[float]
    silence_ends: List[float]
    chapters: List[Chapter]
    document: ChapterDocument


class ChapterPipeline:
    """Runs silence detection, duration probing, chapter inference, metadata encoding and muxing in order"""

    def __init__(
        self,
        input_path: Union[str, Path],
        detection: Optional[DetectionConfig] = None,
        output_path: Optional[Union[str, Path]] = None,
        metadata_path: Optional[Union[str, Path]] = None,
        keep_metadata_file: bool = False,
        metadata_only: bool = False,
        audio_codec: str = "copy",
        progress_callback: Optional[ProgressCallback] = None,
        silence_service: Optional[SilenceDetectionService] = None,
        probe_service: Optional[DurationProbeService] = None,
        mux_service: Optional[MuxService] = None,
    ):
        settings = get_settings()
        self.input_path = Path(input_path)
        self.detection = detection or DetectionConfig()
        self.output_path = Path(output_path) if output_path else MuxService.default_output_path(self.input_path)
        self.metadata_path = Path(metadata_path) if metadata_path else None
        # Metadata-only runs and explicit metadata paths always keep the document
        self.keep_metadata_file = keep_metadata_file or metadata_only or metadata_path is not None
        self.metadata_only = metadata_only
        self.progress_callback = progress_callback

        self.silence_service = silence_service or SilenceDetectionService(settings.FFMPEG_BINARY)
        self.probe_service = probe_service or DurationProbeService(settings.FFPROBE_BINARY)
        self.mux_service = mux_service or MuxService(settings.FFMPEG_BINARY, audio_codec=audio_codec)

        self.step = Step.IDLE
        self.progress = PipelineProgress(step=Step.IDLE)
        self.failed_step: Optional[Step] = None

    def _notify_progress(self, step: Step, percent: float, message: str = "", details: dict = None):
        """Record progress and forward it to the callback"""
        self.step = step
        self.progress = PipelineProgress(step=step, percent=percent, message=message, details=details or {})
        if self.progress_callback:
            try:
                self.progress_callback(step, percent, message, details or {})
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    def _default_metadata_path(self) -> Path:
        return self.input_path.with_name(f"{self.input_path.stem}.chapters.txt")

    def _temporary_metadata_path(self) -> Path:
        fd, name = tempfile.mkstemp(prefix="chaptercrack_", suffix=".ffmeta")
        os.close(fd)
        return Path(name)

    def detect_silence(self) -> SilenceReport:
        self._notify_progress(Step.DETECTING_SILENCE, 0, "Detecting silence...")
        report = self.silence_service.detect(self.input_path, self.detection)
        self._notify_progress(
            Step.DETECTING_SILENCE,
            100,
            f"Found {len(report.ends)} potential chapter breaks",
            {"silence_starts": len(report.starts), "silence_ends": len(report.ends)},
        )
        return report

    def probe_duration(self) -> float:
        self._notify_progress(Step.PROBING_DURATION, 0, "Reading total duration...")
        duration = self.probe_service.probe(self.input_path)
        self._notify_progress(Step.PROBING_DURATION, 100, f"Total duration: {duration:.3f}s")
        return duration

    def build_document(self, report: SilenceReport, duration: float) -> Tuple[List[Chapter], ChapterDocument]:
        self._notify_progress(Step.INFERRING_CHAPTERS, 0, "Inferring chapter boundaries...")
        chapters = infer_chapters(report.ends, duration)
        document = encode_chapter_document(chapters, duration)
        self._notify_progress(Step.INFERRING_CHAPTERS, 100, f"Created {len(chapters)} chapters")
        return chapters, document

    def write_metadata(self, document: ChapterDocument) -> Path:
        self._notify_progress(Step.WRITING_METADATA, 0, "Writing chapter metadata...")
        if self.keep_metadata_file:
            target = self.metadata_path or self._default_metadata_path()
        else:
            target = self._temporary_metadata_path()
        try:
            path = write_chapter_document(document, target)
        except ChapterCrackError:
            if not self.keep_metadata_file:
                target.unlink(missing_ok=True)
            raise
        self._notify_progress(Step.WRITING_METADATA, 100, f"Chapter metadata written to {path}")
        return path

    def mux(self, metadata_path: Path) -> Path:
        self._notify_progress(Step.MUXING, 0, f"Writing {self.output_path.name}...")
        output = self.mux_service.mux(self.input_path, metadata_path, self.output_path)
        self._notify_progress(Step.MUXING, 100, f"Created {output}")
        return output

    def run(self) -> PipelineResult:
        if not self.input_path.exists() or not self.input_path.is_file():
            raise FileNotFoundError(f"Input file \"{self.input_path}\" does not exist.")

        logger.info(f"Processing file: {self.input_path}")
        metadata_path = None
        output_path = None
        try:
            report = self.detect_silence()
            duration = self.probe_duration()
            chapters, document = self.build_document(report, duration)
            metadata_path = self.write_metadata(document)
            if not self.metadata_only:
                output_path = self.mux(metadata_path)
        except ChapterCrackError as e:
            self.failed_step = self.step
            self._notify_progress(
                Step.FAILED, 100, str(e), {"error": type(e).__name__, "failed_step": self.failed_step.value}
            )
            raise
        finally:
            if metadata_path is not None and not self.keep_metadata_file:
                metadata_path.unlink(missing_ok=True)

        self._notify_progress(Step.COMPLETED, 100, "Done")
        return PipelineResult(
            input_path=self.input_path,
            output_path=output_path,
            metadata_path=metadata_path if self.keep_metadata_file else None,
            duration=duration,
            silence_starts=list(report.starts),
            silence_ends=list(report.ends),
            chapters=chapters,
            document=document,
        )
