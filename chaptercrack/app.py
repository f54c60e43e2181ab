import asyncio
import logging
from typing import Optional

from .core.errors import ChapterCrackError
from .models.enums import Step
from .models.progress import PipelineProgress
from .services.processing_pipeline import ChapterPipeline, PipelineResult

logger = logging.getLogger(__name__)


class AppState:
    """Singleton app state holding the one conversion that may run at a time"""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(AppState, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self.pipeline: Optional[ChapterPipeline] = None
            self.running = False
            self.result: Optional[PipelineResult] = None
            self.error: Optional[str] = None
            self.error_type: Optional[str] = None

            AppState._initialized = True

    @property
    def step(self) -> Step:
        if self.pipeline:
            return self.pipeline.step
        return Step.IDLE

    @property
    def progress(self) -> PipelineProgress:
        if self.pipeline:
            return self.pipeline.progress
        return PipelineProgress(step=Step.IDLE)

    def start_pipeline(self, pipeline: ChapterPipeline):
        """Register a new conversion; only one may run at a time"""
        if self.running:
            raise RuntimeError("A conversion is already running. Wait for it to finish.")

        self.pipeline = pipeline
        self.running = True
        self.result = None
        self.error = None
        self.error_type = None

    async def run_pipeline(self):
        """Run the registered pipeline in a worker thread and record its outcome"""
        pipeline = self.pipeline
        if pipeline is None:
            return

        loop = asyncio.get_event_loop()
        try:
            self.result = await loop.run_in_executor(None, pipeline.run)
            logger.info(f"Conversion of {pipeline.input_path} completed")
        except (ChapterCrackError, FileNotFoundError) as e:
            logger.error(f"Conversion of {pipeline.input_path} failed: {e}")
            self.error = str(e)
            self.error_type = type(e).__name__
        except Exception as e:
            logger.error(f"Unexpected error converting {pipeline.input_path}: {e}", exc_info=True)
            self.error = str(e)
            self.error_type = type(e).__name__
        finally:
            self.running = False

    def reset(self):
        self.pipeline = None
        self.running = False
        self.result = None
        self.error = None
        self.error_type = None


def get_app_state() -> AppState:
    return AppState()
