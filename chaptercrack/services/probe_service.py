import logging
from pathlib import Path
from typing import List, Union

from ..core.durations import parse_duration
from .external_tools import run_tool

logger = logging.getLogger(__name__)


class DurationProbeService:
    """Reads the total playable duration of a media file with ffprobe"""

    def __init__(self, ffprobe_binary: str = "ffprobe"):
        self.ffprobe_binary = ffprobe_binary

    def build_command(self, file_path: Union[str, Path]) -> List[str]:
        return [
            self.ffprobe_binary,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(file_path),
        ]

    def probe(self, file_path: Union[str, Path]) -> float:
        result = run_tool(self.build_command(file_path))
        duration = parse_duration(result.stdout)
        logger.info(f"Total duration: {duration} seconds")
        return duration
