import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Union

from ..core.config import DetectionConfig
from ..models.chapters import SilenceEvent, SilenceReport
from .external_tools import run_tool

logger = logging.getLogger(__name__)

# ffmpeg prints e.g. "[silencedetect @ 0x...] silence_end: 45.002 | silence_duration: 2.1"
SILENCE_EVENT_PATTERN = re.compile(r"silence_(start|end):\s*(-?\d+(?:\.\d*)?(?:[eE][-+]?\d+)?)")


def iter_silence_events(text: str) -> Iterator[SilenceEvent]:
    """Yield silence events in the order they appear in the report text.

    ffmpeg reports a slightly negative silence_start when the stream opens
    with silence; those are clamped to zero.
    """
    for match in SILENCE_EVENT_PATTERN.finditer(text):
        yield SilenceEvent(kind=match.group(1), time=max(0.0, float(match.group(2))))


def parse_silence_report(text: str) -> SilenceReport:
    """Split the report into silence starts and silence ends, keeping textual order"""
    events = list(iter_silence_events(text))
    report = SilenceReport(
        starts=tuple(event.time for event in events if event.kind == "start"),
        ends=tuple(event.time for event in events if event.kind == "end"),
    )
    if abs(len(report.starts) - len(report.ends)) > 1:
        logger.warning(
            f"Unbalanced silence report: {len(report.starts)} starts vs {len(report.ends)} ends"
        )
    return report


class SilenceDetectionService:
    """Runs ffmpeg's silencedetect filter over a recording"""

    def __init__(self, ffmpeg_binary: str = "ffmpeg"):
        self.ffmpeg_binary = ffmpeg_binary

    def build_command(self, input_file: Union[str, Path], config: DetectionConfig) -> List[str]:
        # noinspection SpellCheckingInspection
        return [
            self.ffmpeg_binary,
            "-hide_banner",
            "-nostats",
            "-i",
            str(input_file),
            "-af",
            config.filter_expression(),
            "-f",
            "null",
            "-",
        ]

    def detect(self, input_file: Union[str, Path], config: Optional[DetectionConfig] = None) -> SilenceReport:
        """Detect silence intervals; ffmpeg writes silencedetect output to stderr"""
        config = config or DetectionConfig()
        logger.info(
            f"Silence detection parameters: noise={config.noise_threshold}, "
            f"duration={config.min_silence_duration} sec"
        )

        result = run_tool(self.build_command(input_file, config))
        report = parse_silence_report(result.stderr or "")

        logger.info(f"Detected silence start times: {list(report.starts)}")
        logger.info(f"Detected silence end times: {list(report.ends)}")
        if report.dangling_start:
            logger.debug("Recording ends inside a silence interval")
        return report
