import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from ..core.errors import IOFailure
from .external_tools import run_tool

logger = logging.getLogger(__name__)


class MuxService:
    """Writes the chaptered output container with ffmpeg"""

    MP4_FAMILY_EXTENSIONS = {".m4b", ".m4a", ".mp4"}

    def __init__(self, ffmpeg_binary: str = "ffmpeg", audio_codec: str = "copy"):
        self.ffmpeg_binary = ffmpeg_binary
        self.audio_codec = audio_codec

    @staticmethod
    def default_output_path(input_path: Union[str, Path]) -> Path:
        """`book.mp3` becomes `book.m4b`; an input that already is .m4b gets `book.chapters.m4b`"""
        input_path = Path(input_path)
        output = input_path.with_suffix(".m4b")
        if output == input_path:
            output = input_path.with_name(f"{input_path.stem}.chapters.m4b")
        return output

    @staticmethod
    def _output_muxer(file_path: Path) -> Optional[str]:
        """Return an explicit muxer when extension-based auto-detect is problematic."""
        if file_path.suffix.lower() in MuxService.MP4_FAMILY_EXTENSIONS:
            # Force mp4 muxer so ffmpeg does not pick the stricter 'ipod' muxer for .m4b.
            return "mp4"
        return None

    def build_command(self, input_path: Path, metadata_path: Path, output_path: Path) -> List[str]:
        command = [
            self.ffmpeg_binary,
            "-hide_banner",
            "-y",
            "-i",
            str(input_path),
            "-f",
            "ffmetadata",
            "-i",
            str(metadata_path),
            "-map",
            "0:a",
            "-map_metadata",
            "1",
            "-map_chapters",
            "1",
        ]
        if self.audio_codec == "copy":
            command.extend(["-c", "copy"])
        else:
            command.extend(["-c:a", self.audio_codec])

        output_muxer = self._output_muxer(output_path)
        if output_muxer:
            command.extend(["-f", output_muxer])
        command.append(str(output_path))
        return command

    def mux(
        self,
        input_path: Union[str, Path],
        metadata_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
    ) -> Path:
        """
        Mux the source with the chapter document into the output container.

        ffmpeg writes to a temporary sibling, which replaces the output only
        on success.
        """
        input_path = Path(input_path)
        metadata_path = Path(metadata_path)
        output_path = Path(output_path) if output_path else self.default_output_path(input_path)

        tmp_output = output_path.with_name(f"{output_path.stem}.chaptercrack.tmp{output_path.suffix}")
        try:
            run_tool(self.build_command(input_path, metadata_path, tmp_output))
            try:
                os.replace(tmp_output, output_path)
            except OSError as e:
                raise IOFailure(output_path, e) from e
        finally:
            if tmp_output.exists():
                tmp_output.unlink()

        logger.info(f"Successfully created {output_path} with chapters.")
        return output_path
