import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .core.config import DetectionConfig, get_app_config
from .core.errors import ChapterCrackError
from .services.processing_pipeline import ChapterPipeline

logger = logging.getLogger("chaptercrack")


def build_parser() -> argparse.ArgumentParser:
    defaults = get_app_config()
    parser = argparse.ArgumentParser(
        prog="chaptercrack",
        description="Detect quiet sections in a recording, mark them as chapters and write an M4B audiobook.",
    )
    parser.add_argument("input", help="Input audio file, e.g. book.mp3")
    parser.add_argument(
        "--noise",
        default=defaults.detection.noise_threshold,
        help=f"Silence noise threshold (default: {defaults.detection.noise_threshold})",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=defaults.detection.min_silence_duration,
        help=f"Minimum silence duration in seconds (default: {defaults.detection.min_silence_duration:g})",
    )
    parser.add_argument("-o", "--output", help="Output file (default: input with .m4b extension)")
    parser.add_argument("--metadata-file", help="Keep the chapter metadata document at this path")
    parser.add_argument(
        "--metadata-only",
        action="store_true",
        help="Only write the chapter metadata document, do not mux",
    )
    parser.add_argument(
        "--codec",
        default=defaults.output.audio_codec,
        help=f"Audio codec for the output (default: {defaults.output.audio_codec})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )


def _join_noise_values(argv: List[str]) -> List[str]:
    """Fold `--noise -35dB` into `--noise=-35dB` so argparse does not read the value as an option"""
    joined = []
    i = 0
    while i < len(argv):
        if argv[i] == "--noise" and i + 1 < len(argv):
            joined.append(f"--noise={argv[i + 1]}")
            i += 2
        else:
            joined.append(argv[i])
            i += 1
    return joined


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    argv = _join_noise_values(list(sys.argv[1:] if argv is None else argv))
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error(f"Input file \"{input_path}\" does not exist.")
        return 1

    try:
        detection = DetectionConfig(noise_threshold=args.noise, min_silence_duration=args.duration)
    except ValidationError as e:
        parser.error(f"invalid silence detection parameters: {e.errors()[0]['msg']}")

    pipeline = ChapterPipeline(
        input_path,
        detection=detection,
        output_path=args.output,
        metadata_path=args.metadata_file,
        keep_metadata_file=get_app_config().output.keep_metadata_file,
        metadata_only=args.metadata_only,
        audio_codec=args.codec,
    )

    try:
        result = pipeline.run()
    except ChapterCrackError as e:
        stage = (pipeline.failed_step or pipeline.step).value.replace("_", " ")
        logger.error(f"Error while {stage}: {e}")
        return 1

    for record in result.document.records:
        logger.info(f"{record.title}: START={record.start_ms} END={record.end_ms}")
    if result.metadata_path:
        logger.info(f"Chapter metadata kept at {result.metadata_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
