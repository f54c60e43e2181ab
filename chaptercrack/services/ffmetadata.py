import logging
import math
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from ..core.durations import validate_duration
from ..core.errors import IOFailure
from ..models.chapters import Chapter, ChapterDocument, ChapterRecord

logger = logging.getLogger(__name__)

FFMETADATA_HEADER = ";FFMETADATA1"
TIMEBASE = "1/1000"


def escape_ffmetadata_value(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace("\n", "\\\n")
    escaped = escaped.replace("=", "\\=").replace(";", "\\;").replace("#", "\\#")
    return escaped


def to_milliseconds(seconds: float) -> int:
    return math.floor(seconds * 1000)


def chapter_time_ranges(chapters: Sequence[Chapter], total_duration: float) -> List[Tuple[int, int]]:
    """
    Millisecond (START, END) pairs for each chapter.

    A chapter ends one millisecond before the next one starts; the last
    chapter ends at the total duration.
    """
    total_duration = validate_duration(total_duration)
    starts = [to_milliseconds(chapter.start) for chapter in chapters]

    ranges = []
    for i, start_ms in enumerate(starts):
        if i < len(starts) - 1:
            end_ms = starts[i + 1] - 1
        else:
            end_ms = to_milliseconds(total_duration)
        ranges.append((start_ms, end_ms))
    return ranges


def render_ffmetadata(records: Sequence[ChapterRecord]) -> str:
    lines = [FFMETADATA_HEADER]
    for record in records:
        lines.extend(
            [
                "[CHAPTER]",
                f"TIMEBASE={TIMEBASE}",
                f"START={record.start_ms}",
                f"END={record.end_ms}",
                f"title={escape_ffmetadata_value(record.title)}",
                "",
            ]
        )
    return "\n".join(lines) + "\n"


def encode_chapter_document(chapters: Sequence[Chapter], total_duration: float) -> ChapterDocument:
    """Encode chapters as an ffmetadata document with a 1/1000 timebase"""
    ranges = chapter_time_ranges(chapters, total_duration)
    records = tuple(
        ChapterRecord(start_ms=start_ms, end_ms=end_ms, title=chapter.title)
        for chapter, (start_ms, end_ms) in zip(chapters, ranges)
    )
    return ChapterDocument(records=records, text=render_ffmetadata(records))


def write_chapter_document(document: ChapterDocument, path: Union[str, Path]) -> Path:
    target = Path(path)
    try:
        with open(target, "w", encoding="utf-8", newline="\n") as meta_file:
            meta_file.write(document.text)
    except OSError as e:
        raise IOFailure(target, e) from e

    logger.info(f"Chapter metadata written to {target}")
    return target
