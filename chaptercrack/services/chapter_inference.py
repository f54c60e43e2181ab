import logging
from typing import List, Sequence

from ..core.durations import validate_duration
from ..core.errors import MalformedSilenceReport
from ..models.chapters import Chapter

logger = logging.getLogger(__name__)


def chapter_title(ordinal: int) -> str:
    return f"Chapter {ordinal}"


def _check_monotonic(silence_ends: Sequence[float]):
    for idx in range(1, len(silence_ends)):
        if silence_ends[idx] < silence_ends[idx - 1]:
            raise MalformedSilenceReport(idx, silence_ends[idx], silence_ends[idx - 1])


def infer_chapters(silence_ends: Sequence[float], total_duration: float) -> List[Chapter]:
    """
    Build the chapter list from silence end timestamps.

    Chapter 1 starts at 0 and every silence end starts the next chapter, so a
    chapter begins where audible content resumes. Silence starts are not used.
    Equal consecutive ends produce two chapters with the same start, and ends
    at or past the total duration are kept as reported.
    """
    total_duration = validate_duration(total_duration)
    _check_monotonic(silence_ends)

    starts = [0.0] + [float(t) for t in silence_ends]
    chapters = []
    for i, start in enumerate(starts):
        end = starts[i + 1] if i < len(starts) - 1 else total_duration
        chapters.append(Chapter(index=i + 1, start=start, end=end, title=chapter_title(i + 1)))

    past_end = [t for t in silence_ends if t >= total_duration]
    if past_end:
        logger.warning(
            f"{len(past_end)} silence end(s) at or beyond the total duration of {total_duration}s: {past_end}"
        )

    logger.info(f"Inferred {len(chapters)} chapters")
    return chapters
