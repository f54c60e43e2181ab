import logging
import math

import pytest

from chaptercrack.core.errors import InvalidDuration, MalformedSilenceReport
from chaptercrack.services.chapter_inference import chapter_title, infer_chapters


@pytest.mark.parametrize(
    "silence_ends",
    [
        [],
        [12.0],
        [10.5, 45.002],
        [1.0, 2.0, 3.5, 60.25, 99.999],
    ],
)
def test_infer_chapters_starts_at_zero_then_at_each_silence_end(silence_ends):
    chapters = infer_chapters(silence_ends, 100.0)

    assert len(chapters) == len(silence_ends) + 1
    assert chapters[0].start == 0.0
    assert [c.start for c in chapters[1:]] == silence_ends
    assert [c.title for c in chapters] == [f"Chapter {i}" for i in range(1, len(chapters) + 1)]
    assert [c.index for c in chapters] == list(range(1, len(chapters) + 1))


def test_infer_chapters_without_silence_gives_single_chapter():
    chapters = infer_chapters([], 3600.5)

    assert len(chapters) == 1
    assert chapters[0].start == 0.0
    assert chapters[0].end == 3600.5
    assert chapters[0].title == "Chapter 1"


def test_infer_chapters_ends_are_contiguous():
    chapters = infer_chapters([10.5, 45.002], 100.0)

    assert [(c.start, c.end) for c in chapters] == [(0.0, 10.5), (10.5, 45.002), (45.002, 100.0)]


def test_infer_chapters_keeps_duplicate_silence_ends():
    chapters = infer_chapters([20.0, 20.0], 100.0)

    assert [c.start for c in chapters] == [0.0, 20.0, 20.0]


def test_infer_chapters_rejects_decreasing_silence_ends():
    with pytest.raises(MalformedSilenceReport) as exc_info:
        infer_chapters([5.0, 3.0], 100.0)

    assert exc_info.value.index == 1
    assert exc_info.value.value == 3.0
    assert exc_info.value.previous == 5.0
    assert "3.0" in str(exc_info.value)


def test_infer_chapters_keeps_silence_end_past_total_duration(caplog):
    with caplog.at_level(logging.WARNING):
        chapters = infer_chapters([50.0, 100.0, 101.5], 100.0)

    assert [c.start for c in chapters] == [0.0, 50.0, 100.0, 101.5]
    assert chapters[-1].end == 100.0
    assert "beyond the total duration" in caplog.text


@pytest.mark.parametrize("duration", [math.nan, math.inf, -1.0, "abc", None])
def test_infer_chapters_rejects_invalid_duration(duration):
    with pytest.raises(InvalidDuration):
        infer_chapters([1.0], duration)


def test_chapter_title_is_ordinal():
    assert chapter_title(7) == "Chapter 7"
