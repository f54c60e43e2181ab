from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field


class SilenceEvent(BaseModel):
    """A single silence_start or silence_end line from ffmpeg's silencedetect output"""

    model_config = ConfigDict(frozen=True)

    kind: Literal["start", "end"]
    time: float = Field(ge=0)


class SilenceReport(BaseModel):
    """Silence interval starts and ends in the order ffmpeg reported them"""

    model_config = ConfigDict(frozen=True)

    starts: Tuple[float, ...] = ()
    ends: Tuple[float, ...] = ()

    @property
    def dangling_start(self) -> bool:
        """True when the stream ended in the middle of a silence"""
        return len(self.starts) == len(self.ends) + 1


class Chapter(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    start: float = Field(ge=0)
    end: float
    title: str = Field(min_length=1)


class ChapterRecord(BaseModel):
    """One [CHAPTER] block of an ffmetadata document, in milliseconds"""

    model_config = ConfigDict(frozen=True)

    start_ms: int
    end_ms: int
    title: str


class ChapterDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    records: Tuple[ChapterRecord, ...] = ()
    text: str
