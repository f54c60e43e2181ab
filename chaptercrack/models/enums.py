from enum import Enum


class Step(str, Enum):
    IDLE = "idle"
    DETECTING_SILENCE = "detecting_silence"
    PROBING_DURATION = "probing_duration"
    INFERRING_CHAPTERS = "inferring_chapters"
    WRITING_METADATA = "writing_metadata"
    MUXING = "muxing"
    COMPLETED = "completed"
    FAILED = "failed"
