from typing import Optional


class ChapterCrackError(Exception):
    """Base class for every failure that aborts a chaptering run"""

    pass


class ExternalToolFailure(ChapterCrackError):
    """An external command (ffmpeg, ffprobe) exited with a non-zero status"""

    def __init__(self, tool: str, returncode: Optional[int], diagnostics: str = ""):
        self.tool = tool
        self.returncode = returncode
        self.diagnostics = diagnostics
        if returncode is None:
            message = f"{tool} could not be run"
        else:
            message = f"{tool} failed with exit status {returncode}"
        if diagnostics:
            message = f"{message}: {diagnostics}"
        super().__init__(message)


class InvalidDuration(ChapterCrackError):
    """The probed duration is not a finite, non-negative number of seconds"""

    def __init__(self, raw, reason: str = "not a finite non-negative number"):
        self.raw = raw
        super().__init__(f"Invalid duration {raw!r}: {reason}")


class MalformedSilenceReport(ChapterCrackError):
    """Silence-end timestamps went backwards"""

    def __init__(self, index: int, value: float, previous: float):
        self.index = index
        self.value = value
        self.previous = previous
        super().__init__(
            f"Silence end #{index} at {value}s is earlier than the previous silence end at {previous}s"
        )


class IOFailure(ChapterCrackError):
    """The chapter metadata document or the muxed output could not be written"""

    def __init__(self, path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Unable to write {path}: {cause}")
