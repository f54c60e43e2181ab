from fastapi import HTTPException

from ..core.errors import ChapterCrackError, ExternalToolFailure, InvalidDuration, IOFailure, MalformedSilenceReport


def to_http_exception(error: ChapterCrackError) -> HTTPException:
    if isinstance(error, (MalformedSilenceReport, InvalidDuration)):
        status_code = 422
    elif isinstance(error, ExternalToolFailure):
        status_code = 502
    elif isinstance(error, IOFailure):
        status_code = 500
    else:
        status_code = 400
    return HTTPException(status_code=status_code, detail={"error": type(error).__name__, "message": str(error)})
