import logging
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def resolve_media_path(path: str, media_base: str, must_exist: bool = True) -> Tuple[bool, str, Optional[Path]]:
    """Resolve a path requested over HTTP and enforce that it stays inside the media base."""
    if not path or not path.strip():
        return False, "Path is required", None

    try:
        base_real = Path(media_base).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        return False, f"Configured media base does not exist: {media_base} ({e})", None

    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = base_real / candidate

    try:
        resolved = candidate.resolve(strict=must_exist)
    except (OSError, RuntimeError) as e:
        return False, f"Path does not exist: {candidate} ({e})", None

    if resolved != base_real and base_real not in resolved.parents:
        return False, f"Path must be inside media base: {base_real}", None

    if must_exist and not resolved.is_file():
        return False, f"Not a file: {resolved}", None

    return True, "Valid media path", resolved
