import logging
import shlex
import subprocess
from pathlib import Path
from typing import List

from ..core.errors import ExternalToolFailure

logger = logging.getLogger(__name__)


def format_command(command: List[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


def run_tool(command: List[str]) -> subprocess.CompletedProcess:
    """Run an external command to completion and return its captured output.

    Raises ExternalToolFailure when the executable is missing or exits with a
    non-zero status. The diagnostic text is the command's stderr (or stdout
    when stderr is empty).
    """
    tool = Path(str(command[0])).name
    logger.info(f"Running: {format_command(command)}")

    try:
        result = subprocess.run(command, capture_output=True, text=True, encoding="utf-8", errors="replace")
    except FileNotFoundError as e:
        raise ExternalToolFailure(tool, None, f"executable not found: {e.filename or command[0]}") from e

    if result.returncode != 0:
        diagnostics = (result.stderr or "").strip() or (result.stdout or "").strip()
        logger.error(f"{tool} exited with status {result.returncode}")
        raise ExternalToolFailure(tool, result.returncode, diagnostics)

    return result
