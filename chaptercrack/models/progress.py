from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field

from .enums import Step

# (step, percent, message, details)
ProgressCallback = Callable[[Step, float, str, Optional[Dict[str, Any]]], Any]


class PipelineProgress(BaseModel):
    step: Step
    percent: float = 0.0
    message: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)
