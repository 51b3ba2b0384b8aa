"""Service layer types for gvt."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .core import StatusReport
from .errors import ExitCode


class OperationResult(BaseModel):
    """Outcome of one verb, as reported to the command dispatcher."""
    code: ExitCode = ExitCode.OK
    message: str = ""
    # Generation created or selected by the verb, if any
    generation: Optional[int] = None
    # True only when the verb finalized a new generation
    created: bool = False
    lines: List[str] = Field(default_factory=list)
    report: Optional[StatusReport] = None

    @property
    def ok(self) -> bool:
        return self.code == ExitCode.OK
