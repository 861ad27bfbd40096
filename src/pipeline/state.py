# src/pipeline/state.py — v1
"""Analysis run state machine.

pending -> tokenizing -> matching -> aligning -> scoring -> completed
Any non-terminal state may also move to `failed` or `cancelled`.

The UI only ever sees `ui_status`, a projection of this state.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from docsim.core.errors import InvalidTransitionError

RunStatus = Literal[
    "pending", "tokenizing", "matching", "aligning", "scoring",
    "completed", "failed", "cancelled",
]
UiStatus = Literal["pending", "processing", "completed", "failed"]

STAGES: tuple[RunStatus, ...] = ("tokenizing", "matching", "aligning", "scoring")
TERMINAL: frozenset[str] = frozenset({"completed", "failed", "cancelled"})

_NEXT: dict[str, str] = {
    "pending": "tokenizing",
    "tokenizing": "matching",
    "matching": "aligning",
    "aligning": "scoring",
    "scoring": "completed",
}


def generate_run_id(timestamp: datetime | None = None) -> str:
    """Generate a run_id: yyyymmdd_hhmmss_{uuid4_short}."""
    ts = timestamp or datetime.now(timezone.utc)
    return f"{ts.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"


class AnalysisRunState(BaseModel):
    """Mutable progress record of one analysis run."""

    run_id: str = Field(default_factory=generate_run_id)
    document_id: str = ""
    status: RunStatus = "pending"
    failed_stage: str | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    stage_started_at: dict[str, datetime] = Field(default_factory=dict)
    finished_at: datetime | None = None
    candidates_total: int = 0
    candidates_aligned: int = 0
    candidates_skipped: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL

    @property
    def ui_status(self) -> UiStatus:
        if self.status == "pending":
            return "pending"
        if self.status == "completed":
            return "completed"
        if self.status in ("failed", "cancelled"):
            return "failed"
        return "processing"

    def advance(self, to: RunStatus) -> None:
        """Move to the next stage; only the single forward edge is legal."""
        if _NEXT.get(self.status) != to:
            raise InvalidTransitionError(
                f"Illegal transition {self.status} -> {to}",
                document_id=self.document_id or None,
                stage=self.status,
            )
        self.status = to
        now = datetime.now(timezone.utc)
        if to == "completed":
            self.finished_at = now
        else:
            self.stage_started_at[to] = now

    def fail(self, error: str) -> None:
        self._terminate("failed")
        self.error = error

    def cancel(self) -> None:
        self._terminate("cancelled")

    def _terminate(self, to: RunStatus) -> None:
        if self.is_terminal:
            raise InvalidTransitionError(
                f"Illegal transition {self.status} -> {to}",
                document_id=self.document_id or None,
                stage=self.status,
            )
        self.failed_stage = self.status
        self.status = to
        self.finished_at = datetime.now(timezone.utc)
