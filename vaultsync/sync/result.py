# vaultsync Sync Results
# Per-step outcomes and the aggregate result of one sync attempt

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from vaultsync.errors import SyncError
from vaultsync.git.engine import BackendKind


class SyncStep(str, Enum):
    """States of the sync state machine, in execution order."""

    IDLE = "idle"
    DETECT_STATUS = "detect_status"
    COMMIT = "commit"
    CONFIGURE_REMOTE = "configure_remote"
    FETCH = "fetch"
    PULL = "pull"
    PUSH = "push"
    DONE = "done"
    FAILED = "failed"


# Steps that produce a StepResult, in order
PIPELINE: tuple[SyncStep, ...] = (
    SyncStep.DETECT_STATUS,
    SyncStep.COMMIT,
    SyncStep.CONFIGURE_REMOTE,
    SyncStep.FETCH,
    SyncStep.PULL,
    SyncStep.PUSH,
)


class StepOutcome(str, Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SyncTrigger(str, Enum):
    """What requested the sync attempt."""

    MANUAL = "manual"
    STARTUP = "startup"
    INTERVAL = "interval"


@dataclass
class StepResult:
    """Outcome of a single pipeline step."""

    step: SyncStep
    outcome: StepOutcome
    detail: str = ""
    error: Optional[SyncError] = None

    @property
    def reason(self) -> str:
        """Failure reason, empty unless the step failed."""
        if self.error is not None:
            return str(self.error)
        return self.detail if self.outcome == StepOutcome.FAILED else ""


@dataclass
class SyncResult:
    """Result of one sync attempt."""

    trigger: SyncTrigger = SyncTrigger.MANUAL
    backend: Optional[BackendKind] = None
    skipped: bool = False
    state: SyncStep = SyncStep.IDLE
    steps: list[StepResult] = field(default_factory=list)
    commit_id: Optional[str] = None

    def record(
        self,
        step: SyncStep,
        outcome: StepOutcome,
        detail: str = "",
        error: Optional[SyncError] = None,
    ) -> StepResult:
        """Append a step result and advance the state."""
        result = StepResult(step=step, outcome=outcome, detail=detail, error=error)
        self.steps.append(result)
        self.state = SyncStep.FAILED if outcome == StepOutcome.FAILED else step
        return result

    def abort_remaining(self) -> None:
        """Mark every pipeline step not yet recorded as skipped; the state stays as is."""
        recorded = {result.step for result in self.steps}
        for step in PIPELINE:
            if step not in recorded:
                self.steps.append(StepResult(step=step, outcome=StepOutcome.SKIPPED, detail="aborted"))

    def step(self, step: SyncStep) -> Optional[StepResult]:
        for result in self.steps:
            if result.step == step:
                return result
        return None

    def outcome(self, step: SyncStep) -> Optional[StepOutcome]:
        result = self.step(step)
        return result.outcome if result else None

    @property
    def failed_step(self) -> Optional[StepResult]:
        for result in self.steps:
            if result.outcome == StepOutcome.FAILED:
                return result
        return None

    @property
    def success(self) -> bool:
        return not self.skipped and self.failed_step is None

    @property
    def committed(self) -> bool:
        return self.outcome(SyncStep.COMMIT) == StepOutcome.SUCCEEDED

    @property
    def pushed(self) -> bool:
        return self.outcome(SyncStep.PUSH) == StepOutcome.SUCCEEDED

    @property
    def summary(self) -> str:
        """One-line description for history logs."""
        if self.skipped:
            return "skipped (sync already in progress)"
        failed = self.failed_step
        if failed is not None:
            return f"failed at {failed.step.value}: {failed.reason}"
        return "ok"
