# portal/upload_progress.py
# -------------------------
# Responsibility:
# - Track the phases of a model upload (upload, validate, parse, ...)
# - Replace step records on every transition so renderers can diff by identity

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple


class StepStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class UploadStep:
    id: str
    label: str
    status: StepStatus = StepStatus.PENDING
    message: Optional[str] = None


STEP_LABELS: Dict[str, str] = {
    "upload": "File Upload",
    "validate": "Data Validation",
    "parse": "Column Analysis",
    "train": "Model Training",
    "predict": "Forecast Generation",
    "ready": "Ready for Results",
}


def build_steps(step_ids: Iterable[str]) -> Tuple[UploadStep, ...]:
    return tuple(UploadStep(id=step_id, label=STEP_LABELS.get(step_id, step_id.title())) for step_id in step_ids)


class UploadTracker:
    """
    Ordered set of upload steps.

    Each transition swaps the step for a new record; a listener, when given,
    receives the full step tuple after every change.
    """

    def __init__(
        self,
        step_ids: Iterable[str] = ("upload", "validate", "parse", "ready"),
        listener: Optional[Callable[[Tuple[UploadStep, ...]], None]] = None,
    ):
        self._initial = build_steps(step_ids)
        self.steps = self._initial
        self.listener = listener

    def _index(self, step_id: str) -> int:
        for i, step in enumerate(self.steps):
            if step.id == step_id:
                return i
        raise KeyError(f"Unknown upload step '{step_id}'")

    def _set(self, step_id: str, status: StepStatus, message: Optional[str]) -> UploadStep:
        i = self._index(step_id)
        updated = replace(self.steps[i], status=status, message=message)
        self.steps = self.steps[:i] + (updated,) + self.steps[i + 1:]
        if self.listener is not None:
            self.listener(self.steps)
        return updated

    def start(self, step_id: str, message: Optional[str] = None) -> UploadStep:
        return self._set(step_id, StepStatus.PROCESSING, message)

    def complete(self, step_id: str, message: Optional[str] = None) -> UploadStep:
        return self._set(step_id, StepStatus.COMPLETED, message)

    def fail(self, step_id: str, message: Optional[str] = None) -> UploadStep:
        return self._set(step_id, StepStatus.ERROR, message)

    def reset(self):
        self.steps = self._initial
        if self.listener is not None:
            self.listener(self.steps)

    def get(self, step_id: str) -> UploadStep:
        return self.steps[self._index(step_id)]

    def has(self, step_id: str) -> bool:
        return any(step.id == step_id for step in self.steps)

    @property
    def is_finished(self) -> bool:
        return all(step.status == StepStatus.COMPLETED for step in self.steps)

    @property
    def has_error(self) -> bool:
        return any(step.status == StepStatus.ERROR for step in self.steps)

    def as_dicts(self) -> List[dict]:
        return [
            {"id": s.id, "label": s.label, "status": s.status.value, "message": s.message}
            for s in self.steps
        ]
