from dataclasses import dataclass
from enum import Enum
from typing import Dict

class DemoStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    AI_ENHANCING = "ai_enhancing"
    V0_GENERATING = "v0_generating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DemoStatus.COMPLETED, DemoStatus.FAILED)

class PipelineStep(str, Enum):
    INPUT_VALIDATION = "inputValidation"
    AI_ENHANCEMENT = "aiEnhancement"
    V0_GENERATION = "v0Generation"
    CONTENT_MERGING = "contentMerging"
    FINALIZATION = "finalization"

STEP_ORDER = list(PipelineStep)

_RANK = {
    DemoStatus.PENDING: 0,
    DemoStatus.PROCESSING: 1,
    DemoStatus.AI_ENHANCING: 2,
    DemoStatus.V0_GENERATING: 3,
    DemoStatus.COMPLETED: 4,
    DemoStatus.FAILED: 4,
}

def can_transition(src: DemoStatus, dst: DemoStatus) -> bool:
    """Forward-only: terminal states never move, everything else only moves up in rank."""
    if src.is_terminal:
        return False
    return _RANK[dst] > _RANK[src]

@dataclass(frozen=True)
class Progress:
    status: DemoStatus
    percentage: int
    current_step: str
    steps: Dict[str, str]

# (percentage, current step label, completed step count, index of the step in flight)
_PROGRESS = {
    DemoStatus.PENDING: (0, "Queued", 0, None),
    DemoStatus.PROCESSING: (20, "Input validation", 1, None),
    DemoStatus.AI_ENHANCING: (35, "AI content enhancement", 1, 1),
    DemoStatus.V0_GENERATING: (65, "Generating React components", 2, 2),
    DemoStatus.COMPLETED: (100, "Generation completed", len(STEP_ORDER), None),
    DemoStatus.FAILED: (100, "Generation failed", len(STEP_ORDER), None),
}

def progress_for(status: DemoStatus) -> Progress:
    """Progress is a pure function of status; there is no separate counter."""
    percentage, label, done, active = _PROGRESS[status]
    steps = {}
    for i, step in enumerate(STEP_ORDER):
        if i < done:
            steps[step.value] = "completed"
        elif i == active:
            steps[step.value] = "processing"
        else:
            steps[step.value] = "pending"
    return Progress(status=status, percentage=percentage, current_step=label, steps=steps)
