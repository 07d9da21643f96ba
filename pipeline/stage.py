from enum import Enum
from typing import Dict


class Stage(str, Enum):
    IDLE = "idle"
    PREPROCESSING = "preprocessing"
    OCR = "ocr"
    PARSING = "parsing"
    SOLVING = "solving"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.COMPLETE, Stage.ERROR)

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STAGES


# Happy path, in order.
STAGE_ORDER = (
    Stage.IDLE,
    Stage.PREPROCESSING,
    Stage.OCR,
    Stage.PARSING,
    Stage.SOLVING,
    Stage.COMPLETE,
)

ACTIVE_STAGES = (Stage.PREPROCESSING, Stage.OCR, Stage.PARSING, Stage.SOLVING)

STAGE_LABELS: Dict[Stage, str] = {
    Stage.PREPROCESSING: "Preprocessing",
    Stage.OCR: "OCR",
    Stage.PARSING: "Parsing",
    Stage.SOLVING: "Solving",
}


def can_transition(current: Stage, target: Stage) -> bool:
    # reset is handled by clear(), not by a transition
    if target is Stage.ERROR:
        return current.is_active

    if current.is_terminal:
        return False

    index = STAGE_ORDER.index(current)
    return index + 1 < len(STAGE_ORDER) and STAGE_ORDER[index + 1] is target


def stage_progress(stage: Stage) -> Dict[Stage, str]:
    """
    Per-step status for a progress display: 'done', 'active' or 'pending'.

    Nothing is shown while idle or after an error.
    """
    if stage in (Stage.IDLE, Stage.ERROR):
        return {}

    if stage is Stage.COMPLETE:
        return {s: "done" for s in ACTIVE_STAGES}

    current = STAGE_ORDER.index(stage)
    progress = {}
    for s in ACTIVE_STAGES:
        index = STAGE_ORDER.index(s)
        if index < current:
            progress[s] = "done"
        elif index == current:
            progress[s] = "active"
        else:
            progress[s] = "pending"
    return progress
