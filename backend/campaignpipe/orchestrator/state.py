"""Stage and status constants plus transition rules for the campaign pipeline.

Defines the fixed stage order and the forward-only status lifecycle every
stage follows within a single run.
"""

from enum import Enum


class StageName(str, Enum):
    """The four pipeline stages, declared in execution order."""

    STRATEGY = "strategy"
    COPY = "copy"
    VISUALS = "visuals"
    VIDEO = "video"

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]


class StageStatus(str, Enum):
    """Lifecycle status of a single stage."""

    PENDING = "pending"
    WORKING = "working"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


# Execution order
STAGE_ORDER: tuple[StageName, ...] = (
    StageName.STRATEGY,
    StageName.COPY,
    StageName.VISUALS,
    StageName.VIDEO,
)

STAGE_LABELS = {
    StageName.STRATEGY: "Strategist",
    StageName.COPY: "Copywriter",
    StageName.VISUALS: "Visual Artist",
    StageName.VIDEO: "Video Editor",
}

TERMINAL_STATUSES = frozenset({
    StageStatus.COMPLETED,
    StageStatus.ERROR,
    StageStatus.CANCELLED,
})

# Allowed status transitions within one run
STATUS_TRANSITIONS = {
    StageStatus.PENDING: frozenset({StageStatus.WORKING}),
    StageStatus.WORKING: TERMINAL_STATUSES,
    StageStatus.COMPLETED: frozenset(),
    StageStatus.ERROR: frozenset(),
    StageStatus.CANCELLED: frozenset(),
}


def is_valid_transition(current: StageStatus, new: StageStatus) -> bool:
    """Check whether a stage may move from current to new status.

    The tracker applies statuses as given and does not consult this table.
    It describes the forward-only lifecycle the executors follow, and the
    orchestrator tests check every observed status change against it.

    Args:
        current: Status the stage is in now
        new: Status being applied

    Returns:
        True if the transition is allowed, False otherwise

    Examples:
        >>> is_valid_transition(StageStatus.PENDING, StageStatus.WORKING)
        True
        >>> is_valid_transition(StageStatus.COMPLETED, StageStatus.WORKING)
        False
    """
    return new in STATUS_TRANSITIONS[current]

