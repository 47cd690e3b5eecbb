from enum import Enum

class Priority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class ProjectStatus(Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"

class MilestoneStatus(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class BudgetStatus(Enum):
    NONE = "none"
    ON_TRACK = "on_track"
    WARNING = "warning"
    OVER_BUDGET = "over_budget"

# Estimated effort per task, used where no time tracking exists
PRIORITY_HOURS = {
    Priority.HIGH.value: 4,
    Priority.MEDIUM.value: 2,
    Priority.LOW.value: 1,
}
HOURS_PER_COMPLETED_TASK = 2
