from enum import Enum

class TaskStatus(Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def has_value(cls, value):
        return value in [item.value for item in cls]

    @classmethod
    def values(cls):
        return [item.value for item in cls]
