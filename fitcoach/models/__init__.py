from .user import User

from .program import Program
from .program_schedule import ProgramSchedule
from .program_assignment import ProgramAssignment, ProgramProgress, ProgramDayCompletion
from .progression_rule import ProgressionRule, ClientProgressionRule

from .workout_template import WorkoutTemplate, WorkoutBlock, WorkoutBlockExercise
from .workout_assignment import WorkoutAssignment
from .workout_session import WorkoutSession
from .workout_log import WorkoutLog, WorkoutSetLog

__all__ = [
    "User",
    "Program", "ProgramSchedule", "ProgramAssignment", "ProgramProgress", "ProgramDayCompletion",
    "ProgressionRule", "ClientProgressionRule",
    "WorkoutTemplate", "WorkoutBlock", "WorkoutBlockExercise",
    "WorkoutAssignment", "WorkoutSession", "WorkoutLog", "WorkoutSetLog",
]
