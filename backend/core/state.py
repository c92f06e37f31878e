# backend/core/state.py

from enum import Enum

class SessionStatus(str, Enum):
    COLLECTING_INFO = "collecting-info"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    COMPLETED = "completed"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
