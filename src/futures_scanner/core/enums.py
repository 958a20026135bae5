"""Core enumerations for the futures scanner."""

from enum import Enum


class Direction(str, Enum):
    """Trade direction suggested for a symbol."""
    LONG = "Long"
    SHORT = "Short"


class MovementStatus(str, Enum):
    """How imminent a price move appears, most urgent first."""
    MOVING_NOW = "Moving Now"
    ABOUT_TO_MOVE = "About To Move"
    LIKELY_IN_24H = "Likely in 24H"


class Confidence(str, Enum):
    """Coarse confidence tier combining composite and risk scores."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
