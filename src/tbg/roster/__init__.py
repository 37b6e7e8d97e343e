from .entities import Activity, Group, Match, Participant, RatingAssessment

__all__ = [
    "Activity",
    "Group",
    "Match",
    "Participant",
    "RatingAssessment",
]
