"""Errors raised by the progression engine.

Every rejection is raised before any record is loaded for writing, so a
caller that catches one can assume nothing was persisted.
"""

from __future__ import annotations


class GamificationError(Exception):
    """Base class for engine rejections."""


class InvalidAwardError(GamificationError, ValueError):
    """Malformed point or XP award (negative, non-integer, unknown category)."""


class UnsupportedPeriodError(GamificationError, ValueError):
    """Leaderboard period the ledger has no windowed total for."""


class UnknownItemError(GamificationError, LookupError):
    """Completion requested for an id that is not in the catalogue."""

    kind = "item"

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Unknown {self.kind}: {item_id}")


class UnknownChallengeError(UnknownItemError):
    kind = "challenge"


class UnknownQuestError(UnknownItemError):
    kind = "quest"


class UnknownQuestStepError(UnknownItemError):
    kind = "quest step"


class UnknownAchievementError(UnknownItemError):
    kind = "achievement"


class QuestLockedError(GamificationError):
    """Step completion attempted on a quest whose prerequisite is unmet."""

    def __init__(self, quest_id: str) -> None:
        self.quest_id = quest_id
        super().__init__(f"Quest is locked: {quest_id}")
