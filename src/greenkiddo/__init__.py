"""GreenKiddo progression and gamification service."""

__version__ = "0.1.0"
