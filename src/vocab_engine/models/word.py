"""Vocabulary item models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class CefrLevel(StrEnum):
    """Common European Framework of Reference proficiency tiers."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"


class Word(BaseModel):
    """A catalog word as seen by the engine."""

    model_config = ConfigDict(frozen=True)

    id: int
    lemma: str | None = None
    difficulty_rating: int = 1000
    cefr_level: CefrLevel = CefrLevel.A1
    is_active: bool = True

    # Answer counters across all learners
    times_shown: int = 0
    times_correct: int = 0
