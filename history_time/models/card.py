"""Historical event card model."""

import enum
from typing import Optional

from sqlalchemy import String, Integer, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column

from history_time.models.base import Base


class Difficulty(str, enum.Enum):
    """Game and card difficulty levels."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class Card(Base):
    """A historical event that can be placed on a timeline."""

    __tablename__ = "cards"

    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")

    # Negative years are BCE
    year: Mapped[int] = mapped_column(Integer, index=True)

    category: Mapped[str] = mapped_column(String(50), index=True)
    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty, values_callable=lambda e: [m.value for m in e]),
        default=Difficulty.MEDIUM,
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<Card {self.title} ({self.year})>"
