"""
Relationship activity models, persisted per room.
"""

from typing import Optional

from pydantic import BaseModel, Field


class Anniversary(BaseModel):
    id: str
    title: str
    date: str  # ISO yyyy-mm-dd
    type: str = "anniversary"
    emoji: str = "❤️"


class DatePlan(BaseModel):
    id: str
    title: str
    description: str
    date: str  # ISO datetime
    type: str = "movie"
    status: str = "planned"  # "planned" | "completed"


class ScrapbookMemory(BaseModel):
    id: str
    image_url: str
    caption: str = ""
    sender: str = ""
    timestamp: int = 0
    title: Optional[str] = None


class QuizPlayer(BaseModel):
    username: str
    answers: list[str] = Field(default_factory=list)


class QuizGame(BaseModel):
    day: str
    questions: list[str] = Field(default_factory=list)
    player1: Optional[QuizPlayer] = None
    player2: Optional[QuizPlayer] = None
