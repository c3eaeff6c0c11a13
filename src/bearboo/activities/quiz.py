"""
Two-player compatibility quiz, one game per room per day.
"""

import logging
from datetime import date
from typing import NamedTuple, Optional

from bearboo.activities.questions import daily_questions, game_title
from bearboo.config import RoomState
from bearboo.models.activity import QuizGame, QuizPlayer

logger = logging.getLogger("bearboo.quiz")

DOCUMENT = "quiz"

VERDICTS = [
    (80, "😍", "Perfect Match! You two are soulmates!"),
    (60, "💖", "Great Connection! You understand each other well!"),
    (40, "💕", "Good Match! You're getting to know each other!"),
    (0, "💝", "Time to learn more about each other!"),
]


class QuizResult(NamedTuple):
    score: int
    mine: list[str]
    partner: list[str]


def answers_match(a: str, b: str) -> bool:
    words_a = a.lower().split()
    words_b = b.lower().split()
    return any(w2 in w1 or w1 in w2 for w1 in words_a for w2 in words_b)


def compatibility(answers1: list[str], answers2: list[str]) -> int:
    """Percentage of questions where the two answers share a word."""
    if not answers1:
        return 0
    matches = sum(1 for a, b in zip(answers1, answers2) if answers_match(a, b))
    return round(matches / len(answers1) * 100)


def verdict(score: int) -> tuple[str, str]:
    for threshold, emoji, text in VERDICTS:
        if score >= threshold:
            return emoji, text
    return VERDICTS[-1][1], VERDICTS[-1][2]


class CompatibilityQuiz:
    def __init__(self, room: RoomState):
        self._room = room

    def _load(self) -> Optional[QuizGame]:
        raw = self._room.load_raw(DOCUMENT)
        if raw is None:
            return None
        try:
            return QuizGame.model_validate(raw)
        except ValueError as e:
            logger.warning(f"Discarding unreadable quiz for room {self._room.room_id}: {e}")
            return None

    def _save(self, game: QuizGame) -> None:
        self._room.save_raw(DOCUMENT, game.model_dump())

    def today(self, partner: str, day: date) -> QuizGame:
        """Today's game, starting a fresh one when the stored game is from another day."""
        game = self._load()
        key = day.isoformat()
        if game is None or game.day != key:
            game = QuizGame(day=key, questions=daily_questions(partner, day))
            self._save(game)
        return game

    def title(self, day: date) -> str:
        return game_title(day)

    def answer(self, username: str, answers: list[str], partner: str, day: date) -> QuizGame:
        game = self.today(partner, day)
        if len(answers) != len(game.questions):
            raise ValueError(f"Expected {len(game.questions)} answers, got {len(answers)}")
        if any(not a.strip() for a in answers):
            raise ValueError("Please enter an answer for every question")
        player = QuizPlayer(username=username, answers=answers)
        if game.player1 is None or game.player1.username == username:
            game.player1 = player
        elif game.player2 is None or game.player2.username == username:
            game.player2 = player
        else:
            raise ValueError("Both players have already answered today")
        self._save(game)
        return game

    def result(self, username: str) -> Optional[QuizResult]:
        """Score from ``username``'s side, or None until both have answered."""
        game = self._load()
        if game is None or game.player1 is None or game.player2 is None:
            return None
        if game.player1.username == username:
            mine, theirs = game.player1.answers, game.player2.answers
        elif game.player2.username == username:
            mine, theirs = game.player2.answers, game.player1.answers
        else:
            return None
        return QuizResult(compatibility(mine, theirs), mine, theirs)

    def waiting_for_partner(self, username: str) -> bool:
        game = self._load()
        if game is None:
            return False
        players = [p for p in (game.player1, game.player2) if p is not None]
        return len(players) == 1 and players[0].username == username

    def reset(self) -> None:
        self._room.delete(DOCUMENT)
