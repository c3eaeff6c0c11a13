"""
Daily question generator for the compatibility quiz.

Both partners get the same questions on the same day without talking to a
server: everything is derived from a hash of the date.
"""

import math
from datetime import date
from typing import Sequence, TypeVar

T = TypeVar("T")

QUESTION_CATEGORIES = [
    "deep connection",
    "future plans",
    "relationship compatibility",
    "love languages",
    "shared memories",
    "communication styles",
    "goals and dreams",
    "values and beliefs",
    "likes and preferences",
    "childhood memories",
    "travel and adventure",
    "family and friends",
    "daily habits",
    "hypothetical scenarios",
]

QUESTION_TEMPLATES = [
    "What is {partner}'s favorite way to spend a weekend?",
    "How would {partner} react if {scenario}?",
    "What do you think {partner} values most in your relationship?",
    "What was {partner}'s most memorable childhood experience?",
    "Where would {partner} most like to travel together?",
    "What does {partner} appreciate most about your communication style?",
    "What is {partner}'s biggest relationship fear?",
    "How would {partner} describe their perfect date night?",
    "What movie/book/song does {partner} think best represents your relationship?",
    "What food would {partner} choose to eat for the rest of their life?",
    "Which of {partner}'s habits do you find most endearing?",
    "How does {partner} prefer to resolve conflicts?",
    "What is something {partner} would like to learn or improve about themselves?",
    "What is {partner}'s love language?",
    "What small gesture from {partner} makes you feel most loved?",
    "What shared memory with {partner} do you cherish most?",
    "How does {partner} like to be comforted when they're sad?",
    "What is {partner}'s idea of a perfect vacation?",
    "What topic could {partner} talk about for hours?",
    "What hidden talent or skill does {partner} have?",
    "What is a goal {partner} has for the next five years?",
    "What was {partner}'s first impression of you?",
    "What breakfast food best describes {partner}'s personality?",
    "Which of {partner}'s qualities do you admire most?",
    "What is something {partner} has taught you?",
    "What fictional character reminds you of {partner}?",
    "What is {partner}'s most treasured possession?",
    "What makes {partner} laugh the hardest?",
    "What does {partner} do to relax after a stressful day?",
    "What is {partner}'s favorite way to show affection?",
]

SCENARIOS = [
    "you won a million dollars together",
    "you could live anywhere in the world",
    "you had to choose between career success and relationship stability",
    "you could travel back in time to any period",
    "you suddenly had to move to another country",
    "you could have dinner with any historical figure",
    "you had to change careers completely",
    "you saw a celebrity you both admire in public",
    "you found a stray puppy on your doorstep",
    "you had to live without technology for a month",
    "you discovered a hidden talent you never knew you had",
    "you had to choose between never being cold again or never being hot again",
    "you could only eat one cuisine for the rest of your life",
    "you could have any superpower",
    "your house was on fire and you could save only three items",
]


def date_seed(day: date) -> int:
    """31-bit string hash of ``yyyyMMdd`` (the browser client's ``h*31 + c``)."""
    h = 0
    for ch in f"{day:%Y%m%d}":
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def seeded_random(seed: int, index: int = 0) -> float:
    x = math.sin(seed + index) * 10000
    return x - math.floor(x)


def pick(items: Sequence[T], seed: int, index: int = 0) -> T:
    return items[math.floor(seeded_random(seed, index) * len(items))]


def fill_template(template: str, partner: str, seed: int) -> str:
    question = template.replace("{partner}", partner)
    if "{scenario}" in question:
        question = question.replace("{scenario}", pick(SCENARIOS, seed, 2))
    return question


def daily_questions(partner: str, day: date, count: int = 5) -> list[str]:
    """``count`` distinct questions about ``partner`` for ``day``."""
    count = min(count, len(QUESTION_TEMPLATES))
    seed = date_seed(day)
    chosen: set[int] = set()
    questions = []
    attempt = 0
    while len(questions) < count:
        index = math.floor(seeded_random(seed, attempt) * len(QUESTION_TEMPLATES))
        attempt += 1
        if index in chosen:
            continue
        chosen.add(index)
        questions.append(fill_template(QUESTION_TEMPLATES[index], partner, seed + index))
    return questions


def game_title(day: date) -> str:
    seed = date_seed(day)
    category = pick(QUESTION_CATEGORIES, seed)
    category = category[0].upper() + category[1:]
    titles = [
        f"Daily {category} Connection",
        f"Today's {category} Challenge",
        f"{category} Quiz of the Day",
        f"Daily {category} Compatibility Test",
        f"Today's {category} Questions",
    ]
    return pick(titles, seed, 1)
