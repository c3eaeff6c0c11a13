"""Anniversaries, date plans, scrapbook and the compatibility quiz."""

from datetime import date, datetime

import pytest

from bearboo.activities import anniversaries, dates, questions
from bearboo.activities.anniversaries import AnniversaryTracker, days_remaining
from bearboo.activities.dates import DatePlanner
from bearboo.activities.quiz import CompatibilityQuiz, compatibility, verdict
from bearboo.activities.scrapbook import Scrapbook, share_payload
from bearboo.config import RoomState
from bearboo.models.activity import Anniversary
from bearboo.models.message import Message, MessageKind

TODAY = date(2026, 10, 18)


@pytest.fixture
def room(home):
    return RoomState("alice_bob")


class TestDaysRemaining:
    def test_upcoming(self):
        assert days_remaining(date(2026, 12, 25), TODAY) == (68, False)

    def test_today(self):
        assert days_remaining(TODAY, TODAY) == (0, False)

    def test_earlier_this_year_has_passed(self):
        assert days_remaining(date(2026, 10, 1), TODAY) == (17, True)

    def test_earlier_year_rolls_to_this_year(self):
        assert days_remaining(date(2020, 11, 1), TODAY) == (14, False)

    def test_earlier_year_rolls_to_next_year(self):
        assert days_remaining(date(2020, 3, 1), TODAY) == (134, False)

    def test_leap_day(self):
        days, passed = days_remaining(date(2024, 2, 29), date(2027, 1, 1))
        assert not passed
        assert days == (date(2027, 2, 28) - date(2027, 1, 1)).days


class TestAnniversaries:
    def test_add_list_delete(self, room):
        tracker = AnniversaryTracker(room)
        item = tracker.add("First Date", "2024-02-14", "first-date")
        assert item.emoji == "🌹"
        assert tracker.get(item.id) == item
        assert tracker.delete(item.id)
        assert tracker.items() == []
        assert not tracker.delete(item.id)

    def test_validation(self, room):
        tracker = AnniversaryTracker(room)
        with pytest.raises(ValueError):
            tracker.add("  ", "2024-02-14")
        with pytest.raises(ValueError):
            tracker.add("Us", "14/02/2024")
        with pytest.raises(ValueError):
            tracker.add("Us", "2024-02-14", "divorce")

    def test_share_text(self):
        upcoming = Anniversary(id="1", title="Anniversary", date="2026-12-25", emoji="❤️")
        assert anniversaries.share_text(upcoming, TODAY) == \
            "❤️ 68 days until our Anniversary (December 25, 2026)! ❤️"
        passed = Anniversary(id="2", title="Trip", date="2026-10-01", emoji="✈️")
        assert anniversaries.share_text(passed, TODAY) == \
            "✈️ It's been 17 days since our Trip (October 1, 2026)! ✈️"


class TestDatePlanner:
    def test_lifecycle(self, room):
        planner = DatePlanner(room)
        plan = planner.create("Movie night", "Watch Amélie together", "2026-02-14T20:00", "movie")
        assert plan.status == "planned"
        assert planner.complete(plan.id).status == "completed"
        assert planner.items()[0].status == "completed"
        assert planner.complete("missing") is None
        assert planner.delete(plan.id)
        assert planner.items() == []

    def test_validation(self, room):
        with pytest.raises(ValueError):
            DatePlanner(room).create("Movie", "", "2026-02-14T20:00")
        with pytest.raises(ValueError):
            DatePlanner(room).create("Movie", "desc", "next friday")

    def test_share_text(self, room):
        plan = DatePlanner(room).create("Movie night", "Popcorn ready", "2026-02-14T20:00")
        assert dates.share_text(plan) == "🌙 Virtual Date: Movie night 🌙\n📅 Sat Feb 14, 20:00\n\nPopcorn ready"
        assert dates.share_payload(plan)["title"] == "Movie night"

    def test_past_and_emoji(self, room):
        plan = DatePlanner(room).create("Dinner", "Pasta", "2026-01-01T19:00", "dinner")
        assert dates.is_past(plan, datetime(2026, 6, 1))
        assert not dates.is_past(plan, datetime(2025, 6, 1))
        assert dates.type_emoji("dinner") == "🍽️"
        assert dates.type_emoji("picnic") == "❤️"
        assert all(len(ideas) == 4 for ideas in dates.SUGGESTIONS.values())


def _image_message(url="data:image/png;base64,AA", caption="beach day"):
    return Message(id="m1", sender_ref="bob", sender_name="Bob", plaintext=caption, created_at=42,
                   kind=MessageKind.IMAGE, attachment={"image_url": url})


class TestScrapbook:
    def test_add_from_message(self, room):
        book = Scrapbook(room)
        memory = book.add_from_message(_image_message())
        assert memory.caption == "beach day"
        assert memory.sender == "Bob"
        assert memory.timestamp == 42
        assert book.add_from_message(_image_message()) is None
        assert len(book.items()) == 1

    def test_text_messages_rejected(self, room):
        with pytest.raises(ValueError):
            Scrapbook(room).add_from_message(Message(id="m", sender_ref="bob", plaintext="hi"))

    def test_edit_and_delete(self, room):
        book = Scrapbook(room)
        memory = book.add("data:image/png;base64,BB", caption="old")
        edited = book.edit(memory.id, title="Summer")
        assert edited.title == "Summer"
        assert edited.caption == "old"
        assert share_payload(edited) == {"title": "Summer", "image_url": "data:image/png;base64,BB"}
        assert book.delete(memory.id)
        assert book.items() == []


class TestQuestions:
    def test_date_seed(self):
        assert questions.date_seed(date(2026, 10, 18)) == 1920457592

    def test_seeded_random_range(self):
        values = [questions.seeded_random(1920457592, i) for i in range(50)]
        assert all(0 <= v < 1 for v in values)

    def test_daily_questions(self):
        first = questions.daily_questions("Bob", TODAY)
        assert first == questions.daily_questions("Bob", TODAY)
        assert len(first) == len(set(first)) == 5
        assert all("Bob" in q for q in first)
        assert not any("{" in q for q in first)

    def test_count_capped_by_templates(self):
        qs = questions.daily_questions("Bob", TODAY, count=100)
        assert len(qs) == len(questions.QUESTION_TEMPLATES)

    def test_title(self):
        title = questions.game_title(TODAY)
        assert title == questions.game_title(TODAY)
        assert any(c[0].upper() + c[1:] in title for c in questions.QUESTION_CATEGORIES)


class TestCompatibility:
    def test_score(self):
        assert compatibility(["pizza night", "beach"], ["Pizza", "mountains"]) == 50
        assert compatibility(["sushi"], ["sushi rolls"]) == 100
        assert compatibility(["cats"], ["dogs"]) == 0
        assert compatibility([], []) == 0

    def test_verdict(self):
        assert verdict(100)[1].startswith("Perfect Match")
        assert verdict(60)[1].startswith("Great Connection")
        assert verdict(40)[1].startswith("Good Match")
        assert verdict(0)[0] == "💝"

    def test_two_player_game(self, room):
        quiz = CompatibilityQuiz(room)
        game = quiz.today("you", TODAY)
        n = len(game.questions)

        quiz.answer("alice", ["pizza"] * n, "you", TODAY)
        assert quiz.waiting_for_partner("alice")
        assert quiz.result("alice") is None

        quiz.answer("bob", ["pizza pie"] * (n - 1) + ["nothing"], "you", TODAY)
        result = quiz.result("alice")
        assert result.score == round((n - 1) / n * 100)
        assert quiz.result("bob").mine[-1] == "nothing"
        assert quiz.result("carol") is None

        with pytest.raises(ValueError):
            quiz.answer("carol", ["x"] * n, "you", TODAY)

    def test_answer_validation(self, room):
        quiz = CompatibilityQuiz(room)
        with pytest.raises(ValueError):
            quiz.answer("alice", ["only one"], "you", TODAY)

    def test_new_day_starts_new_game(self, room):
        quiz = CompatibilityQuiz(room)
        n = len(quiz.today("you", TODAY).questions)
        quiz.answer("alice", ["a"] * n, "you", TODAY)
        fresh = quiz.today("you", date(2026, 10, 19))
        assert fresh.player1 is None
        assert fresh.day == "2026-10-19"
