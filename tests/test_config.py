"""Config file, room documents and themes."""

from bearboo.config import Config, RoomState, config_file, load_config, save_config
from bearboo.models.activity import Anniversary
from bearboo.models.session import AuthUser
from bearboo.themes import THEMES, find_theme


class TestConfig:
    def test_defaults_when_missing(self, home):
        cfg = load_config()
        assert cfg.user is None
        assert cfg.theme == "theme-pink"

    def test_round_trip(self, home):
        save_config(Config(api_key="k", database_url="https://db", room_id="a_b",
                           user=AuthUser(id="u1", email="a@example.com", display_name="A")))
        cfg = load_config()
        assert cfg.user.id == "u1"
        assert cfg.room_id == "a_b"
        assert config_file() == home / "config.json"

    def test_passphrase_never_saved(self, home):
        save_config(Config(room_id="a_b"))
        assert "passphrase" not in config_file().read_text()

    def test_corrupt_file_ignored(self, home):
        config_file().write_text("{not json")
        assert load_config() == Config()

    def test_env_overrides(self, home, monkeypatch):
        save_config(Config(api_key="file-key", database_url="https://file"))
        monkeypatch.setenv("BEARBOO_DATABASE_URL", "https://env")
        cfg = load_config().with_env()
        assert cfg.database_url == "https://env"
        assert cfg.api_key == "file-key"


class TestRoomState:
    def test_lists(self, home):
        room = RoomState("a_b")
        assert room.load_list("anniversaries", Anniversary) == []
        room.save_list("anniversaries", [Anniversary(id="1", title="Us", date="2024-02-14")])
        assert room.load_list("anniversaries", Anniversary)[0].title == "Us"
        assert (home / "rooms" / "a_b" / "anniversaries.json").exists()

    def test_bad_entries_skipped(self, home):
        room = RoomState("a_b")
        room.save_raw("anniversaries", [{"id": "1", "title": "Us", "date": "2024-02-14"}, {"oops": True}])
        assert [a.id for a in room.load_list("anniversaries", Anniversary)] == ["1"]

    def test_room_ids_are_sanitised(self, home):
        RoomState("../../etc").save_raw("x", [])
        assert list((home / "rooms").iterdir())[0].name == ".._.._etc"

    def test_delete(self, home):
        room = RoomState("a_b")
        room.save_raw("quiz", {"day": "2026-01-01"})
        room.delete("quiz")
        room.delete("quiz")
        assert room.load_raw("quiz") is None


def test_find_theme():
    assert find_theme("Purple").css_class == "theme-purple"
    assert find_theme("theme-blue").name == "Blue"
    assert find_theme("plaid") is None
    assert len({t.css_class for t in THEMES}) == len(THEMES)
