"""Passphrase codec."""

import base64

from bearboo import codec


class TestEncode:
    def test_known_token(self):
        assert codec.encode("hi", "pw") == "cHc6aGk="

    def test_round_trip_unicode(self):
        token = codec.encode("Hello 💖", "secret123")
        assert codec.decode(token, "secret123") == "Hello 💖"

    def test_round_trip_colons(self):
        token = codec.encode("a:b:c", "pass:word")
        assert codec.decode(token, "pass:word") == "a:b:c"

    def test_empty_plaintext(self):
        assert codec.decode(codec.encode("", "pw"), "pw") == ""


class TestDecode:
    def test_wrong_passphrase(self):
        token = codec.encode("Hello 💖", "secret123")
        assert codec.decode(token, "wrong") is None

    def test_prefix_of_passphrase_is_not_enough(self):
        token = codec.encode("hi", "secret123")
        assert codec.decode(token, "secret") is None

    def test_not_base64(self):
        assert codec.decode("!!!not base64!!!", "pw") is None

    def test_not_utf8(self):
        token = base64.b64encode(b"\xff\xfe\xfd").decode()
        assert codec.decode(token, "pw") is None

    def test_no_separator(self):
        token = base64.b64encode(b"no separator here").decode()
        assert codec.decode(token, "pw") is None

    def test_empty_and_non_string(self):
        assert codec.decode("", "pw") is None
        assert codec.decode(None, "pw") is None  # type: ignore[arg-type]


def test_render_placeholder():
    token = codec.encode("hi", "a")
    assert codec.render(token, "a") == "hi"
    assert codec.render(token, "b") == codec.UNREADABLE_TEXT
