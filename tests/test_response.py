"""Tests for perch.http.response — Response value and Respond."""

import pytest

from perch.errors import PerchError
from perch.http.response import Respond, Response


class TestResponse:
    def test_defaults(self) -> None:
        r = Response()
        assert (r.body, r.status, r.content_type) == ("", 200, "text/html; charset=utf-8")

    def test_text_decodes_bytes(self) -> None:
        assert Response("héllo".encode()).text == "héllo"

    def test_text_tolerates_invalid_utf8(self) -> None:
        assert Response(b"ok\xff").text.startswith("ok")

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            Response().status = 404  # type: ignore[misc]

    def test_equality_by_value(self) -> None:
        assert Response("a", status=201) == Response("a", status=201)
        assert Response("a") != Response("a", content_type="text/plain")


class TestRespond:
    def test_carries_response(self) -> None:
        response = Response("Mock", content_type="text/plain")
        assert Respond(response).response is response

    def test_is_not_a_perch_error(self) -> None:
        assert not issubclass(Respond, PerchError)
