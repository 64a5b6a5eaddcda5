"""
Tests for the dashboard's HTTP client.

``requests.request`` is patched, so nothing leaves the process.

Covers:
- success envelopes are unwrapped
- error envelopes become APIError with the server's field errors
- login keeps the token and sends it on later calls
- transport failures become APIError
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from api_client import APIClient, APIError


def _response(status: int, body=None, reason: str = "") -> MagicMock:
    response = MagicMock(status_code=status, reason=reason)
    if body is None:
        response.json.side_effect = ValueError("no JSON")
    else:
        response.json.return_value = body
    return response


@pytest.fixture()
def api() -> APIClient:
    return APIClient("http://api.test")


class TestEnvelope:
    def test_unwraps_data(self, api: APIClient) -> None:
        body = {"success": True, "data": {"moodLog": {"id": 4, "mood": "calm"}}}
        with patch("api_client.requests.request", return_value=_response(201, body)) as request:
            log = api.log_mood("calm", 5, "manual", notes="fine")

        assert log == {"id": 4, "mood": "calm"}
        method, url = request.call_args.args
        assert (method, url) == ("POST", "http://api.test/api/moods")
        assert request.call_args.kwargs["json"] == {
            "mood": "calm",
            "intensity": 5,
            "detectionMethod": "manual",
            "notes": "fine",
        }
        assert request.call_args.kwargs["timeout"] == 10

    def test_error_envelope(self, api: APIClient) -> None:
        body = {
            "success": False,
            "message": "Validation failed",
            "errors": [{"field": "intensity", "message": "Input should be less than or equal to 10"}],
        }
        with patch("api_client.requests.request", return_value=_response(400, body)):
            with pytest.raises(APIError) as raised:
                api.log_mood("calm", 11, "manual")

        assert raised.value.status_code == 400
        assert raised.value.message == "Validation failed"
        assert raised.value.errors[0]["field"] == "intensity"

    def test_error_without_json(self, api: APIClient) -> None:
        with patch("api_client.requests.request", return_value=_response(502, reason="Bad Gateway")):
            with pytest.raises(APIError) as raised:
                api.dashboard()
        assert raised.value.message == "Bad Gateway"
        assert raised.value.errors == []

    def test_transport_failure(self, api: APIClient) -> None:
        with patch("api_client.requests.request", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(APIError) as raised:
                api.list_games()
        assert raised.value.status_code is None


class TestAuth:
    def test_login_keeps_token(self, api: APIClient) -> None:
        token_body = {"access_token": "abc.def.ghi", "token_type": "bearer"}
        me_body = {"success": True, "data": {"user": {"id": 1, "username": "nova"}}}
        with patch(
            "api_client.requests.request",
            side_effect=[_response(200, token_body), _response(200, me_body)],
        ) as request:
            api.login("nova", "starlight")
            user = api.get_me()

        assert api.token == "abc.def.ghi"
        assert user["username"] == "nova"
        login_call, me_call = request.call_args_list
        assert login_call.kwargs["data"]["username"] == "nova"
        assert "Authorization" not in login_call.kwargs["headers"]
        assert me_call.kwargs["headers"]["Authorization"] == "Bearer abc.def.ghi"

    def test_register_keeps_token(self, api: APIClient) -> None:
        body = {"success": True, "data": {"user": {"id": 2}, "accessToken": "tok", "tokenType": "bearer"}}
        with patch("api_client.requests.request", return_value=_response(201, body)):
            api.register_user("a@b.co", "abc", "Abc", "secret1")
        assert api.token == "tok"


class TestRequests:
    def test_recommend_songs_drops_unset_filters(self, api: APIClient) -> None:
        body = {"success": True, "data": {"songs": []}}
        with patch("api_client.requests.request", return_value=_response(200, body)) as request:
            assert api.recommend_songs(mood="happy") == []
        assert request.call_args.kwargs["params"] == {"mood": "happy", "limit": 20}

    def test_upload_sends_mood_tags_as_repeated_fields(self, api: APIClient) -> None:
        body = {"success": True, "data": {"song": {"id": 9}}}
        with patch("api_client.requests.request", return_value=_response(201, body)) as request:
            api.upload_song(b"ID3", "a.mp3", {"title": "T", "moodTags": ["calm", "happy"]})

        fields = request.call_args.kwargs["data"]
        assert ("title", "T") in fields
        assert [value for key, value in fields if key == "moodTags"] == ["calm", "happy"]
        assert request.call_args.kwargs["files"]["audioFile"][0] == "a.mp3"
