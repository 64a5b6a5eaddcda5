"""
Tests for playlists and auto-generation.

Covers:
- playlist_name synthesis and the energy/valence band helper
- RecommendationService.auto_generate: limits, visibility, NotFoundError
- PlaylistService: idempotent add/remove, follow toggling
- /api/playlists endpoints: envelopes, ownership, listing
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from errors import AuthorizationError, NotFoundError
from models.schemas import PlaylistCreate
from services.playlist_service import PlaylistService
from services.recommendation_service import RecommendationService, feature_band, playlist_name


class TestHelpers:
    def test_playlist_name_from_filters(self) -> None:
        assert playlist_name("happy") == "Happy Mix"
        assert playlist_name("calm", "slow") == "Calm Mix (Slow Tempo)"
        assert playlist_name("sad", "fast", "rock") == "Sad Mix (Fast Tempo) - Rock"
        assert playlist_name() == "Auto-Generated Playlist"
        assert playlist_name(genre="jazz") == "Auto-Generated Playlist - Jazz"

    @pytest.mark.parametrize("value, band", [(8, (6, 10)), (10, (8, 10)), (1, (1, 3)), (5, (3, 7))])
    def test_feature_band_is_clamped(self, value: int, band: tuple) -> None:
        assert feature_band(value) == band


class TestAutoGenerate:
    def test_fewer_matches_than_limit_returns_all(self, db_session, user, make_song) -> None:
        for title in ("One", "Two", "Three"):
            make_song(user, title=title, mood_tags=["happy"])
        make_song(user, title="Gloomy", mood_tags=["sad"])

        playlist = RecommendationService(db_session).auto_generate(user, mood="happy", limit=5)

        assert playlist.song_count == 3
        assert "Happy Mix" in playlist.name
        assert playlist.is_auto_generated is True
        assert playlist.generated_for == {"mood": "happy", "tempo": None, "genre": None}
        assert playlist.is_public is False

    def test_ranks_by_play_count_then_likes(self, db_session, user, make_song) -> None:
        make_song(user, title="Quiet", play_count=1, likes=50)
        make_song(user, title="Popular", play_count=20, likes=0)
        make_song(user, title="Liked", play_count=1, likes=60)

        playlist = RecommendationService(db_session).auto_generate(user, mood="happy", limit=2)

        assert [song.title for song in playlist.songs] == ["Popular", "Liked"]

    def test_excludes_other_users_private_songs(self, db_session, make_user, make_song) -> None:
        me, other = make_user(), make_user()
        make_song(other, title="Hidden", is_public=False)
        make_song(other, title="Shared", is_public=True)
        make_song(me, title="Mine", is_public=False)

        playlist = RecommendationService(db_session).auto_generate(me, mood="happy", limit=10)

        titles = {song.title for song in playlist.songs}
        assert titles == {"Shared", "Mine"}
        assert all(song.is_public or song.uploaded_by == me.id for song in playlist.songs)

    def test_no_match_raises_not_found(self, db_session, user, make_song) -> None:
        make_song(user, mood_tags=["sad"])
        with pytest.raises(NotFoundError):
            RecommendationService(db_session).auto_generate(user, mood="happy", genre="jazz")


class TestMembership:
    def _playlist(self, db_session, user):
        return PlaylistService(db_session).create_playlist(user, PlaylistCreate(name="Road trip"))

    def test_add_is_idempotent(self, db_session, user, make_song) -> None:
        service = PlaylistService(db_session)
        playlist = self._playlist(db_session, user)
        song = make_song(user)

        service.add_song(user, playlist.id, song.id)
        playlist = service.add_song(user, playlist.id, song.id)

        assert playlist.song_ids == [song.id]

    def test_remove_absent_song_is_a_no_op(self, db_session, user, make_song) -> None:
        service = PlaylistService(db_session)
        playlist = self._playlist(db_session, user)
        kept = make_song(user, title="Kept")
        service.add_song(user, playlist.id, kept.id)

        playlist = service.remove_song(user, playlist.id, 4242)

        assert playlist.song_ids == [kept.id]

    def test_songs_keep_insertion_order(self, db_session, user, make_song) -> None:
        service = PlaylistService(db_session)
        playlist = self._playlist(db_session, user)
        songs = [make_song(user, title=title) for title in ("C", "A", "B")]
        for song in songs:
            service.add_song(user, playlist.id, song.id)
        assert [song.title for song in service.get_playlist(user, playlist.id).songs] == ["C", "A", "B"]

    def test_cannot_add_someone_elses_private_song(self, db_session, make_user, make_song) -> None:
        me, other = make_user(), make_user()
        playlist = self._playlist(db_session, me)
        private = make_song(other, is_public=False)
        with pytest.raises(AuthorizationError):
            PlaylistService(db_session).add_song(me, playlist.id, private.id)

    def test_only_owner_can_modify(self, db_session, make_user, make_song) -> None:
        owner, other = make_user(), make_user()
        playlist = self._playlist(db_session, owner)
        song = make_song(other)
        with pytest.raises(AuthorizationError):
            PlaylistService(db_session).add_song(other, playlist.id, song.id)


class TestPlaylistRoutes:
    def test_auto_generate_endpoint(self, client: TestClient, user, headers: dict, make_song) -> None:
        for title in ("One", "Two", "Three"):
            make_song(user, title=title, mood_tags=["happy"])

        response = client.post("/api/playlists/auto-generate", json={"mood": "happy", "limit": 5}, headers=headers)

        assert response.status_code == 201
        playlist = response.json()["data"]["playlist"]
        assert playlist["songCount"] == 3
        assert playlist["name"] == "Happy Mix"
        assert playlist["isAutoGenerated"] is True
        assert playlist["generatedFor"]["mood"] == "happy"

    def test_auto_generate_without_matches_is_404(self, client: TestClient, headers: dict) -> None:
        response = client.post("/api/playlists/auto-generate", json={"mood": "happy"}, headers=headers)
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_auto_generate_limit_bounds(self, client: TestClient, headers: dict) -> None:
        response = client.post("/api/playlists/auto-generate", json={"limit": 2}, headers=headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "limit"

    def test_create_add_and_fetch(self, client: TestClient, user, headers: dict, make_song) -> None:
        song = make_song(user)
        created = client.post(
            "/api/playlists", json={"name": "  Focus  ", "description": "Deep work"}, headers=headers
        ).json()["data"]["playlist"]
        assert created["name"] == "Focus"
        assert created["isPublic"] is False

        client.post(f"/api/playlists/{created['id']}/songs", json={"songId": song.id}, headers=headers)
        response = client.post(f"/api/playlists/{created['id']}/songs", json={"songId": song.id}, headers=headers)

        playlist = response.json()["data"]["playlist"]
        assert playlist["songCount"] == 1
        assert playlist["songs"][0]["id"] == song.id

    def test_private_playlist_is_forbidden_to_others(self, client: TestClient, make_user, auth_headers) -> None:
        owner, other = make_user(), make_user()
        created = client.post("/api/playlists", json={"name": "Diary"}, headers=auth_headers(owner)).json()
        playlist_id = created["data"]["playlist"]["id"]

        assert client.get(f"/api/playlists/{playlist_id}", headers=auth_headers(other)).status_code == 403
        assert client.get("/api/playlists/777", headers=auth_headers(other)).status_code == 404

    def test_follow_toggles(self, client: TestClient, make_user, auth_headers) -> None:
        owner, fan = make_user(), make_user()
        created = client.post(
            "/api/playlists", json={"name": "Open", "isPublic": True}, headers=auth_headers(owner)
        ).json()
        playlist_id = created["data"]["playlist"]["id"]

        first = client.post(f"/api/playlists/{playlist_id}/follow", headers=auth_headers(fan)).json()["data"]
        second = client.post(f"/api/playlists/{playlist_id}/follow", headers=auth_headers(fan)).json()["data"]

        assert first == {"isFollowing": True, "followerCount": 1}
        assert second == {"isFollowing": False, "followerCount": 0}

    def test_cannot_follow_private_playlist(self, client: TestClient, make_user, auth_headers) -> None:
        owner, fan = make_user(), make_user()
        created = client.post("/api/playlists", json={"name": "Closed"}, headers=auth_headers(owner)).json()
        playlist_id = created["data"]["playlist"]["id"]
        assert client.post(f"/api/playlists/{playlist_id}/follow", headers=auth_headers(fan)).status_code == 403

    def test_list_only_mine(self, client: TestClient, make_user, auth_headers) -> None:
        me, other = make_user(), make_user()
        client.post("/api/playlists", json={"name": "Mine"}, headers=auth_headers(me))
        client.post("/api/playlists", json={"name": "Theirs", "isPublic": True}, headers=auth_headers(other))

        everything = client.get("/api/playlists", headers=auth_headers(me)).json()["data"]["items"]
        mine = client.get("/api/playlists", params={"onlyMine": "true"}, headers=auth_headers(me)).json()["data"]

        assert {item["name"] for item in everything} == {"Mine", "Theirs"}
        assert [item["name"] for item in mine["items"]] == ["Mine"]
        assert mine["pagination"]["total"] == 1

    def test_play_counter(self, client: TestClient, headers: dict) -> None:
        created = client.post("/api/playlists", json={"name": "Loop"}, headers=headers).json()
        playlist_id = created["data"]["playlist"]["id"]
        response = client.post(f"/api/playlists/{playlist_id}/play", headers=headers)
        assert response.json()["data"]["playCount"] == 1
