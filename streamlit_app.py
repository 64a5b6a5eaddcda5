import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from typing import Dict, List
import time
import logging

from api_client import API_URL, APIClient, APIError
from client_state import AppState
from models.enums import DetectionMethod, Genre, Mood, SessionMood, SongMood, Tempo, Trigger

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MOODS = [mood.value for mood in Mood]


def get_app_state() -> AppState:
    """One AppState per browser session, kept across reruns"""
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState()
    return st.session_state.app_state


def show_api_error(prefix: str, error: APIError):
    st.error(f"{prefix}: {error.message}")
    for field_error in error.errors:
        st.caption(f"{field_error.get('field')}: {field_error.get('message')}")


class MoodifyApp:
    def __init__(self, state: AppState, api_client: APIClient):
        self.state = state
        self.api_client = api_client
        self.api_client.token = state.auth.token
        self._setup_page()

    def _setup_page(self):
        """Configure page settings"""
        st.set_page_config(page_title="Moodify", page_icon="🎵", layout="wide")
        st.title("🎵 Moodify")

    def render_login_form(self, state: AppState):
        """Render login form"""
        tab1, tab2 = st.tabs(["Login", "Register"])

        with tab1:
            with st.form("login_form"):
                username = st.text_input("Username or email")
                password = st.text_input("Password", type="password")
                submit = st.form_submit_button("Login")

                if submit:
                    try:
                        with st.spinner("Logging in..."):
                            result = self.api_client.login(username, password)
                            state.auth.login(result["access_token"], self.api_client.get_me())
                            state.apply_preferences()
                            st.success("Logged in successfully!")
                            time.sleep(1)
                            st.rerun()
                    except APIError as e:
                        show_api_error("Login failed", e)

        with tab2:
            with st.form("register_form"):
                reg_email = st.text_input("Email")
                reg_username = st.text_input("Username")
                reg_name = st.text_input("Display name")
                reg_password = st.text_input("Password", type="password")
                register_submit = st.form_submit_button("Register")

                if register_submit:
                    if not all([reg_email, reg_username, reg_name, reg_password]):
                        st.error("Please fill in all fields")
                    else:
                        try:
                            with st.spinner("Registering..."):
                                result = self.api_client.register_user(reg_email, reg_username, reg_name, reg_password)
                                state.auth.login(result["accessToken"], result["user"])
                                state.apply_preferences()
                                st.success("Registration successful!")
                                time.sleep(1)
                                st.rerun()
                        except APIError as e:
                            show_api_error("Registration failed", e)

    def render_mood_tab(self, state: AppState):
        st.header("How are you feeling?")

        method = st.radio(
            "Detection method",
            [DetectionMethod.TEXT.value, DetectionMethod.VOICE.value, DetectionMethod.CAMERA.value, DetectionMethod.MANUAL.value],
            horizontal=True,
        )
        if method != DetectionMethod.MANUAL.value:
            text = st.text_area("Describe your mood") if method != DetectionMethod.CAMERA.value else None
            if st.button("Detect mood"):
                try:
                    st.session_state.detected_mood = self.api_client.detect_mood(method, text)
                except APIError as e:
                    show_api_error("Detection failed", e)

        detected = st.session_state.get("detected_mood") or {}
        with st.form("mood_form"):
            mood = st.selectbox(
                "Mood", MOODS, index=MOODS.index(detected["mood"]) if detected.get("mood") in MOODS else 0
            )
            intensity = st.slider("Intensity", 1, 10, int(detected.get("intensity", 5)))
            triggers = st.multiselect("Triggers", [trigger.value for trigger in Trigger])
            notes = st.text_area("Notes", max_chars=500)
            if st.form_submit_button("Log mood", type="primary"):
                try:
                    mood_log = self.api_client.log_mood(
                        mood,
                        intensity,
                        method,
                        confidence=detected.get("confidence", 1.0),
                        notes=notes or None,
                        triggers=triggers,
                        sessionId=state.session_id,
                    )
                    state.record_mood(mood_log)
                    st.session_state.detected_mood = None
                    st.success(f"Logged {mood} ({intensity}/10)")
                except APIError as e:
                    show_api_error("Could not log mood", e)

        if state.mood_history:
            st.subheader("This session")
            st.dataframe(
                pd.DataFrame(state.mood_history)[["createdAt", "mood", "intensity", "detectionMethod"]],
                use_container_width=True,
            )

    def render_music_tab(self, state: AppState):
        st.header("Music for your mood")
        current = state.current_mood or {}
        col1, col2, col3 = st.columns(3)
        mood = col1.selectbox(
            "Mood", ["any"] + MOODS, index=MOODS.index(current["mood"]) + 1 if current.get("mood") in MOODS else 0
        )
        energy = col2.slider("Energy", 1, 10, 5)
        valence = col3.slider("Valence", 1, 10, 5)

        if st.button("Get Recommendations", type="primary"):
            try:
                with st.spinner("Getting recommendations..."):
                    st.session_state.recommended_songs = self.api_client.recommend_songs(
                        mood=None if mood == "any" else mood, energy=energy, valence=valence
                    )
            except APIError as e:
                show_api_error("Error getting recommendations", e)

        songs = st.session_state.get("recommended_songs") or []
        if songs:
            self._display_songs(state, songs)
        self.render_player(state)

    def _display_songs(self, state: AppState, songs: List[Dict]):
        st.write(f"### {len(songs)} songs")
        for song in songs:
            with st.expander(f"🎵 {song['title']} by {song['artist']}"):
                cols = st.columns([3, 1, 1])
                cols[0].write(f"**Genre:** {song['genre']} · **Tempo:** {song['tempo']}")
                cols[0].write(f"**Moods:** {', '.join(song.get('moodTags', []))}")
                if cols[1].button("Play", key=f"play_{song['id']}"):
                    state.player.add(song)
                    state.player.play_song(song)
                    self._log_play(state, song, "recommendation")
                if cols[2].button("Queue", key=f"queue_{song['id']}"):
                    state.player.add(song)

    def _log_play(self, state: AppState, song: Dict, source: str):
        snapshot = None
        if state.current_mood:
            snapshot = {"mood": state.current_mood["mood"], "intensity": state.current_mood["intensity"]}
        try:
            self.api_client.play_song(song["id"])
            self.api_client.log_playback(
                song["id"], sessionId=state.session_id, source=source, moodAtPlaytime=snapshot, deviceType="desktop"
            )
        except APIError as e:
            logger.warning(f"Could not record play of song {song['id']}: {e.message}")

    def render_player(self, state: AppState):
        player = state.player
        st.subheader("Now playing")
        if player.current_song is None:
            st.info("Nothing playing")
            return

        song = player.current_song
        st.write(f"**{song['title']}** by {song['artist']} {'▶️' if player.is_playing else '⏸️'}")
        cols = st.columns(4)
        if cols[0].button("⏮ Previous"):
            self._after_skip(state, player.play_previous())
        if cols[1].button("⏯ Play/Pause"):
            player.toggle_play()
        if cols[2].button("⏭ Next"):
            self._after_skip(state, player.play_next())
        if cols[3].button("⏹ Stop"):
            player.stop()
        player.set_volume(st.slider("Volume", 0.0, 1.0, player.volume, 0.05))

        if player.queue:
            st.caption("Queue")
            for queued in player.queue:
                cols = st.columns([4, 1])
                cols[0].write(f"{queued['title']} - {queued['artist']}")
                if cols[1].button("Remove", key=f"dequeue_{queued['id']}"):
                    player.remove(queued["id"])

    def _after_skip(self, state: AppState, song):
        if song is not None:
            self._log_play(state, song, "shuffle")

    def render_playlists_tab(self, state: AppState):
        st.header("Playlists")

        with st.form("auto_generate_form"):
            st.write("Auto-generate a playlist")
            cols = st.columns(4)
            mood = cols[0].selectbox("Mood", ["any"] + [mood.value for mood in SongMood])
            tempo = cols[1].selectbox("Tempo", ["any"] + [tempo.value for tempo in Tempo])
            genre = cols[2].selectbox("Genre", ["any"] + [genre.value for genre in Genre])
            limit = cols[3].number_input("Songs", 5, 50, 20)
            if st.form_submit_button("Generate", type="primary"):
                try:
                    playlist = self.api_client.auto_generate_playlist(
                        mood=None if mood == "any" else mood,
                        tempo=None if tempo == "any" else tempo,
                        genre=None if genre == "any" else genre,
                        limit=int(limit),
                    )
                    st.success(f"Created {playlist['name']} with {playlist['songCount']} songs")
                except APIError as e:
                    show_api_error("Could not generate playlist", e)

        try:
            playlists = self.api_client.list_playlists(only_mine=True)["items"]
        except APIError as e:
            show_api_error("Could not load playlists", e)
            return

        if not playlists:
            st.info("No playlists yet")
        for playlist in playlists:
            with st.expander(f"{playlist['name']} ({playlist['songCount']} songs)"):
                if playlist.get("description"):
                    st.write(playlist["description"])
                if st.button("Queue all", key=f"queue_playlist_{playlist['id']}"):
                    for song in playlist["songs"]:
                        state.player.add(song)
                for song in playlist["songs"]:
                    st.write(f"- {song['title']} by {song['artist']}")

    def render_games_tab(self, state: AppState):
        st.header("Mood games")
        session_moods = [mood.value for mood in SessionMood]

        if state.active_game:
            game = state.active_game["game"]
            st.subheader(game["name"])
            for step in game.get("instructions") or []:
                st.write(f"{step['step']}. {step['text']}")
            with st.form("complete_game_form"):
                mood_after = st.selectbox("How do you feel now?", session_moods)
                intensity = st.slider("Intensity", 1, 10, 5)
                score = st.number_input("Score", 0, 1000, 0)
                if st.form_submit_button("Finish", type="primary"):
                    try:
                        result = self.api_client.complete_game(
                            state.active_game["sessionId"],
                            {"mood": mood_after, "intensity": intensity},
                            int(score),
                        )
                        state.active_game = None
                        st.success(f"Mood change: {result['moodImprovement']:+d}")
                        if result["achievements"]:
                            st.balloons()
                            st.write("Achievements: " + ", ".join(result["achievements"]))
                    except APIError as e:
                        show_api_error("Could not complete game", e)
            return

        try:
            games = self.api_client.recommend_games()
        except APIError as e:
            show_api_error("Could not load games", e)
            return

        mood_before = st.selectbox("How do you feel?", session_moods)
        intensity_before = st.slider("Intensity before", 1, 10, 5)
        for game in games:
            cols = st.columns([4, 1])
            cols[0].write(f"**{game['name']}** · {game['type']} · ~{game['estimatedDuration']} min")
            if cols[1].button("Start", key=f"start_{game['gameId']}"):
                try:
                    state.active_game = self.api_client.start_game(
                        game["gameId"], {"mood": mood_before, "intensity": intensity_before}
                    )
                    st.rerun()
                except APIError as e:
                    show_api_error("Could not start game", e)

    def render_analytics_tab(self, state: AppState):
        st.header("Insights")
        days = st.select_slider("Window (days)", options=[7, 14, 30, 90, 365], value=30)

        try:
            dashboard = self.api_client.dashboard(days)
            trends = self.api_client.analytics("mood-trends", days, groupBy="day")
            correlations = self.api_client.analytics("correlations", days)
        except APIError as e:
            show_api_error("Could not load analytics", e)
            return

        overview = dashboard["overview"]
        cols = st.columns(4)
        cols[0].metric("Mood logs", overview["mood"]["totalMoodLogs"])
        cols[1].metric("Avg intensity", overview["mood"]["avgMoodIntensity"])
        cols[2].metric("Plays", overview["listening"]["totalPlays"])
        cols[3].metric("Games completed", overview["games"]["completedSessions"])

        if not trends["trends"]:
            st.info("No mood data in this window")
            return

        trend_frame = pd.DataFrame(trends["trends"])
        fig = px.line(trend_frame, x="date", y="avgIntensity", color="mood", markers=True)
        fig.update_layout(yaxis=dict(range=[0, 10]))
        st.plotly_chart(fig, use_container_width=True)

        distribution = pd.DataFrame(trends["moodDistribution"])
        st.plotly_chart(px.pie(distribution, names="mood", values="count"), use_container_width=True)

        self._display_heatmap(correlations["timeBasedPatterns"])

    def _display_heatmap(self, cells: List[Dict]):
        """Day-of-week by hour mood intensity"""
        if not cells:
            return
        frame = pd.DataFrame(cells).pivot(index="dayOfWeek", columns="hour", values="avgIntensity")
        frame = frame.reindex(index=range(1, 8), columns=range(24))
        fig = go.Figure(
            data=go.Heatmap(z=frame.values, x=list(frame.columns), y=DAY_NAMES, colorscale="Viridis", zmin=1, zmax=10)
        )
        fig.update_layout(xaxis_title="Hour", yaxis_title="Day")
        st.plotly_chart(fig, use_container_width=True)

    def render_profile_tab(self, state: AppState):
        """Render user profile tab"""
        st.header("My Profile")
        user = state.auth.user or {}
        if user.get("avatar"):
            st.image(user["avatar"], width=100)
        st.write(f"**Logged in as:** {user.get('name')} (@{user.get('username')})")

        if st.button("Logout", type="primary"):
            state.reset()
            st.rerun()

    def run(self):
        """Main app execution"""
        state = self.state
        if not state.auth.is_authenticated:
            self.render_login_form(state)
            return

        tabs = st.tabs(["Mood", "Music", "Playlists", "Games", "Insights", "My Profile"])
        renderers = [
            self.render_mood_tab,
            self.render_music_tab,
            self.render_playlists_tab,
            self.render_games_tab,
            self.render_analytics_tab,
            self.render_profile_tab,
        ]
        for tab, render in zip(tabs, renderers):
            with tab:
                render(state)

        st.markdown("---")
        st.markdown("Made with ❤️ using FastAPI and Streamlit")


if __name__ == "__main__":
    app = MoodifyApp(get_app_state(), APIClient(API_URL))
    app.run()
