from sqlalchemy import (
    Column, Integer, String, Float, ForeignKey, DateTime, Boolean, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    username = Column(String, unique=True, index=True)
    name = Column(String(50))
    hashed_password = Column(String)
    avatar = Column(String, nullable=True)
    preferences = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    songs = relationship("Song", back_populates="uploader")
    playlists = relationship("Playlist", back_populates="owner")

class Song(Base):
    __tablename__ = "songs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100))
    artist = Column(String(100))
    album = Column(String(100), nullable=True)
    genre = Column(String, default="other", index=True)
    language = Column(String, default="en")
    duration = Column(Integer)  # seconds
    file_path = Column(String)
    cover_image = Column(String, nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), index=True)
    is_public = Column(Boolean, default=True)
    play_count = Column(Integer, default=0)
    likes = Column(Integer, default=0)
    tempo = Column(String, default="medium")
    energy = Column(Integer, default=5)
    valence = Column(Integer, default=5)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    uploader = relationship("User", back_populates="songs")
    tag_rows = relationship("SongMoodTag", cascade="all, delete-orphan", lazy="selectin")
    playlist_entries = relationship("PlaylistSong", back_populates="song", cascade="all, delete-orphan")

    @property
    def mood_tags(self):
        return [row.mood for row in self.tag_rows]

    @mood_tags.setter
    def mood_tags(self, moods):
        existing = {row.mood: row for row in self.tag_rows}
        self.tag_rows = [existing.get(mood) or SongMoodTag(mood=mood) for mood in dict.fromkeys(moods or [])]

class SongMoodTag(Base):
    __tablename__ = "song_mood_tags"

    id = Column(Integer, primary_key=True, index=True)
    song_id = Column(Integer, ForeignKey("songs.id", ondelete="CASCADE"), index=True)
    mood = Column(String, index=True)

    __table_args__ = (UniqueConstraint("song_id", "mood", name="uq_song_mood_tag"),)

class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100))
    description = Column(String(500), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), index=True)
    mood = Column(String, nullable=True)
    tags = Column(JSON, default=list)
    cover_image = Column(String, nullable=True)
    is_public = Column(Boolean, default=False)
    is_auto_generated = Column(Boolean, default=False)
    generated_for = Column(JSON, nullable=True)
    play_count = Column(Integer, default=0)
    likes = Column(Integer, default=0)
    followers = Column(JSON, default=list)  # user ids
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="playlists")
    entries = relationship(
        "PlaylistSong",
        back_populates="playlist",
        order_by="PlaylistSong.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("ix_playlists_owner_created", "owner_id", "created_at"),)

    @property
    def songs(self):
        return [entry.song for entry in self.entries if entry.song is not None]

    @property
    def song_ids(self):
        return [entry.song_id for entry in self.entries]

    @property
    def song_count(self):
        return len(self.entries)

    @property
    def follower_count(self):
        return len(self.followers or [])

    def has_song(self, song_id):
        return song_id in self.song_ids

    def add_song(self, song):
        """Append a song; returns False when it is already present."""
        if self.has_song(song.id):
            return False
        position = max((entry.position for entry in self.entries), default=-1) + 1
        self.entries.append(PlaylistSong(song=song, position=position))
        return True

    def remove_song(self, song_id):
        """Drop a song; returns False when it was not in the playlist."""
        for entry in list(self.entries):
            if entry.song_id == song_id:
                self.entries.remove(entry)
                return True
        return False

class PlaylistSong(Base):
    __tablename__ = "playlist_songs"

    id = Column(Integer, primary_key=True, index=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id", ondelete="CASCADE"), index=True)
    song_id = Column(Integer, ForeignKey("songs.id", ondelete="CASCADE"), index=True)
    position = Column(Integer, default=0)
    added_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    playlist = relationship("Playlist", back_populates="entries")
    song = relationship("Song", back_populates="playlist_entries")

    __table_args__ = (UniqueConstraint("playlist_id", "song_id", name="uq_playlist_song"),)

class MoodLog(Base):
    __tablename__ = "mood_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    mood = Column(String, index=True)
    intensity = Column(Integer)
    detection_method = Column(String, index=True)
    confidence = Column(Float, default=1.0)
    notes = Column(String(500), nullable=True)
    context = Column(JSON, default=dict)  # location, activity, weather, timeOfDay
    triggers = Column(JSON, default=list)
    previous_mood = Column(JSON, nullable=True)  # mood, intensity, timestamp
    session_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (Index("ix_mood_logs_user_created", "user_id", "created_at"),)

    @property
    def time_of_day(self):
        return (self.context or {}).get("timeOfDay")

class PlaybackLog(Base):
    __tablename__ = "playback_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    song_id = Column(Integer, ForeignKey("songs.id", ondelete="SET NULL"), nullable=True, index=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id", ondelete="SET NULL"), nullable=True)
    mood_at_playtime = Column(JSON, nullable=True)  # mood, intensity
    play_duration = Column(Integer, default=0)  # seconds
    completion_percentage = Column(Float, default=0)
    skipped = Column(Boolean, default=False)
    skip_reason = Column(String, nullable=True)
    liked = Column(Boolean, default=False)
    source = Column(String)
    device_type = Column(String, default="unknown")
    session_id = Column(String, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    song = relationship("Song")
    playlist = relationship("Playlist")

    __table_args__ = (Index("ix_playback_logs_user_created", "user_id", "created_at"),)

class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(String, unique=True, index=True)
    name = Column(String(100))
    type = Column(String, index=True)
    category = Column(String, default="quick")
    description = Column(String(500))
    instructions = Column(JSON, default=list)  # [{step, text}]
    difficulty = Column(String, default="easy")
    estimated_duration = Column(Integer)  # minutes
    benefits = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    version = Column(String, default="1.0.0")
    icon = Column(String, nullable=True)
    tags = Column(JSON, default=list)
    play_count = Column(Integer, default=0)
    average_rating = Column(Float, default=0)
    rating_count = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    target_mood_rows = relationship("GameTargetMood", cascade="all, delete-orphan", lazy="selectin")

    @property
    def target_moods(self):
        return [row.mood for row in self.target_mood_rows]

    @target_moods.setter
    def target_moods(self, moods):
        existing = {row.mood: row for row in self.target_mood_rows}
        self.target_mood_rows = [
            existing.get(mood) or GameTargetMood(mood=mood) for mood in dict.fromkeys(moods or [])
        ]

    def increment_play_count(self):
        self.play_count = (self.play_count or 0) + 1

    def update_rating(self, new_rating):
        count = self.rating_count or 0
        self.average_rating = ((self.average_rating or 0) * count + new_rating) / (count + 1)
        self.rating_count = count + 1

class GameTargetMood(Base):
    __tablename__ = "game_target_moods"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id", ondelete="CASCADE"), index=True)
    mood = Column(String, index=True)

    __table_args__ = (UniqueConstraint("game_id", "mood", name="uq_game_target_mood"),)

class GameSession(Base):
    __tablename__ = "game_sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    game_id = Column(Integer, ForeignKey("games.id"), index=True)
    mood_before = Column(JSON)  # mood, intensity
    mood_after = Column(JSON, nullable=True)
    score = Column(Integer, default=0)
    max_score = Column(Integer, default=0)
    duration = Column(Integer, default=0)  # seconds
    completed = Column(Boolean, default=False, index=True)
    completion_percentage = Column(Float, default=0)
    difficulty = Column(String)
    game_data = Column(JSON, default=dict)
    achievements = Column(JSON, default=list)
    rating = Column(Integer, nullable=True)
    feedback = Column(String(500), nullable=True)
    device_type = Column(String, default="unknown")
    started_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    game = relationship("Game")

    __table_args__ = (Index("ix_game_sessions_user_created", "user_id", "created_at"),)

    @property
    def mood_improvement(self):
        if not self.mood_after or not self.mood_before:
            return None
        after = self.mood_after.get("intensity")
        before = self.mood_before.get("intensity")
        if after is None or before is None:
            return None
        return after - before
