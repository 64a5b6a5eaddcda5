from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import quote
import logging

import bcrypt
import jwt
from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import Settings, get_settings
from errors import AuthenticationError, ConflictError, ValidationError, field_error
from models.database_models import User
from models.schemas import PreferencesUpdate, UserCreate, UserPreferences

logger = logging.getLogger(__name__)

AVATAR_URL = "https://ui-avatars.com/api/?name={name}&background=6366f1&color=fff&size=200"


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or get_settings().BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # over-long password or malformed hash
        return False


def generate_avatar(name: str) -> str:
    return AVATAR_URL.format(name=quote(name))


def create_access_token(user_id: int, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> int:
    """Return the user id carried by a token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return int(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise AuthenticationError()


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def register(self, data: UserCreate) -> User:
        email = data.email.lower()
        if len(data.password.encode("utf-8")) > 72:
            raise ValidationError(errors=[field_error("password", "Password cannot exceed 72 bytes")])

        existing = self.db.query(User).filter(
            or_(User.email == email, User.username == data.username)
        ).first()
        if existing:
            logger.warning(f"Registration rejected, duplicate email or username: {data.username}")
            raise ConflictError("User with this email or username already exists")

        user = User(
            email=email,
            username=data.username,
            name=data.name,
            hashed_password=hash_password(data.password),
            avatar=generate_avatar(data.name),
            preferences=UserPreferences().model_dump(by_alias=True),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def authenticate(self, login: str, password: str) -> User:
        """Check credentials; ``login`` may be a username or an email address."""
        user = self.db.query(User).filter(
            or_(User.username == login, User.email == login.lower())
        ).first()
        if not user or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for {login}")
            raise AuthenticationError("Incorrect username or password")
        if not user.is_active:
            raise AuthenticationError("Account is disabled")

        user.last_login = datetime.utcnow()
        self.db.commit()
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def update_preferences(self, user: User, update: PreferencesUpdate) -> User:
        changes = update.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
        # JSON columns only persist on reassignment
        user.preferences = {**(user.preferences or {}), **changes}
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Updated preferences for user {user.id}: {sorted(changes)}")
        return user
