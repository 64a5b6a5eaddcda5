from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
import logging

from config import Settings, get_settings
from database import get_db
from errors import AuthenticationError
from models.database_models import User
from models.schemas import PreferencesUpdate, Token, UserCreate, UserOut
from routers.responses import success
from services.auth_service import AuthService, create_access_token, decode_access_token

router = APIRouter()
logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    user_id = decode_access_token(token, settings)
    user = AuthService(db).get_user(user_id)
    if not user or not user.is_active:
        raise AuthenticationError()
    return user


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Create an account and return a bearer token for it"""
    user = AuthService(db).register(data)
    return success(
        {
            "user": UserOut.model_validate(user),
            "accessToken": create_access_token(user.id, settings),
            "tokenType": "bearer",
        },
        "User registered successfully",
    )


@router.post("/token", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """OAuth2 password flow; the username field also accepts an email address"""
    user = AuthService(db).authenticate(form_data.username, form_data.password)
    logger.info(f"User {user.id} logged in")
    return Token(access_token=create_access_token(user.id, settings))


@router.get("/me")
async def read_me(current_user: User = Depends(get_current_user)):
    return success({"user": UserOut.model_validate(current_user)})


@router.put("/me/preferences")
async def update_preferences(
    update: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = AuthService(db).update_preferences(current_user, update)
    return success({"user": UserOut.model_validate(user)}, "Preferences updated")
