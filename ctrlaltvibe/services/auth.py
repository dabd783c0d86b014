from sqlalchemy.orm import Session
from fastapi import HTTPException, status
import logging
import re
import secrets

from ctrlaltvibe.core.constants import AuthProviderEnum
from ctrlaltvibe.core.security import create_access_token, get_password_hash, verify_password
from ctrlaltvibe.crud.user import user as crud_user
from ctrlaltvibe.models.user import User
from ctrlaltvibe.schemas.token import Token
from ctrlaltvibe.schemas.user import AuthResult, User as UserSchema, UserCreate
from ctrlaltvibe.services.oauth import oauth_service

logger = logging.getLogger(__name__)

class AuthService:
    def _issue(self, user: User) -> AuthResult:
        return AuthResult(user=UserSchema.model_validate(user), token=Token(access_token=create_access_token(user.id)))

    def register(self, db: Session, *, obj_in: UserCreate) -> AuthResult:
        if crud_user.get_by_username(db, username=obj_in.username):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
        if crud_user.get_by_email(db, email=obj_in.email):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

        user = crud_user.create(
            db,
            obj_in={
                "username": obj_in.username,
                "email": obj_in.email.lower(),
                "hashed_password": get_password_hash(obj_in.password),
                "auth_provider": AuthProviderEnum.LOCAL.value,
            },
        )
        logger.info(f"Registered user {user.id} ({user.username})")
        return self._issue(user)

    def login(self, db: Session, *, login: str, password: str) -> AuthResult:
        user = crud_user.get_by_login(db, login=login)
        if not user or not verify_password(password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect username or password",
            )
        return self._issue(user)

    async def google_login(self, db: Session, *, id_token: str) -> AuthResult:
        claims = await oauth_service.verify_google_token(id_token)
        if not claims:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Google token")

        email = claims["email"].lower()
        user = crud_user.get_by_email(db, email=email)
        if not user:
            user = crud_user.create(
                db,
                obj_in={
                    "username": self._unique_username(db, claims.get("name") or email.split("@")[0]),
                    "email": email,
                    "avatar_url": claims.get("picture"),
                    "auth_provider": AuthProviderEnum.GOOGLE.value,
                },
            )
            logger.info(f"Created user {user.id} from Google sign-in")
        return self._issue(user)

    def _unique_username(self, db: Session, base: str) -> str:
        candidate = re.sub(r"[^a-zA-Z0-9_]", "", base.replace(" ", "_"))[:40] or "user"
        username = candidate
        while crud_user.get_by_username(db, username=username):
            username = f"{candidate}_{secrets.token_hex(2)}"
        return username

auth_service = AuthService()
