"""User accounts, e-mail verification and login sessions"""
import logging
import random
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Literal, Optional

from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, Field

from .config import SessionConfig, sessions as session_config
from .database import USER_SESSIONS, USERS, ensure_aware, to_object_id, utcnow
from .errors import NotFound, ValidationFailed
from .models import User
from .utils.mailer import Mailer

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    confirm_email: str = ''
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str = ''
    role: Literal['Seller', 'Customer'] = 'Seller'


class LoginRequest(BaseModel):
    username_or_email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class VerifyCodeRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=6, max_length=6)


@dataclass
class LoginResult:
    success: bool
    message: str = ''
    user: Optional[User] = None
    session_token: Optional[str] = None
    needs_verification: bool = False

    @property
    def redirect_url(self) -> Optional[str]:
        if self.user is None:
            return None
        return redirect_for(self.user)


def redirect_for(user: User) -> str:
    return '/shop' if user.role == 'Customer' else '/dash'


def generate_code() -> str:
    return str(random.randint(100000, 999999))


class AccountService:
    """Registration, verification codes, password login and session tokens"""

    def __init__(self, db, mailer: Mailer, config: SessionConfig = None):
        self.db = db
        self.mailer = mailer
        self.config = config or session_config

    async def _find(self, query) -> Optional[User]:
        return User.from_doc(await self.db[USERS].find_one(query))

    async def get_user(self, user_id: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self._find({'_id': oid})

    async def register(self, req: RegisterRequest) -> User:
        if req.confirm_email != req.email:
            raise ValidationFailed("Emails do not match.")
        if req.confirm_password != req.password:
            raise ValidationFailed("Passwords do not match.")
        if await self._find({'username': req.username}) is not None:
            raise ValidationFailed("Username already taken.")
        if await self._find({'email': req.email}) is not None:
            raise ValidationFailed("Email already taken.")

        user = User(
            username=req.username,
            email=req.email,
            password_hash=pwd_context.hash(req.password),
            is_email_verified=False,
            role=req.role,
        )
        result = await self.db[USERS].insert_one(user.to_doc())
        user.id = str(result.inserted_id)
        logger.info(f"Registered user {user.id} ({user.role})")
        await self.send_verification_code(user)
        return user

    async def send_verification_code(self, user: User) -> str:
        code = generate_code()
        expires = utcnow() + timedelta(minutes=self.config.verification_code_minutes)
        await self.db[USERS].update_one(
            {'_id': to_object_id(user.id)},
            {'$set': {'email_verification_token': code, 'email_verification_token_expires': expires}}
        )
        user.email_verification_token = code
        user.email_verification_token_expires = expires
        await self.mailer.send_verification_code(user.email, code)
        return code

    async def resend_code(self, email: str) -> None:
        user = await self._find({'email': email}) if email else None
        if user is None or user.is_email_verified:
            raise ValidationFailed("User invalid.")
        await self.send_verification_code(user)

    async def verify_code(self, req: VerifyCodeRequest) -> LoginResult:
        user = await self._find({'email': req.email})
        if user is None:
            raise NotFound("User not found.")
        if user.is_email_verified:
            return LoginResult(success=False, message="Account already verified. Please log in.")

        expires = ensure_aware(user.email_verification_token_expires)
        if user.email_verification_token != req.code or expires is None or expires < utcnow():
            return LoginResult(success=False, message="Invalid or expired code.")

        await self.db[USERS].update_one(
            {'_id': to_object_id(user.id)},
            {'$set': {
                'is_email_verified': True,
                'email_verification_token': None,
                'email_verification_token_expires': None,
            }}
        )
        user.is_email_verified = True
        return await self._sign_in(user)

    async def login(self, req: LoginRequest) -> LoginResult:
        user = await self._find({'$or': [
            {'username': req.username_or_email}, {'email': req.username_or_email}
        ]})
        if user is None or not pwd_context.verify(req.password, user.password_hash):
            return LoginResult(success=False, message="Invalid username/email or password.")

        if not user.is_email_verified:
            expires = ensure_aware(user.email_verification_token_expires)
            if expires is None or expires < utcnow():
                await self.send_verification_code(user)
            return LoginResult(
                success=False,
                message="Your account is not verified. A verification code has been sent to your email.",
                user=user,
                needs_verification=True,
            )
        return await self._sign_in(user)

    async def _sign_in(self, user: User) -> LoginResult:
        token = secrets.token_urlsafe(32)
        await self.db[USER_SESSIONS].insert_one({
            'session_token': token,
            'user_id': user.id,
            'created_at': utcnow(),
            'expires_at': utcnow() + timedelta(days=self.config.session_expiry_days),
        })
        return LoginResult(success=True, user=user, session_token=token)

    async def get_user_by_session(self, session_token: Optional[str]) -> Optional[User]:
        if not session_token:
            return None
        session_doc = await self.db[USER_SESSIONS].find_one({'session_token': session_token})
        if not session_doc:
            return None
        expires_at = ensure_aware(session_doc.get('expires_at'))
        if expires_at is None or expires_at < utcnow():
            return None
        return await self.get_user(session_doc['user_id'])

    async def logout(self, session_token: Optional[str]) -> None:
        if session_token:
            await self.db[USER_SESSIONS].delete_one({'session_token': session_token})
