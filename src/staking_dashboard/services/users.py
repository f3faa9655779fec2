"""Accounts, authentication and referrals."""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
from passlib.context import CryptContext
from sqlmodel import Session, col, select

from staking_dashboard.config import Settings
from staking_dashboard.db import Transaction, TransactionStatus, TransactionType, User
from staking_dashboard.schemas import ReferralSummary, RegisterRequest
from staking_dashboard.services.errors import (AuthError, ConflictError,
                                               InvalidInputError)
from staking_dashboard.services.settings import validate_wallet_address

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def new_referral_code() -> str:
    return f"REF-{secrets.token_hex(4).upper()}"


class UserService:
    """Registration, login tokens, wallet and referral bookkeeping."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.jwt_secret
        self._expire = timedelta(minutes=settings.jwt_expire_minutes)

    # Passwords and tokens

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(password: str, hashed: str) -> bool:
        return pwd_context.verify(password, hashed)

    def create_token(self, user: User, now: datetime | None = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "admin": user.is_admin,
            "iat": issued,
            "exp": issued + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def decode_token(self, token: str) -> int:
        """Return the user id carried by a valid token.

        Raises:
            AuthError: If the token is expired, malformed or has no subject.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"verify_exp": True},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("Invalid token") from exc
        subject = payload.get("sub")
        if not subject or not str(subject).isdigit():
            raise AuthError("Invalid token")
        return int(subject)

    # Accounts

    def get_by_username(self, session: Session, username: str) -> User | None:
        return session.exec(select(User).where(User.username == username)).first()

    def get_from_token(self, session: Session, token: str) -> User:
        user = session.get(User, self.decode_token(token))
        if user is None:
            raise AuthError("User not found")
        return user

    def register(self, session: Session, request: RegisterRequest) -> User:
        if self.get_by_username(session, request.username) is not None:
            raise ConflictError("Username already taken")
        if request.email and session.exec(
            select(User).where(User.email == request.email)
        ).first():
            raise ConflictError("Email already registered")

        referrer_id = None
        if request.referral_code:
            referrer = session.exec(
                select(User).where(User.referral_code == request.referral_code.strip().upper())
            ).first()
            if referrer is None:
                raise InvalidInputError("Invalid referral code")
            referrer_id = referrer.id

        user = User(
            username=request.username,
            email=request.email,
            hashed_password=self.hash_password(request.password),
            referrer_id=referrer_id,
            referral_code=self._unique_referral_code(session),
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Registered user %s (referrer=%s)", user.id, referrer_id)
        return user

    def authenticate(self, session: Session, username: str, password: str) -> User:
        user = self.get_by_username(session, username)
        if user is None or not self.verify_password(password, user.hashed_password):
            raise AuthError("Invalid credentials")
        return user

    def update_wallet(self, session: Session, user: User, wallet_address: str) -> User:
        user.wallet_address = validate_wallet_address(wallet_address.strip())
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def referral_summary(self, session: Session, user: User) -> ReferralSummary:
        referred = session.exec(
            select(User.username).where(User.referrer_id == user.id).order_by(col(User.id))
        ).all()
        payouts = session.exec(
            select(Transaction.amount).where(
                Transaction.user_id == user.id,
                Transaction.type == TransactionType.REFERRAL_REWARD,
                Transaction.status == TransactionStatus.COMPLETED,
            )
        ).all()
        return ReferralSummary(
            referral_code=user.referral_code,
            referred_users=list(referred),
            total_earned=sum((Decimal(a) for a in payouts), Decimal(0)),
        )

    def create_admin(self, session: Session, username: str, password: str, email: str | None = None) -> User:
        """Create an admin account, or promote and re-password an existing one."""
        user = self.get_by_username(session, username)
        if user is None:
            user = User(
                username=username,
                email=email,
                hashed_password=self.hash_password(password),
                referral_code=self._unique_referral_code(session),
                is_admin=True,
            )
        else:
            user.is_admin = True
            user.hashed_password = self.hash_password(password)
            if email:
                user.email = email
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("Admin user %s ready (id=%s)", user.username, user.id)
        return user

    @staticmethod
    def _unique_referral_code(session: Session) -> str:
        while True:
            code = new_referral_code()
            if session.exec(select(User.id).where(User.referral_code == code)).first() is None:
                return code
