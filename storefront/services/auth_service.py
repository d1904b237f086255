import logging
import secrets

import bcrypt
import jwt
from datetime import datetime, timedelta, timezone
from flask import current_app

from storefront.errors import Conflict, InvalidCredentials, RateLimited, Unauthorized
from storefront.models.database import db, AccessToken, User
from storefront.services.login_throttle import LoginThrottle

logger = logging.getLogger(__name__)


class AuthService:
    """Handles authentication, password management and bearer tokens."""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """Verify a password against its hash."""
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    @staticmethod
    def issue_token(user: User) -> str:
        """Generate a JWT for a user and record it so it can be revoked."""
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(minutes=current_app.config["TOKEN_EXPIRY_MINUTES"])
        token_id = secrets.token_hex(16)

        # Expired rows for this user go out with the new one
        AccessToken.query.filter(
            AccessToken.user_id == user.id, AccessToken.expires_at <= now
        ).delete()
        db.session.add(AccessToken(id=token_id, user_id=user.id, expires_at=expires_at))
        db.session.commit()

        payload = {
            "sub": str(user.id),
            "jti": token_id,
            "role": user.role,
            "exp": expires_at,
            "iat": now,
        }
        return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm="HS256")

    @staticmethod
    def decode_token(token: str) -> dict:
        """Decode and validate a JWT token."""
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=["HS256"],
            options={"require": ["exp", "sub", "jti"]},
        )

    @staticmethod
    def resolve_token(token: str) -> tuple:
        """Return ``(user, token_id)`` for a live token or raise Unauthorized."""
        try:
            payload = AuthService.decode_token(token)
        except jwt.PyJWTError:
            raise Unauthorized("Invalid or expired token")

        record = db.session.get(AccessToken, payload["jti"])
        if record is None or str(record.user_id) != payload["sub"]:
            raise Unauthorized("Invalid or expired token")
        return record.user, record.id

    @staticmethod
    def revoke_token(token_id: str) -> None:
        """Delete the stored token so the JWT is no longer accepted."""
        AccessToken.query.filter_by(id=token_id).delete()
        db.session.commit()

    @staticmethod
    def prune_expired_tokens() -> int:
        """Delete every token row whose expiry has passed."""
        deleted = AccessToken.query.filter(
            AccessToken.expires_at <= datetime.now(timezone.utc)
        ).delete()
        db.session.commit()
        return deleted

    @staticmethod
    def register_user(name: str, email: str, password: str, role: str = "user") -> User:
        """Register a new user."""
        if User.query.filter_by(email=email).first():
            raise Conflict("The email has already been taken.")

        user = User(
            name=name,
            email=email,
            password_hash=AuthService.hash_password(password),
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        logger.info("Registered user id=%s role=%s", user.id, role)
        return user

    @staticmethod
    def authenticate(email: str, password: str, address: str,
                     throttle: LoginThrottle) -> tuple:
        """Check credentials and return ``(token, user)``.

        Failed attempts are counted per address and email; once the throttle
        trips, further attempts are refused until the window clears.
        """
        key = LoginThrottle.key_for(address, email)
        if throttle.too_many_attempts(key):
            retry_after = throttle.available_in(key)
            logger.warning("Login throttled for %s (retry in %ss)", key, retry_after)
            raise RateLimited(retry_after)

        user = User.query.filter_by(email=email).first()
        if not user or not AuthService.verify_password(password, user.password_hash):
            attempts = throttle.hit(key)
            logger.warning("Failed login for %s (%d attempt(s))", key, attempts)
            raise InvalidCredentials()

        throttle.clear(key)
        return AuthService.issue_token(user), user
