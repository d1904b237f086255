import logging

from sqlalchemy import select

from storefront.errors import Forbidden, NotFound, ValidationError
from storefront.models.database import db, User
from storefront.services.auth_service import AuthService
from storefront.services.query import apply_search, apply_sort, paginate

logger = logging.getLogger(__name__)

USER_SORTS = {
    "name": User.name,
    "email": User.email,
    "created_at": User.created_at,
}


class UserService:
    """Back-office user management."""

    @staticmethod
    def list_users(search=None, sort=None, order=None, page=1, per_page=None):
        stmt = apply_search(select(User), search, User.name, User.email)
        stmt = apply_sort(stmt, sort, order, USER_SORTS,
                          default=("created_at", "desc"), tiebreak=User.id)
        return paginate(stmt, page, per_page)

    @staticmethod
    def get_user(user_id: int) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFound("User", user_id)
        return user

    @staticmethod
    def _check_unique_email(email: str, exclude_id=None) -> None:
        stmt = select(User.id).where(User.email == email)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if db.session.execute(stmt).first() is not None:
            raise ValidationError({"email": ["The email has already been taken."]})

    @staticmethod
    def create_user(data: dict) -> User:
        UserService._check_unique_email(data["email"])
        user = User(
            name=data["name"],
            email=data["email"],
            password_hash=AuthService.hash_password(data["password"]),
            role=data.get("role", "user"),
        )
        db.session.add(user)
        db.session.commit()
        logger.info("Created user id=%s role=%s", user.id, user.role)
        return user

    @staticmethod
    def update_user(user_id: int, data: dict) -> User:
        user = UserService.get_user(user_id)
        if "email" in data:
            UserService._check_unique_email(data["email"], exclude_id=user.id)
            user.email = data["email"]
        if "name" in data:
            user.name = data["name"]
        if "role" in data:
            user.role = data["role"]
        if data.get("password"):
            user.password_hash = AuthService.hash_password(data["password"])

        db.session.commit()
        logger.info("Updated user id=%s", user.id)
        return user

    @staticmethod
    def delete_user(user_id: int, acting_user: User) -> None:
        user = UserService.get_user(user_id)
        if user.id == acting_user.id:
            raise Forbidden("Cannot delete your own account")

        db.session.delete(user)
        db.session.commit()
        logger.info("Deleted user id=%s", user_id)
