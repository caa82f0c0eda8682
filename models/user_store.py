"""
Credential store: the only code that reads or writes User rows.

Writes go through a UserChangeset. Setting "password" on a changeset is the
one and only trigger for deriving a new password hash, so saving a user for
any other reason (refresh token rotation, profile edits) never re-hashes.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from argon2 import PasswordHasher
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.user import User
from utils.exceptions import Conflict, NotFound, PersistenceError
from utils.security import hash_password

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ("user_name", "email")


def normalize_identity(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if isinstance(value, str) else value


class UserChangeset:
    """Pending writes for one User row, with an explicit password dirty flag."""

    def __init__(self, **fields: Any):
        self._fields: Dict[str, Any] = {}
        self._password: Optional[str] = None
        for name, value in fields.items():
            self.set(name, value)

    def set(self, name: str, value: Any) -> "UserChangeset":
        if name == "password":
            self._password = value
        elif name in IDENTITY_FIELDS:
            self._fields[name] = normalize_identity(value)
        else:
            self._fields[name] = value
        return self

    @property
    def password_changed(self) -> bool:
        return self._password is not None

    def apply(self, user: User, hasher: PasswordHasher) -> User:
        for name, value in self._fields.items():
            setattr(user, name, value)
        if self.password_changed:
            user.password_hash = hash_password(self._password, hasher)
        return user


class UserStore:
    def __init__(self, storage, hasher: PasswordHasher):
        self.storage = storage
        self.hasher = hasher

    def _query(self):
        return self.storage.get_session().query(User)

    def find_by_id(self, user_id: Optional[str]) -> Optional[User]:
        return self.storage.get(User, user_id)

    def find_by_identity(self, user_name: Optional[str] = None, email: Optional[str] = None) -> Optional[User]:
        """Match on user name OR email, case-insensitively."""
        clauses = []
        if user_name:
            clauses.append(User.user_name == normalize_identity(user_name))
        if email:
            clauses.append(User.email == normalize_identity(email))
        if not clauses:
            return None
        return self._query().filter(or_(*clauses)).first()

    def identity_taken(self, user_name: Optional[str] = None, email: Optional[str] = None,
                       exclude_id: Optional[str] = None) -> bool:
        user = self.find_by_identity(user_name=user_name, email=email)
        return user is not None and user.id != exclude_id

    def create(self, changes: Union[UserChangeset, Mapping[str, Any]]) -> User:
        changes = self._as_changeset(changes)
        user = changes.apply(User(), self.hasher)
        self._commit(user, "Failed to create user")
        return user

    def update(self, user_or_id: Union[User, str], changes: Union[UserChangeset, Mapping[str, Any]]) -> User:
        user = user_or_id if isinstance(user_or_id, User) else self.find_by_id(user_or_id)
        if user is None:
            raise NotFound("User not found")
        self._as_changeset(changes).apply(user, self.hasher)
        self._commit(user, "Failed to update user")
        return user

    @staticmethod
    def _as_changeset(changes) -> UserChangeset:
        if isinstance(changes, UserChangeset):
            return changes
        return UserChangeset(**dict(changes))

    def _commit(self, user: User, message: str) -> None:
        self.storage.new(user)
        try:
            self.storage.save()
        except IntegrityError as exc:
            logger.warning("%s: %s", message, exc.orig)
            if "unique" in str(exc.orig).lower():
                raise Conflict("User with this email or username already exists")
            raise PersistenceError(message)
        except SQLAlchemyError:
            logger.exception(message)
            raise PersistenceError(message)
