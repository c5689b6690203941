"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from linkpage.db.models import ProfilePage, User
from linkpage.db.session import Database

# Largest primary key any supported backend can bind (signed 64-bit).
MAX_ROW_ID = 2**63 - 1


class UniqueViolationError(Exception):
    """Raised when a write collides with a unique constraint (email, slug)."""


@dataclass(frozen=True)
class SlugOwner:
    page_id: int
    user_id: int


def _storable_id(row_id) -> bool:
    return isinstance(row_id, int) and 0 < row_id <= MAX_ROW_ID


class SQLRepository:
    """CRUD helpers wrapping sessions of an injected Database."""

    def __init__(self, database: Database) -> None:
        self.database = database

    # -------------------------- users --------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        if not _storable_id(user_id):
            return None
        with self.database.session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.database.session() as session:
            stmt = select(User).where(User.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def create_user(self, name: str, email: str, password_hash: str, *, is_admin: bool = False) -> User:
        now = datetime.now(timezone.utc)
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            is_admin=is_admin,
            created_at=now,
            updated_at=now,
        )
        with self.database.session() as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise UniqueViolationError(f"email {email!r} already registered") from exc
            session.refresh(user)
            return user

    def update_user_password(self, user_id: int, password_hash: str) -> None:
        with self.database.session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            session.execute(stmt)
            session.commit()

    # -------------------------- pages --------------------------
    def get_page(self, page_id: int) -> Optional[ProfilePage]:
        if not _storable_id(page_id):
            return None
        with self.database.session() as session:
            return session.get(ProfilePage, page_id)

    def get_page_for_owner(self, page_id: int, user_id: int) -> Optional[ProfilePage]:
        if not _storable_id(page_id):
            return None
        with self.database.session() as session:
            stmt = select(ProfilePage).where(ProfilePage.id == page_id, ProfilePage.user_id == user_id).limit(1)
            return session.execute(stmt).scalar_one_or_none()

    def get_page_by_slug(self, slug: str) -> Optional[ProfilePage]:
        with self.database.session() as session:
            stmt = select(ProfilePage).where(ProfilePage.slug == slug).limit(1)
            return session.execute(stmt).scalar_one_or_none()

    def get_owned_page_by_slug(self, user_id: int, slug: str) -> Optional[ProfilePage]:
        with self.database.session() as session:
            stmt = select(ProfilePage).where(ProfilePage.user_id == user_id, ProfilePage.slug == slug).limit(1)
            return session.execute(stmt).scalar_one_or_none()

    def list_pages_by_owner(self, user_id: int) -> list[ProfilePage]:
        with self.database.session() as session:
            stmt = (
                select(ProfilePage)
                .where(ProfilePage.user_id == user_id)
                .order_by(ProfilePage.updated_at.desc(), ProfilePage.id.desc())
            )
            return list(session.execute(stmt).scalars().all())

    def find_slug_owner(self, slug: str) -> Optional[SlugOwner]:
        slug_value = (slug or "").strip()
        if not slug_value:
            return None
        with self.database.session() as session:
            stmt = select(ProfilePage.id, ProfilePage.user_id).where(ProfilePage.slug == slug_value).limit(1)
            row = session.execute(stmt).first()
            if row is None:
                return None
            return SlugOwner(page_id=row.id, user_id=row.user_id)

    def slug_exists(self, slug: str) -> bool:
        return self.find_slug_owner(slug) is not None

    def insert_page(
        self,
        user_id: int,
        slug: str,
        *,
        title: str | None = None,
        description: str | None = None,
        instagram_url: str | None = None,
    ) -> ProfilePage:
        now = datetime.now(timezone.utc)
        page = ProfilePage(
            user_id=user_id,
            slug=slug,
            title=title,
            description=description,
            instagram_url=instagram_url,
            created_at=now,
            updated_at=now,
        )
        with self.database.session() as session:
            session.add(page)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise UniqueViolationError(f"slug {slug!r} already taken") from exc
            session.refresh(page)
            return page

    def update_page(
        self,
        page_id: int,
        user_id: int,
        slug: str,
        *,
        title: str | None = None,
        description: str | None = None,
        instagram_url: str | None = None,
    ) -> Optional[ProfilePage]:
        """Rewrite an owned page in place. Returns None when no owned row matched."""
        if not _storable_id(page_id):
            return None
        with self.database.session() as session:
            stmt = (
                update(ProfilePage)
                .where(ProfilePage.id == page_id, ProfilePage.user_id == user_id)
                .values(
                    slug=slug,
                    title=title,
                    description=description,
                    instagram_url=instagram_url,
                    updated_at=datetime.now(timezone.utc),
                )
                .execution_options(synchronize_session=False)
            )
            try:
                result = session.execute(stmt)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise UniqueViolationError(f"slug {slug!r} already taken") from exc
            if not result.rowcount:
                return None
            return session.get(ProfilePage, page_id)
