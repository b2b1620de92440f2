from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


# One-to-one: every license belongs to exactly one person.


class Person(TimestampMixin, Base):
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    national_identification_number: Mapped[int] = mapped_column(
        Integer, unique=True, nullable=False
    )

    license: Mapped[Optional["DriversLicense"]] = relationship(
        back_populates="person",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class DriversLicense(TimestampMixin, Base):
    __tablename__ = "drivers_licenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    license_reference_number: Mapped[int] = mapped_column(Integer, nullable=False)
    allowed_vehicle: Mapped[str] = mapped_column(String(16), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    person_id: Mapped[int] = mapped_column(
        ForeignKey("people.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    person: Mapped[Person] = relationship(back_populates="license")


# One-to-many: a blogger writes many posts.


class Blogger(TimestampMixin, Base):
    __tablename__ = "bloggers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    posts: Mapped[List["Post"]] = relationship(
        back_populates="blogger",
        cascade="all, delete-orphan",
        order_by="Post.id",
    )


class Post(TimestampMixin, Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    blogger_id: Mapped[int] = mapped_column(
        ForeignKey("bloggers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    blogger: Mapped[Blogger] = relationship(back_populates="posts")


# Many-to-many: users speak languages, the fluency row carries the level.


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)

    fluencies: Mapped[List["Fluency"]] = relationship(back_populates="user")
    languages: Mapped[List["Language"]] = relationship(
        secondary="fluencies",
        viewonly=True,
    )


class Language(TimestampMixin, Base):
    __tablename__ = "languages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    language_name: Mapped[str] = mapped_column(String(255), nullable=False)

    fluencies: Mapped[List["Fluency"]] = relationship(back_populates="language")
    users: Mapped[List[User]] = relationship(
        secondary="fluencies",
        viewonly=True,
    )


class Fluency(TimestampMixin, Base):
    """Link row between a user and a language.

    The same (user, language) pair may appear more than once, so the row
    has its own surrogate key instead of a composite one.
    """

    __tablename__ = "fluencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), index=True, nullable=False
    )
    language_id: Mapped[int] = mapped_column(
        ForeignKey("languages.id"), index=True, nullable=False
    )

    user: Mapped[User] = relationship(back_populates="fluencies")
    language: Mapped[Language] = relationship(back_populates="fluencies")
