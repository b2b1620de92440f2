import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .joiner import Entity, JoinedRow, Link, join
from .results import Failure, Success, WriteResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Overview:
    people: List[Entity]
    languages: List[Entity]
    fluencies: List[JoinedRow]


def _commit(db: Session, obj, what: str) -> WriteResult:
    """Add ``obj``, commit, and report the assigned id.

    Low-level SQLAlchemy errors are rolled back and turned into a
    ``Failure`` so the caller decides how to report them.
    """
    db.add(obj)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Couldn't create %s", what)
        return Failure("Database commit failed", transient=True)

    db.refresh(obj)
    logger.info("Created %s %s", what, obj.id)
    return Success(obj.id)


# Write path


def create_user(db: Session, user_in: schemas.UserCreate) -> WriteResult:
    return _commit(db, models.User(user_name=user_in.user_name), "user")


def create_language(db: Session, language_in: schemas.LanguageCreate) -> WriteResult:
    return _commit(db, models.Language(language_name=language_in.language_name), "language")


def create_fluency(db: Session, fluency_in: schemas.FluencyCreate) -> WriteResult:
    """Link an existing user to an existing language.

    Both ends must already exist; the same pair may be linked repeatedly.
    """
    if db.get(models.User, fluency_in.user_id) is None:
        return Failure(f"User {fluency_in.user_id} does not exist")
    if db.get(models.Language, fluency_in.language_id) is None:
        return Failure(f"Language {fluency_in.language_id} does not exist")

    fluency = models.Fluency(
        level=fluency_in.level,
        user_id=fluency_in.user_id,
        language_id=fluency_in.language_id,
    )
    return _commit(db, fluency, "fluency")


# Read path


def list_users(db: Session) -> List[models.User]:
    return list(db.scalars(select(models.User).order_by(models.User.id)).all())


def list_languages(db: Session) -> List[models.Language]:
    return list(db.scalars(select(models.Language).order_by(models.Language.id)).all())


def list_fluencies(db: Session) -> List[models.Fluency]:
    return list(db.scalars(select(models.Fluency).order_by(models.Fluency.id)).all())


def load_overview(db: Session) -> Overview:
    """Fetch users, languages and fluencies and resolve fluencies to names.

    Raises:
        DanglingReferenceError: if a fluency points at a missing user or
            language.
    """
    people = [Entity(id=u.id, display_name=u.user_name) for u in list_users(db)]
    logger.debug("Users: %s", people)

    languages = [
        Entity(id=lang.id, display_name=lang.language_name) for lang in list_languages(db)
    ]
    logger.debug("Languages: %s", languages)

    links = [
        Link(left_id=f.user_id, right_id=f.language_id, payload=f.level, id=f.id)
        for f in list_fluencies(db)
    ]
    fluencies = join(people, languages, links)
    logger.debug("Fluencies: %s", fluencies)

    return Overview(people=people, languages=languages, fluencies=fluencies)
