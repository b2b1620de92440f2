"""Seed and query the one-to-one and one-to-many demo tables.

Run ``relations-seed one-to-one`` or ``relations-seed one-to-many``. By
default the schema is dropped and recreated first, so every run starts
from the same rows.
"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from faker import Faker
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .config import configure_logging, get_settings
from .database import open_store
from .models import Blogger, DriversLicense, Person, Post

logger = logging.getLogger(__name__)

fake = Faker()

PEOPLE = [
    {
        "first_name": "McLovin",
        "last_name": "McLovin",
        "national_identification_number": 32479,
    },
    {
        "first_name": "Chandler",
        "last_name": "Bing",
        "national_identification_number": 453454,
    },
]

# Keyed by the holder's national identification number.
LICENSES = [
    {
        "holder": 453454,
        "license_reference_number": 2,
        "allowed_vehicle": "B",
        "issue_date": date(2019, 5, 27),
        "expiry_date": date(2029, 5, 27),
    },
    {
        "holder": 32479,
        "license_reference_number": 5,
        "allowed_vehicle": "A",
        "issue_date": date(2017, 5, 27),
        "expiry_date": date(2027, 5, 27),
    },
]

BLOGGER_NAME = "Milo Whitwicki"

POSTS = [
    ("Wonders of the sea", "There is a lost civilization at the bottom of the ocean"),
    (
        "Wonders of the sea part 2",
        "There is another lost civilization at the bottom of the ocean",
    ),
    ("Wonders of the sea part 3", "They just to keep popping up down here!!"),
]


def seed_people_and_licenses(session: Session) -> None:
    """Create the demo people and give each one a driver's license."""
    existing = {
        p.national_identification_number: p
        for p in session.scalars(select(Person)).all()
    }

    for data in PEOPLE:
        if data["national_identification_number"] in existing:
            continue
        person = Person(**data)
        session.add(person)
        existing[person.national_identification_number] = person
        logger.info("Added new person to database: %s", person.full_name)

    session.flush()  # assign person ids

    for data in LICENSES:
        holder = existing[data["holder"]]
        if holder.license is not None:
            continue
        fields = {k: v for k, v in data.items() if k != "holder"}
        holder.license = DriversLicense(**fields)
        logger.info(
            "Added new license %s for %s", fields["license_reference_number"], holder.full_name
        )

    session.flush()


def fake_posts(count: int) -> List[Tuple[str, str]]:
    """The first ``count`` fake ``(title, body)`` pairs, the same on every call.

    Titles are distinct from each other and from the fixed sea posts.
    """
    Faker.seed(1234)
    reserved = {title for title, _ in POSTS}
    posts: Dict[str, str] = {}
    while len(posts) < count:
        title = fake.sentence(nb_words=5).rstrip(".")
        body = fake.paragraph(nb_sentences=3)
        if title in reserved or title in posts:
            logger.debug("Fake title %r already taken, drawing another", title)
            continue
        posts[title] = body
    return list(posts.items())


def seed_blogger_posts(session: Session, extra_posts: int = 0) -> Blogger:
    """Create the demo blogger with the sea posts plus ``extra_posts`` fake ones."""
    blogger = session.scalar(select(Blogger).where(Blogger.name == BLOGGER_NAME))
    if blogger is None:
        blogger = Blogger(name=BLOGGER_NAME)
        session.add(blogger)
        session.flush()
        logger.info("Added new blogger to database: %s", blogger.name)

    titles = {post.title for post in blogger.posts}
    for title, body in POSTS + fake_posts(extra_posts):
        if title in titles:
            continue
        blogger.posts.append(Post(title=title, body=body))
        titles.add(title)
        logger.info("Added post %r", title)

    session.flush()
    return blogger


def licensed_people(session: Session) -> List[Tuple[Person, DriversLicense]]:
    """People joined with their license, ordered by person id."""
    stmt = (
        select(Person, DriversLicense)
        .join(DriversLicense, DriversLicense.person_id == Person.id)
        .order_by(Person.id)
    )
    return [(person, license_) for person, license_ in session.execute(stmt).all()]


def bloggers_with_posts(session: Session) -> List[Blogger]:
    """Bloggers that have written at least one post, posts eager-loaded."""
    stmt = (
        select(Blogger)
        .join(Blogger.posts)
        .options(selectinload(Blogger.posts))
        .order_by(Blogger.id)
    )
    return list(session.scalars(stmt).unique().all())


def run_one_to_one(session: Session) -> None:
    seed_people_and_licenses(session)
    for person, license_ in licensed_people(session):
        logger.info(
            "%s holds license %s (%s) valid until %s",
            person.full_name,
            license_.license_reference_number,
            license_.allowed_vehicle,
            license_.expiry_date.isoformat(),
        )


def run_one_to_many(session: Session, extra_posts: int = 0) -> None:
    seed_blogger_posts(session, extra_posts=extra_posts)
    for blogger in bloggers_with_posts(session):
        logger.info("%s wrote %d posts", blogger.name, len(blogger.posts))
        for post in blogger.posts:
            logger.info("- %s", post.title)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed a relationship demo.")
    parser.add_argument(
        "demo",
        choices=["one-to-one", "one-to-many"],
        help="Which relationship demo to seed.",
    )
    parser.add_argument(
        "--keep-existing",
        action="store_true",
        help="Do not drop and recreate the tables first.",
    )
    parser.add_argument(
        "--extra-posts",
        type=int,
        default=0,
        help="Additional fake posts for the one-to-many demo (default: 0).",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override the configured database URL.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    with open_store(args.database_url or settings.sqlalchemy_url, echo=settings.sql_echo) as store:
        store.check_connection()
        store.create_schema(reset=not args.keep_existing)
        with store.session_scope() as session:
            if args.demo == "one-to-one":
                run_one_to_one(session)
            else:
                run_one_to_many(session, extra_posts=args.extra_posts)

    logger.info("Seeding complete.")


if __name__ == "__main__":
    main()
