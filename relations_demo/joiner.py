"""In-memory resolution of link records against the two entity sets they join.

The many-to-many page loads users, languages and fluencies as three flat
lists. ``join`` turns every fluency into a display row carrying both names,
using one dictionary per entity set instead of a linear search per link.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence


@dataclass(frozen=True)
class Entity:
    id: int
    display_name: str


@dataclass(frozen=True)
class Link:
    left_id: int
    right_id: int
    payload: str
    id: int | None = None


@dataclass(frozen=True)
class JoinedRow:
    left_id: int
    left_name: str
    right_id: int
    right_name: str
    payload: str


class RelationError(Exception):
    """Base class for relation resolution errors."""


class DanglingReferenceError(RelationError):
    """A link points at an entity that is not in the corresponding set."""

    def __init__(self, link: Link, position: int, missing: Sequence[str]):
        self.link = link
        self.position = position
        self.missing = tuple(missing)
        parts = []
        if "left" in self.missing:
            parts.append(f"left id {link.left_id}")
        if "right" in self.missing:
            parts.append(f"right id {link.right_id}")
        super().__init__(
            f"Link at position {position} references unknown {' and '.join(parts)}: {link!r}"
        )


def index_by_id(entities: Iterable[Entity]) -> Dict[int, str]:
    """Map entity id to display name. Later duplicates overwrite earlier ones."""
    return {entity.id: entity.display_name for entity in entities}


def join(
    left_entities: Iterable[Entity],
    right_entities: Iterable[Entity],
    links: Iterable[Link],
) -> List[JoinedRow]:
    """Resolve every link into a ``JoinedRow``, preserving link order.

    Raises:
        DanglingReferenceError: on the first link whose left or right id
            has no matching entity. Nothing is returned in that case.
    """
    left_names = index_by_id(left_entities)
    right_names = index_by_id(right_entities)

    rows: List[JoinedRow] = []
    for position, link in enumerate(links):
        missing = []
        if link.left_id not in left_names:
            missing.append("left")
        if link.right_id not in right_names:
            missing.append("right")
        if missing:
            raise DanglingReferenceError(link, position, missing)

        rows.append(
            JoinedRow(
                left_id=link.left_id,
                left_name=left_names[link.left_id],
                right_id=link.right_id,
                right_name=right_names[link.right_id],
                payload=link.payload,
            )
        )
    return rows
