from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Success:
    """A write went through; ``id`` is the primary key the database assigned."""

    id: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """A write was refused or could not be committed."""

    reason: str
    # True when the write was valid but the database refused the commit.
    transient: bool = False

    @property
    def ok(self) -> bool:
        return False


WriteResult = Union[Success, Failure]
