from __future__ import annotations

from typing import Callable

from .database import SessionLocal
from .pairing_repo import PairingRepo


class PairingUnitOfWork:
    """One session and one repository for a single organization's run.

    Leaving the block with an exception rolls back whatever was not committed.
    """

    def __init__(self, session_factory: Callable | None = None) -> None:
        self._session_factory = session_factory

    def __enter__(self) -> PairingUnitOfWork:
        factory = self._session_factory or SessionLocal
        self.db = factory()
        self.repo = PairingRepo(self.db)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
        self.db.close()
        return False

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()


def get_unit_of_work() -> PairingUnitOfWork:
    return PairingUnitOfWork()
