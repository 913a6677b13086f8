from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from ops_reporting.loaders.upsert import insert_if_absent
from ops_reporting.models import LotLineAssignment


@dataclass(frozen=True)
class AssignmentOk:
    production_line_key: int
    created: bool


@dataclass(frozen=True)
class AssignmentConflict:
    existing_line_key: int
    candidate_line_key: int


class LineAssignmentLedger:
    """First-writer-wins mapping from lot to its authoritative production line."""

    def __init__(self, session: Session):
        self._session = session

    def lookup(self, lot_key: int) -> int | None:
        stmt = select(LotLineAssignment.production_line_key).where(
            LotLineAssignment.lot_key == lot_key
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def check_and_assign(
        self, lot_key: int, candidate_line_key: int
    ) -> AssignmentOk | AssignmentConflict:
        existing = self.lookup(lot_key)
        if existing is None:
            created = insert_if_absent(
                self._session,
                LotLineAssignment,
                {"lot_key": lot_key, "production_line_key": candidate_line_key},
                ["lot_key"],
            )
            # Another writer may have claimed the lot between lookup and insert.
            existing = candidate_line_key if created else self.lookup(lot_key)
            if existing == candidate_line_key:
                return AssignmentOk(production_line_key=candidate_line_key, created=created)

        if existing == candidate_line_key:
            return AssignmentOk(production_line_key=existing, created=False)
        return AssignmentConflict(existing_line_key=existing, candidate_line_key=candidate_line_key)
