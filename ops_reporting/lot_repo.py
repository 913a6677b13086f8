import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from ops_reporting.models import DimLot
from ops_reporting.normalize import normalize_lot_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FastPath:
    """The raw record already carried a resolved lot key."""

    lot_key: int
    lot_id_norm: str


@dataclass(frozen=True)
class Resolved:
    lot_key: int
    lot_id_norm: str
    should_backfill: bool


@dataclass(frozen=True)
class Unmatched:
    lot_id_raw: str | None
    lot_id_norm: str | None
    reason: str


LotResolution = FastPath | Resolved | Unmatched


class LotResolver:
    """Resolves raw lot identifiers against the pre-populated lot master.

    Never creates lots: an identifier with no matching ``dim_lot`` row is
    ``Unmatched``.
    """

    def __init__(self, session: Session):
        self._session = session

    def resolve_lot(
        self,
        lot_id_raw: str | None,
        already_resolved_key: int | None = None,
        record=None,
    ) -> LotResolution:
        if already_resolved_key is not None:
            lot = self._session.get(DimLot, already_resolved_key)
            if lot is None:
                return Unmatched(lot_id_raw, None, f"lot_key {already_resolved_key} not in lot master")
            return FastPath(lot_key=lot.lot_key, lot_id_norm=lot.lot_id_norm)

        if lot_id_raw is None or not str(lot_id_raw).strip():
            return Unmatched(lot_id_raw, None, "missing lot id")

        lot_id_norm = normalize_lot_id(lot_id_raw)
        if lot_id_norm is None:
            return Unmatched(lot_id_raw, None, "lot id has no identifying characters")

        stmt = select(DimLot).where(DimLot.lot_id_norm == lot_id_norm)
        lot = self._session.execute(stmt).scalars().first()
        if lot is None:
            return Unmatched(lot_id_raw, lot_id_norm, "lot id not in lot master")

        resolution = Resolved(
            lot_key=lot.lot_key,
            lot_id_norm=lot.lot_id_norm,
            should_backfill=record is not None,
        )
        if resolution.should_backfill:
            self.backfill(record, resolution.lot_key)
        return resolution

    def backfill(self, record, lot_key: int) -> None:
        """Persist the resolved lot key onto the raw log row."""
        if record.lot_key == lot_key:
            return
        record.lot_key = lot_key
        self._session.flush()
        logger.debug("backfilled lot_key=%s onto %s", lot_key, type(record).__name__)
