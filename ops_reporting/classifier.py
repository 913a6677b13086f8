"""Per-record accept/flag decision.

A source declares an ordered tuple of ``Rule``s. Each rule either enriches
the ``RecordContext`` and returns ``None`` (continue), or returns a
``Rejection``; the first rejection decides the flag and later rules are not
evaluated.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Sequence

from ops_reporting.contracts import FlagType
from ops_reporting.db import IngestConfig
from ops_reporting.ledger import LineAssignmentLedger
from ops_reporting.loaders.dimension_loader import DimensionUpserter
from ops_reporting.lot_repo import FastPath, LotResolution, LotResolver, Resolved, Unmatched


@dataclass(frozen=True)
class Rejection:
    flag_type: FlagType
    reason: str
    missing_fields: str | None = None


@dataclass
class RuleServices:
    resolver: LotResolver
    ledger: LineAssignmentLedger
    dimensions: DimensionUpserter
    config: IngestConfig


@dataclass
class RecordContext:
    record: object
    lot_id_raw: str | None = None
    production_line_key: int | None = None
    lot: LotResolution | None = None
    issue_type_key: int | None = None
    qty_impacted: int | None = None
    event_date: date | None = None
    week_start_date: date | None = None
    rejected_by: str | None = None

    @property
    def lot_key(self) -> int | None:
        if isinstance(self.lot, (FastPath, Resolved)):
            return self.lot.lot_key
        return None

    @property
    def lot_id_norm(self) -> str | None:
        return getattr(self.lot, "lot_id_norm", None)


@dataclass(frozen=True)
class Rule:
    name: str
    check: Callable[[RecordContext, RuleServices], Rejection | None]


def incomplete(reason: str, *missing: str) -> Rejection:
    return Rejection(
        flag_type=FlagType.INCOMPLETE_DATA,
        reason=reason,
        missing_fields=", ".join(missing) if missing else None,
    )


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def classify(ctx: RecordContext, rules: Sequence[Rule], services: RuleServices) -> Rejection | None:
    for rule in rules:
        rejection = rule.check(ctx, services)
        if rejection is not None:
            ctx.rejected_by = rule.name
            return rejection
    return None


def check_lot(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    """Resolve the record's lot, backfilling the key onto the raw row."""
    ctx.lot = services.resolver.resolve_lot(ctx.lot_id_raw, ctx.record.lot_key, record=ctx.record)
    if isinstance(ctx.lot, Unmatched):
        return Rejection(
            flag_type=FlagType.UNMATCHED_LOT_ID,
            reason=f"Missing or invalid Lot ID ({ctx.lot.reason})",
            missing_fields="lot_id",
        )
    return None
