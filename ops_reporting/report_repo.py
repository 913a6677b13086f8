"""Read path: weekly summaries, drill-down and flag counts.

Only committed issue events and flags are read; nothing here writes.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ops_reporting.contracts import FlagCountRow, FlagType, WeeklyDetailRow, WeeklySummaryRow
from ops_reporting.dates import QueryValidationError, default_week_range, require_iso_date, week_start
from ops_reporting.models import (
    DataQualityFlag,
    DimIssueType,
    DimLot,
    DimProductionLine,
    FactIssueEvent,
    FactProductionLog,
    FactShippingLog,
    RawDate,
)

DEFAULT_WEEKS_BACK = 4


@dataclass(frozen=True)
class WeekRange:
    start: date
    end: date


def build_week_range(
    start_raw: str | None, end_raw: str | None, today: date | None = None
) -> WeekRange:
    """Validate an inclusive week range from query-string values.

    Missing bounds fall back to the last ``DEFAULT_WEEKS_BACK`` weeks. The
    start is snapped to its Monday so a mid-week start keeps its own week.
    """
    default_start, default_end = default_week_range(DEFAULT_WEEKS_BACK, today)
    start = require_iso_date(start_raw, "start_week") if start_raw is not None else default_start
    end = require_iso_date(end_raw, "end_week") if end_raw is not None else default_end
    start = week_start(start)
    if start > end:
        raise QueryValidationError("start_week must not be after end_week", field="start_week")
    return WeekRange(start=start, end=end)


class ReportReader:
    def __init__(self, session: Session):
        self._session = session

    def weekly_summary(self, week_range: WeekRange) -> list[WeeklySummaryRow]:
        total = func.sum(FactIssueEvent.qty_impacted).label("total_defects")
        stmt = (
            select(
                FactIssueEvent.week_start_date,
                DimProductionLine.line_name,
                DimIssueType.issue_label,
                total,
            )
            .join(
                DimProductionLine,
                DimProductionLine.production_line_key == FactIssueEvent.production_line_key,
            )
            .join(DimIssueType, DimIssueType.issue_type_key == FactIssueEvent.issue_type_key)
            .where(
                FactIssueEvent.week_start_date.between(week_range.start, week_range.end),
                FactIssueEvent.qty_impacted > 0,
            )
            .group_by(
                FactIssueEvent.week_start_date,
                DimProductionLine.line_name,
                DimIssueType.issue_label,
            )
            .order_by(
                FactIssueEvent.week_start_date.asc(),
                DimProductionLine.line_name.asc(),
                total.desc(),
            )
        )
        return [
            WeeklySummaryRow(
                week_start_date=week,
                production_line=line_name,
                defect_type=label,
                total_defects=int(total_defects),
            )
            for week, line_name, label, total_defects in self._session.execute(stmt)
        ]

    def weekly_details(
        self, week_start_date: date, line_name: str, defect_type: str
    ) -> list[WeeklyDetailRow]:
        """Every event behind one summary cell, zero-quantity events included."""
        if not line_name or not defect_type:
            raise QueryValidationError("line_name and defect_type are required")

        stmt = (
            select(FactIssueEvent, DimProductionLine, DimIssueType, DimLot, FactProductionLog, FactShippingLog)
            .join(
                DimProductionLine,
                DimProductionLine.production_line_key == FactIssueEvent.production_line_key,
            )
            .join(DimIssueType, DimIssueType.issue_type_key == FactIssueEvent.issue_type_key)
            .join(DimLot, DimLot.lot_key == FactIssueEvent.lot_key)
            .outerjoin(
                FactProductionLog,
                FactProductionLog.production_log_key == FactIssueEvent.production_log_key,
            )
            .outerjoin(
                FactShippingLog,
                FactShippingLog.shipping_log_key == FactIssueEvent.shipping_log_key,
            )
            .where(
                FactIssueEvent.week_start_date == week_start_date,
                DimProductionLine.line_name == line_name,
                DimIssueType.issue_label == defect_type,
            )
            .order_by(
                FactIssueEvent.event_date,
                DimLot.lot_id_norm,
                FactIssueEvent.issue_event_key,
            )
        )

        rows = []
        for event, line, issue_type, lot, prod, ship in self._session.execute(stmt):
            rows.append(
                WeeklyDetailRow(
                    issue_event_key=event.issue_event_key,
                    week_start_date=event.week_start_date,
                    event_source=event.event_source,
                    event_date=event.event_date,
                    line_name=line.line_name,
                    defect_type=issue_type.issue_label,
                    qty_impacted=event.qty_impacted,
                    lot_id_norm=lot.lot_id_norm,
                    production_log_key=event.production_log_key,
                    shipping_log_key=event.shipping_log_key,
                    shift=prod.shift if prod else None,
                    downtime_minutes=prod.downtime_minutes if prod else None,
                    primary_issue=prod.primary_issue if prod else None,
                    supervisor_notes=prod.supervisor_notes if prod else None,
                    ship_status=ship.ship_status if ship else None,
                    hold_reason=ship.hold_reason if ship else None,
                    qty_shipped=ship.qty_shipped if ship else None,
                    shipping_notes=ship.shipping_notes if ship else None,
                )
            )
        return rows

    def flag_counts(self, week_range: WeekRange) -> list[FlagCountRow]:
        """Flags per (week of the originating record's date, flag type).

        Flags whose source row has no date (missing run/ship date) have no
        week and are not counted.
        """
        flag_date = func.coalesce(
            FactProductionLog.run_date, FactShippingLog.ship_date, type_=RawDate()
        )
        last_day = week_range.end + timedelta(days=6)
        stmt = (
            select(DataQualityFlag.flag_type, flag_date)
            .outerjoin(
                FactProductionLog,
                FactProductionLog.production_log_key == DataQualityFlag.production_log_key,
            )
            .outerjoin(
                FactShippingLog,
                FactShippingLog.shipping_log_key == DataQualityFlag.shipping_log_key,
            )
            .where(flag_date.between(week_range.start, last_day))
        )

        counts: Counter = Counter()
        for flag_type, day in self._session.execute(stmt):
            # unparseable stored dates come back as text and have no week
            if not isinstance(day, date):
                continue
            counts[(week_start(day), flag_type)] += 1

        return [
            FlagCountRow(week_start_date=week, flag_type=FlagType(flag_type), flagged_count=n)
            for (week, flag_type), n in sorted(counts.items())
        ]
