from ops_reporting.classifier import RecordContext
from ops_reporting.contracts import CanonicalIssueEvent, EventSource
from ops_reporting.db import IngestConfig


def derive_production_qty(line_issue_flag: bool | None, config: IngestConfig) -> int:
    if line_issue_flag is True:
        return config.production_issue_qty
    if line_issue_flag is False:
        return config.production_no_issue_qty
    return config.production_default_qty


def derive_shipping_qty(config: IngestConfig) -> int:
    return config.shipping_qty


def project_issue_event(
    event_source: EventSource, ctx: RecordContext, link_fields: dict
) -> CanonicalIssueEvent:
    """Build the report-ready fact for an accepted record.

    ``link_fields`` holds exactly one of ``production_log_key`` /
    ``shipping_log_key``.
    """
    if len(link_fields) != 1:
        raise ValueError(f"expected exactly one source link, got {sorted(link_fields)}")
    return CanonicalIssueEvent(
        event_source=event_source,
        event_date=ctx.event_date,
        week_start_date=ctx.week_start_date,
        production_line_key=ctx.production_line_key,
        lot_key=ctx.lot_key,
        issue_type_key=ctx.issue_type_key,
        qty_impacted=ctx.qty_impacted,
        **link_fields,
    )
