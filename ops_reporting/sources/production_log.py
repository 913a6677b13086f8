from ops_reporting.classifier import (
    RecordContext,
    Rejection,
    Rule,
    RuleServices,
    check_lot,
    incomplete,
    is_blank,
)
from ops_reporting.contracts import EventSource, FlagType, SourceKind
from ops_reporting.dates import coerce_date, week_start
from ops_reporting.ledger import AssignmentConflict
from ops_reporting.models import FactProductionLog
from ops_reporting.projector import derive_production_qty
from ops_reporting.sources.base import LogSource


def check_required_fields(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    record = ctx.record
    line_key = record.production_line_key
    if line_key is None and not is_blank(record.production_line_raw):
        line_key = services.dimensions.ensure_production_line(record.production_line_raw)
        if line_key is not None:
            record.production_line_key = line_key

    missing = []
    if record.run_date is None:
        missing.append("run_date")
    if line_key is None:
        missing.append("production_line")
    if missing:
        return incomplete(f"Missing {' and '.join(missing)}", *missing)

    ctx.production_line_key = line_key
    return None


def check_defect_label(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    if is_blank(ctx.record.primary_issue):
        return incomplete("Missing defect type (primary_issue)", "primary_issue")
    return None


def check_issue_type(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.issue_type_key = services.dimensions.ensure_issue_type(
        EventSource.PRODUCTION, ctx.record.primary_issue
    )
    if ctx.issue_type_key is None:
        return incomplete("Invalid defect type label", "primary_issue")
    return None


def check_line_assignment(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    outcome = services.ledger.check_and_assign(ctx.lot_key, ctx.production_line_key)
    if isinstance(outcome, AssignmentConflict):
        return Rejection(
            flag_type=FlagType.CONFLICT,
            reason=(
                f"Lot ID mapped to multiple production lines: lot {ctx.lot_id_norm} is "
                f"assigned to line {outcome.existing_line_key}, record claims line "
                f"{outcome.candidate_line_key}"
            ),
        )
    return None


def compute_quantity(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.qty_impacted = derive_production_qty(ctx.record.line_issue_flag, services.config)
    return None


def check_run_date(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.event_date = coerce_date(ctx.record.run_date)
    if ctx.event_date is None:
        return incomplete("Invalid run_date", "run_date")
    return None


def assign_week(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.week_start_date = week_start(ctx.event_date)
    return None


PRODUCTION_RULES = (
    Rule("required_fields", check_required_fields),
    Rule("lot_resolution", check_lot),
    Rule("defect_label", check_defect_label),
    Rule("issue_type", check_issue_type),
    Rule("line_assignment", check_line_assignment),
    Rule("quantity", compute_quantity),
    Rule("run_date", check_run_date),
    Rule("week_start", assign_week),
)


class ProductionLogSource(LogSource):
    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.PRODUCTION_LOG

    @property
    def event_source(self) -> EventSource:
        return EventSource.PRODUCTION

    @property
    def model(self):
        return FactProductionLog

    @property
    def key_column(self) -> str:
        return "production_log_key"

    @property
    def rules(self):
        return PRODUCTION_RULES
