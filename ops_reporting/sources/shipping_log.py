from ops_reporting.classifier import (
    RecordContext,
    Rejection,
    Rule,
    RuleServices,
    check_lot,
    incomplete,
    is_blank,
)
from ops_reporting.contracts import EventSource, SourceKind
from ops_reporting.dates import coerce_date, week_start
from ops_reporting.models import FactShippingLog
from ops_reporting.projector import derive_shipping_qty
from ops_reporting.sources.base import LogSource


def check_ship_date_present(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    if ctx.record.ship_date is None:
        return incomplete("Missing ship_date", "ship_date")
    return None


# Shipping rows carry no line; it is read from the ledger, never written.
def infer_line(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.production_line_key = services.ledger.lookup(ctx.lot_key)
    if ctx.production_line_key is None:
        return incomplete("Missing production line for lot assignment", "production_line")
    return None


def check_hold_reason(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    if is_blank(ctx.record.hold_reason):
        return incomplete("Missing defect type (hold_reason)", "hold_reason")
    return None


def check_issue_type(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.issue_type_key = services.dimensions.ensure_issue_type(
        EventSource.SHIPPING, ctx.record.hold_reason
    )
    if ctx.issue_type_key is None:
        return incomplete("Invalid defect type label", "hold_reason")
    return None


def compute_quantity(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.qty_impacted = derive_shipping_qty(services.config)
    return None


def check_ship_date(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.event_date = coerce_date(ctx.record.ship_date)
    if ctx.event_date is None:
        return incomplete("Invalid ship_date", "ship_date")
    return None


def assign_week(ctx: RecordContext, services: RuleServices) -> Rejection | None:
    ctx.week_start_date = week_start(ctx.event_date)
    return None


SHIPPING_RULES = (
    Rule("required_fields", check_ship_date_present),
    Rule("lot_resolution", check_lot),
    Rule("line_inference", infer_line),
    Rule("defect_label", check_hold_reason),
    Rule("issue_type", check_issue_type),
    Rule("quantity", compute_quantity),
    Rule("ship_date", check_ship_date),
    Rule("week_start", assign_week),
)


class ShippingLogSource(LogSource):
    @property
    def source_kind(self) -> SourceKind:
        return SourceKind.SHIPPING_LOG

    @property
    def event_source(self) -> EventSource:
        return EventSource.SHIPPING

    @property
    def model(self):
        return FactShippingLog

    @property
    def key_column(self) -> str:
        return "shipping_log_key"

    @property
    def rules(self):
        return SHIPPING_RULES
