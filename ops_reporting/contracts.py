from datetime import date
from enum import Enum

from pydantic import BaseModel


class EventSource(str, Enum):
    PRODUCTION = "PRODUCTION"
    SHIPPING = "SHIPPING"


class SourceKind(str, Enum):
    PRODUCTION_LOG = "PRODUCTION_LOG"
    SHIPPING_LOG = "SHIPPING_LOG"


class FlagType(str, Enum):
    UNMATCHED_LOT_ID = "UNMATCHED_LOT_ID"
    CONFLICT = "CONFLICT"
    INCOMPLETE_DATA = "INCOMPLETE_DATA"


class ProcessResult(BaseModel):
    processed: int = 0
    flagged: int = 0


class ProcessLogsResponse(BaseModel):
    batch_size: int
    production: ProcessResult
    shipping: ProcessResult


class CanonicalIssueEvent(BaseModel):
    event_source: EventSource
    event_date: date
    week_start_date: date
    production_line_key: int
    lot_key: int
    issue_type_key: int
    qty_impacted: int
    production_log_key: int | None = None
    shipping_log_key: int | None = None


class WeeklySummaryRow(BaseModel):
    week_start_date: date
    production_line: str
    defect_type: str
    total_defects: int


class WeeklyDetailRow(BaseModel):
    issue_event_key: int
    week_start_date: date
    event_source: EventSource
    event_date: date
    line_name: str
    defect_type: str
    qty_impacted: int
    lot_id_norm: str
    production_log_key: int | None = None
    shipping_log_key: int | None = None
    shift: str | None = None
    downtime_minutes: int | None = None
    primary_issue: str | None = None
    supervisor_notes: str | None = None
    ship_status: str | None = None
    hold_reason: str | None = None
    qty_shipped: int | None = None
    shipping_notes: str | None = None


class FlagCountRow(BaseModel):
    week_start_date: date
    flag_type: FlagType
    flagged_count: int


class WeeklySummaryResponse(BaseModel):
    start_week: date
    end_week: date
    rows: list[WeeklySummaryRow]


class WeeklyDetailResponse(BaseModel):
    week_start: date
    line_name: str
    defect_type: str
    rows: list[WeeklyDetailRow]


class FlagCountResponse(BaseModel):
    start_week: date
    end_week: date
    rows: list[FlagCountRow]
