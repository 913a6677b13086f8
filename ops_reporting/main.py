from typing import Generator, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from sqlalchemy.orm import Session

from ops_reporting.contracts import (
    FlagCountResponse,
    ProcessLogsResponse,
    WeeklyDetailResponse,
    WeeklySummaryResponse,
)
from ops_reporting.dates import QueryValidationError, require_iso_date
from ops_reporting.db import (
    build_engine,
    build_session_factory,
    load_db_config,
    load_ingest_config,
    resolve_batch_size,
)
from ops_reporting.logging_config import configure_logging
from ops_reporting.models import Base
from ops_reporting.orchestration import BatchProcessingError, IngestOrchestrator
from ops_reporting.registry import build_default_registry
from ops_reporting.report_repo import ReportReader, build_week_range

configure_logging()

# --- DB setup ---
_config = load_db_config()
_engine = build_engine(_config)
_session_factory = build_session_factory(_engine)
Base.metadata.create_all(bind=_engine)

# --- Orchestrator ---
_ingest_config = load_ingest_config()
_orchestrator = IngestOrchestrator(build_default_registry(), _ingest_config)

# --- FastAPI app ---
app = FastAPI(title="Ops Weekly Issue Summary API")


def get_session() -> Generator[Session, None, None]:
    with _session_factory() as session:
        yield session


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/jobs/process-logs", response_model=ProcessLogsResponse)
def process_logs(payload: Optional[dict] = Body(None), session: Session = Depends(get_session)):
    batch_size = resolve_batch_size((payload or {}).get("batch_size"), _ingest_config.batch_size)
    try:
        results = _orchestrator.process_all_logs(session, batch_size)
    except BatchProcessingError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return ProcessLogsResponse(batch_size=batch_size, **results)


@app.get("/reports/weekly-summary", response_model=WeeklySummaryResponse)
def weekly_summary(
    start_week: Optional[str] = Query(None),
    end_week: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    try:
        week_range = build_week_range(start_week, end_week)
    except QueryValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    rows = ReportReader(session).weekly_summary(week_range)
    return WeeklySummaryResponse(start_week=week_range.start, end_week=week_range.end, rows=rows)


@app.get("/reports/weekly-details", response_model=WeeklyDetailResponse)
def weekly_details(
    week_start: Optional[str] = Query(None),
    line_name: Optional[str] = Query(None),
    defect_type: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    if not week_start or not line_name or not defect_type:
        raise HTTPException(
            status_code=400, detail="week_start, line_name, and defect_type are required"
        )
    try:
        week = require_iso_date(week_start, "week_start")
    except QueryValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    rows = ReportReader(session).weekly_details(week, line_name, defect_type)
    return WeeklyDetailResponse(week_start=week, line_name=line_name, defect_type=defect_type, rows=rows)


@app.get("/reports/flags", response_model=FlagCountResponse)
def flag_counts(
    start_week: Optional[str] = Query(None),
    end_week: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    try:
        week_range = build_week_range(start_week, end_week)
    except QueryValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    rows = ReportReader(session).flag_counts(week_range)
    return FlagCountResponse(start_week=week_range.start, end_week=week_range.end, rows=rows)
