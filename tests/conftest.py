import os
from datetime import date

# app.main builds its engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ops_reporting.models import Base, DimLot, DimProductionLine, FactProductionLog, FactShippingLog
from ops_reporting.orchestration import IngestOrchestrator
from ops_reporting.registry import build_default_registry


@pytest.fixture(scope="function")
def engine():
    eng = create_engine(
        "sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture(scope="function")
def session(session_factory):
    with session_factory() as sess:
        yield sess


@pytest.fixture(scope="function")
def master_data(session):
    line1 = DimProductionLine(line_name="Line 1", line_name_norm="line 1")
    line2 = DimProductionLine(line_name="Line 2", line_name_norm="line 2")
    lot100 = DimLot(lot_id_norm="LOT100")
    lot200 = DimLot(lot_id_norm="LOT200")
    session.add_all([line1, line2, lot100, lot200])
    session.commit()
    return {
        "line1": line1.production_line_key,
        "line2": line2.production_line_key,
        "lot100": lot100.lot_key,
        "lot200": lot200.lot_key,
    }


@pytest.fixture
def add_production_log(session):
    def _add(**fields):
        row = FactProductionLog(**fields)
        session.add(row)
        session.commit()
        return row.production_log_key

    return _add


@pytest.fixture
def add_shipping_log(session):
    def _add(**fields):
        row = FactShippingLog(**fields)
        session.add(row)
        session.commit()
        return row.shipping_log_key

    return _add


@pytest.fixture
def orchestrator():
    return IngestOrchestrator(build_default_registry())


@pytest.fixture
def mixed_logs(master_data, add_production_log, add_shipping_log):
    """Raw rows covering every accept and flag path across one week."""
    line1, line2 = master_data["line1"], master_data["line2"]
    production = [
        dict(run_date=date(2026, 2, 2), production_line_key=line1, lot_id_raw="LOT-100", primary_issue="Scratch", line_issue_flag=True),
        dict(run_date=date(2026, 2, 2), production_line_key=line1, lot_id_raw=None, primary_issue="Scratch", line_issue_flag=True),
        dict(run_date=date(2026, 2, 3), production_line_key=line1, lot_id_raw="???", primary_issue="Scratch", line_issue_flag=True),
        dict(run_date=date(2026, 2, 4), production_line_key=line2, lot_id_raw="LOT-100", primary_issue="Scratch", line_issue_flag=True),
        dict(run_date=date(2026, 2, 5), production_line_key=line1, lot_id_raw="LOT-200", primary_issue=None, line_issue_flag=True),
        dict(run_date=date(2026, 2, 6), production_line_key=line1, lot_id_raw="LOT-200", primary_issue="Dent", line_issue_flag=False),
        dict(run_date=date(2026, 2, 7), production_line_key=line1, lot_id_raw="LOT-200", primary_issue="  sCrAtCh  ", line_issue_flag=True),
    ]
    shipping = [
        dict(ship_date=date(2026, 2, 2), lot_id_raw="LOT-100", hold_reason="Late", qty_shipped=10),
        dict(ship_date=date(2026, 2, 3), lot_id_raw="LOT-999", hold_reason="Late", qty_shipped=5),
        dict(ship_date=date(2026, 2, 3), lot_id_raw="LOT-200", hold_reason=None, qty_shipped=5),
    ]
    return {
        "production": [add_production_log(**p) for p in production],
        "shipping": [add_shipping_log(**s) for s in shipping],
    }
