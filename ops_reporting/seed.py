from datetime import date
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ops_reporting.db import build_session_factory
from ops_reporting.models import (
    Base,
    DimLot,
    DimPart,
    DimProductionLine,
    FactProductionLog,
    FactShippingLog,
)
from ops_reporting.normalize import normalize_label, normalize_lot_id

LINES = ["Line 1", "Line 3"]
PARTS = ["PN-100", "PN-200"]
# (raw lot id, part number)
LOTS = [
    ("LOT 1001", "PN-100"),
    (" lot-1002 ", "PN-100"),
    ("L0T_2001", "PN-200"),
    ("LOT__2002", "PN-200"),
]

# run_date, shift, line (raw), lot (raw), downtime, line_issue_flag, primary_issue, notes
PRODUCTION_LOGS = [
    (date(2026, 1, 20), "A", " LINE 1 ", " lot 1002 ", 10, True, "Scratch", "Minor scratches observed"),
    (date(2026, 1, 27), "B", "Line 1", "LOT-1002", 5, True, "Leak", "Small leak at seal"),
    (date(2026, 2, 3), "A", "line 1", "LOT 1002", 0, False, "Leak", "No significant issue"),
    (date(2026, 2, 10), "B", "Line 3", "L0T_2001", 20, True, "Scratch", "Surface defect trend"),
    (date(2026, 2, 4), "A", "Line 1", "LOT-9999", 5, True, "Scratch", "Lot ID missing/unmapped"),
    (date(2026, 1, 21), "A", "Line 1", "LOT 1001", 0, True, "Leak", "Lot seen on Line 1"),
    (date(2026, 1, 22), "B", "Line 3", "LOT-1001", 8, True, "Leak", "Same lot seen on Line 3 too"),
    (date(2026, 1, 28), "A", "Line 3", "LOT__2002", 1, True, None, "Defect label missing"),
]

# ship_date, lot (raw), order, customer, state, qty, status, hold_reason, notes
SHIPPING_LOGS = [
    (date(2026, 1, 22), "LOT-1002", "SO-5001", "Acme Corp", "IN", 980, "SHIPPED", "Label mismatch", "Relabeled before ship"),
    (date(2026, 2, 5), "L0T_2001", "SO-5002", "Beta Supply", "IL", 870, "HOLD", "Damaged box", "Repack required"),
    (date(2026, 2, 6), "LOT 2002", "SO-5003", "Gamma LLC", "WI", 695, "HOLD", None, "Hold reason not recorded"),
    (date(2026, 2, 7), "LOT-8888", "SO-5004", "Delta Inc", "MI", 100, "HOLD", "Label mismatch", "Lot missing/unmapped"),
]


def _count(session: Session, model) -> int:
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def seed_master_data(session: Session, counts: Dict[str, int]) -> None:
    for name in LINES:
        norm = normalize_label(name)
        existing = session.query(DimProductionLine).filter_by(line_name_norm=norm).first()
        if not existing:
            session.add(DimProductionLine(line_name=name, line_name_norm=norm))
            session.flush()
            counts["dim_production_line"] += 1

    for part_number in PARTS:
        existing = session.query(DimPart).filter_by(part_number=part_number).first()
        if not existing:
            session.add(DimPart(part_number=part_number))
            session.flush()
            counts["dim_part"] += 1

    for raw, part_number in LOTS:
        norm = normalize_lot_id(raw)
        existing = session.query(DimLot).filter_by(lot_id_norm=norm).first()
        if not existing:
            part = session.query(DimPart).filter_by(part_number=part_number).first()
            session.add(DimLot(lot_id_norm=norm, part_key=part.part_key if part else None))
            session.flush()
            counts["dim_lot"] += 1


def seed_raw_logs(session: Session, counts: Dict[str, int]) -> None:
    # Raw logs have no natural key; only seed an empty table.
    if _count(session, FactProductionLog) == 0:
        for run_date, shift, line_raw, lot_raw, downtime, issue_flag, issue, notes in PRODUCTION_LOGS:
            session.add(
                FactProductionLog(
                    run_date=run_date,
                    shift=shift,
                    production_line_raw=line_raw,
                    lot_id_raw=lot_raw,
                    downtime_minutes=downtime,
                    line_issue_flag=issue_flag,
                    primary_issue=issue,
                    supervisor_notes=notes,
                )
            )
            counts["fact_production_log"] += 1

    if _count(session, FactShippingLog) == 0:
        for ship_date, lot_raw, order, customer, state, qty, status, hold, notes in SHIPPING_LOGS:
            session.add(
                FactShippingLog(
                    ship_date=ship_date,
                    lot_id_raw=lot_raw,
                    sales_order_number=order,
                    customer=customer,
                    destination_state=state,
                    qty_shipped=qty,
                    ship_status=status,
                    hold_reason=hold,
                    shipping_notes=notes,
                )
            )
            counts["fact_shipping_log"] += 1
    session.flush()


def run_seed(engine) -> Dict[str, int]:
    """Run idempotent seed using given engine. Returns counts of inserted rows."""
    Base.metadata.create_all(bind=engine)
    SessionFactory = build_session_factory(engine)
    counts: Dict[str, int] = {
        "dim_production_line": 0,
        "dim_part": 0,
        "dim_lot": 0,
        "fact_production_log": 0,
        "fact_shipping_log": 0,
    }

    with SessionFactory() as session:
        seed_master_data(session, counts)
        seed_raw_logs(session, counts)
        session.commit()

    return counts


if __name__ == "__main__":
    from ops_reporting.db import build_engine, load_db_config

    config = load_db_config()
    engine = build_engine(config)
    counts = run_seed(engine)
    print(counts)
