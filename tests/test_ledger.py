from ops_reporting.ledger import AssignmentConflict, AssignmentOk, LineAssignmentLedger
from ops_reporting.loaders.upsert import insert_if_absent
from ops_reporting.models import LotLineAssignment


def test_first_writer_wins(session, master_data):
    ledger = LineAssignmentLedger(session)
    lot, line_a, line_b = master_data["lot100"], master_data["line1"], master_data["line2"]

    assert ledger.check_and_assign(lot, line_a) == AssignmentOk(production_line_key=line_a, created=True)
    assert ledger.check_and_assign(lot, line_b) == AssignmentConflict(
        existing_line_key=line_a, candidate_line_key=line_b
    )
    assert ledger.check_and_assign(lot, line_a) == AssignmentOk(production_line_key=line_a, created=False)

    rows = session.query(LotLineAssignment).filter_by(lot_key=lot).all()
    assert len(rows) == 1
    assert rows[0].production_line_key == line_a


def test_lookup_unassigned_lot(session, master_data):
    ledger = LineAssignmentLedger(session)
    assert ledger.lookup(master_data["lot200"]) is None
    ledger.check_and_assign(master_data["lot200"], master_data["line2"])
    assert ledger.lookup(master_data["lot200"]) == master_data["line2"]


def test_insert_if_absent_keeps_existing_row(session, master_data):
    lot = master_data["lot100"]
    session.add(LotLineAssignment(lot_key=lot, production_line_key=master_data["line2"]))
    session.flush()

    inserted = insert_if_absent(
        session,
        LotLineAssignment,
        {"lot_key": lot, "production_line_key": master_data["line1"]},
        ["lot_key"],
    )
    assert inserted is False
    assert LineAssignmentLedger(session).lookup(lot) == master_data["line2"]
