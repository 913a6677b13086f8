from ops_reporting.contracts import EventSource
from ops_reporting.loaders.dimension_loader import DimensionUpserter
from ops_reporting.models import DimIssueType, DimProductionLine


def test_issue_type_upsert_is_idempotent_by_normalized_label(session):
    dims = DimensionUpserter(session)
    first = dims.ensure_issue_type(EventSource.PRODUCTION, "Scratch")
    second = dims.ensure_issue_type(EventSource.PRODUCTION, "  sCrAtCh ")
    assert first == second

    rows = session.query(DimIssueType).all()
    assert len(rows) == 1
    # first-seen spelling is kept
    assert rows[0].issue_label == "Scratch"
    assert rows[0].issue_label_norm == "scratch"


def test_issue_type_distinct_per_source(session):
    dims = DimensionUpserter(session)
    prod = dims.ensure_issue_type(EventSource.PRODUCTION, "Late")
    ship = dims.ensure_issue_type(EventSource.SHIPPING, "late")
    assert prod != ship
    assert session.query(DimIssueType).count() == 2


def test_invalid_labels_return_none(session):
    dims = DimensionUpserter(session)
    assert dims.ensure_issue_type(EventSource.SHIPPING, "   ") is None
    assert dims.ensure_production_line("???") is None
    assert session.query(DimIssueType).count() == 0
    assert session.query(DimProductionLine).count() == 0


def test_production_line_matches_existing_dimension(session, master_data):
    dims = DimensionUpserter(session)
    assert dims.ensure_production_line(" LINE 1 ") == master_data["line1"]

    new_key = dims.ensure_production_line("Line 7")
    assert new_key not in (master_data["line1"], master_data["line2"])
    assert dims.ensure_production_line("line-7") == new_key
    line = session.get(DimProductionLine, new_key)
    assert line.line_name == "Line 7"
