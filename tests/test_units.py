from datetime import date, datetime, timedelta, timezone

import pytest

from ops_reporting.dates import (
    QueryValidationError,
    coerce_date,
    default_week_range,
    parse_iso_date,
    require_iso_date,
    week_start,
)
from ops_reporting.db import IngestConfig, resolve_batch_size
from ops_reporting.normalize import normalize_label, normalize_lot_id
from ops_reporting.projector import derive_production_qty, derive_shipping_qty


@pytest.mark.parametrize("raw", ["LOT 1001", "lot-1001", " LOT-1001 ", "lot_1001", "Lot.1001"])
def test_normalize_lot_id_equivalent_spellings(raw):
    assert normalize_lot_id(raw) == "LOT1001"


@pytest.mark.parametrize("raw", [None, "", "   ", "???", "--_--"])
def test_normalize_lot_id_meaningless_is_none(raw):
    assert normalize_lot_id(raw) is None


def test_normalize_lot_id_keeps_zero_distinct_from_letter_o():
    assert normalize_lot_id("L0T_2001") == "L0T2001"
    assert normalize_lot_id("L0T_2001") != normalize_lot_id("LOT 2001")


def test_normalize_label_case_and_whitespace():
    assert normalize_label(" sCrAtCh  ") == normalize_label("Scratch") == "scratch"
    assert normalize_label("Label  mismatch") == "label mismatch"
    assert normalize_label("label-mismatch") == "label mismatch"


@pytest.mark.parametrize("raw", [None, "", "  \t ", "!!!"])
def test_normalize_label_empty_is_none(raw):
    assert normalize_label(raw) is None


def test_normalizers_are_total_over_non_strings():
    assert normalize_label(42) == "42"
    assert normalize_lot_id(1001) == "1001"
    assert normalize_lot_id(b"lot-7") == "LOT7"


def test_week_start_known_wednesday():
    assert week_start(date(2026, 2, 4)) == date(2026, 2, 2)


def test_week_start_whole_week_buckets_together():
    for offset in range(7):
        assert week_start(date(2026, 2, 2) + timedelta(days=offset)) == date(2026, 2, 2)
    assert week_start(date(2026, 2, 9)) == date(2026, 2, 9)


def test_week_start_idempotent_and_bounded():
    day = date(2026, 3, 1)
    ws = week_start(day)
    assert week_start(ws) == ws
    assert 0 <= (day - ws).days <= 6
    assert ws.weekday() == 0


def test_parse_iso_date_strict():
    assert parse_iso_date("2026-02-04") == date(2026, 2, 4)
    assert parse_iso_date("2026-02-30") is None
    assert parse_iso_date("02/04/2026") is None
    assert parse_iso_date("2026-2-4") is None
    assert parse_iso_date(None) is None


def test_require_iso_date_raises_client_error():
    with pytest.raises(QueryValidationError) as exc_info:
        require_iso_date("nope", "start_week")
    assert exc_info.value.field == "start_week"


def test_coerce_date_uses_utc_for_aware_datetimes():
    late_evening = datetime(2026, 2, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert coerce_date(late_evening) == date(2026, 2, 2)
    assert coerce_date(date(2026, 2, 1)) == date(2026, 2, 1)
    assert coerce_date("bad") is None


def test_default_week_range_spans_four_weeks():
    start, end = default_week_range(4, today=date(2026, 2, 4))
    assert end == date(2026, 2, 2)
    assert start == date(2026, 1, 12)


@pytest.mark.parametrize(
    "raw, expected",
    [(10, 10), ("25", 25), (3.0, 3), (0, 500), (-4, 500), ("abc", 500), (None, 500), (True, 500), (2.5, 500)],
)
def test_resolve_batch_size(raw, expected):
    assert resolve_batch_size(raw, 500) == expected


def test_quantity_policy_defaults():
    config = IngestConfig()
    assert derive_production_qty(True, config) == 1
    assert derive_production_qty(False, config) == 0
    assert derive_production_qty(None, config) == 1
    assert derive_shipping_qty(config) == 1


def test_quantity_policy_overridable():
    config = IngestConfig(production_default_qty=0, shipping_qty=2)
    assert derive_production_qty(None, config) == 0
    assert derive_shipping_qty(config) == 2
