from ops_reporting.contracts import ProcessResult
from ops_reporting.orchestration import IngestOrchestrator
from ops_reporting.registry import build_default_registry
from ops_reporting.seed import run_seed


def test_seed_is_idempotent(engine):
    first = run_seed(engine)
    assert first == {
        "dim_production_line": 2,
        "dim_part": 2,
        "dim_lot": 4,
        "fact_production_log": 8,
        "fact_shipping_log": 4,
    }
    second = run_seed(engine)
    assert all(v == 0 for v in second.values())


def test_seeded_logs_hit_every_flag_type(engine, session):
    run_seed(engine)
    results = IngestOrchestrator(build_default_registry()).process_all_logs(session)
    assert results["production"] == ProcessResult(processed=8, flagged=3)
    assert results["shipping"] == ProcessResult(processed=4, flagged=2)
