"""One-shot ingestion run against the configured database.

    python -m ops_reporting.crons.process_logs [batch_size]

Intended to be triggered externally (cron, CI job, operator); there is no
built-in scheduler.
"""

import sys

from ops_reporting.db import build_engine, build_session_factory, load_db_config, load_ingest_config
from ops_reporting.db import resolve_batch_size
from ops_reporting.logging_config import configure_logging
from ops_reporting.models import Base
from ops_reporting.orchestration import IngestOrchestrator
from ops_reporting.registry import build_default_registry


def run_once(session_factory, batch_size=None) -> dict:
    ingest_config = load_ingest_config()
    orchestrator = IngestOrchestrator(build_default_registry(), ingest_config)
    size = resolve_batch_size(batch_size, ingest_config.batch_size)

    with session_factory() as session:
        results = orchestrator.process_all_logs(session, size)

    return {
        "batch_size": size,
        **{name: result.model_dump() for name, result in results.items()},
    }


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    config = load_db_config()
    engine = build_engine(config)
    Base.metadata.create_all(bind=engine)
    session_factory = build_session_factory(engine)

    summary = run_once(session_factory, argv[0] if argv else None)
    print("CRON SUMMARY:", summary)


if __name__ == "__main__":
    main()
