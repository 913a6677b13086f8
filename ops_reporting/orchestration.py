import logging

from sqlalchemy.orm import Session

from ops_reporting.classifier import RuleServices, classify
from ops_reporting.contracts import ProcessResult, SourceKind
from ops_reporting.db import IngestConfig, resolve_batch_size
from ops_reporting.ledger import LineAssignmentLedger
from ops_reporting.loaders.dimension_loader import DimensionUpserter
from ops_reporting.loaders.fact_loader import FlagLoader, IssueEventLoader
from ops_reporting.lot_repo import LotResolver
from ops_reporting.registry import SourceRegistry

logger = logging.getLogger(__name__)


class BatchProcessingError(Exception):
    def __init__(self, source_kind: str):
        super().__init__(f"Batch processing failed for {source_kind}; batch rolled back")
        self.source_kind = source_kind


class IngestOrchestrator:
    """Drives classification of unprocessed raw log rows, one source at a time.

    Each call to ``process_source`` is a single transaction: every event,
    flag, dimension row, ledger row and backfill in the batch commits
    together or not at all.
    """

    def __init__(self, registry: SourceRegistry, config: IngestConfig | None = None):
        self._registry = registry
        self._config = config or IngestConfig()

    def process_source(
        self, session: Session, source_kind: SourceKind | str, batch_size=None
    ) -> ProcessResult:
        source = self._registry.resolve(source_kind)
        kind = source.source_kind.value
        size = resolve_batch_size(batch_size, self._config.batch_size)

        services = RuleServices(
            resolver=LotResolver(session),
            ledger=LineAssignmentLedger(session),
            dimensions=DimensionUpserter(session),
            config=self._config,
        )
        events = IssueEventLoader(session)
        flags = FlagLoader(session)
        result = ProcessResult()

        try:
            records = source.select_unprocessed(session, size)
            logger.info("processing %s batch: %d record(s), batch_size=%d", kind, len(records), size)

            for record in records:
                ctx = source.build_context(record)
                rejection = classify(ctx, source.rules, services)
                if rejection is None:
                    events.insert(source.project(ctx))
                else:
                    flags.insert(
                        source.source_kind,
                        rejection,
                        source.link_fields(record),
                        lot_id_raw=ctx.lot_id_raw,
                        lot_id_norm=ctx.lot_id_norm,
                    )
                    result.flagged += 1
                    logger.debug(
                        "flagged %s %s=%s: %s (%s)",
                        rejection.flag_type.value,
                        source.key_column,
                        source.record_key(record),
                        rejection.reason,
                        ctx.rejected_by,
                    )
                result.processed += 1

            session.commit()
        except Exception as exc:
            session.rollback()
            logger.exception("%s batch failed, rolled back", kind)
            raise BatchProcessingError(kind) from exc

        logger.info("%s batch committed: processed=%d flagged=%d", kind, result.processed, result.flagged)
        return result

    def process_production_logs(self, session: Session, batch_size=None) -> ProcessResult:
        return self.process_source(session, SourceKind.PRODUCTION_LOG, batch_size)

    def process_shipping_logs(self, session: Session, batch_size=None) -> ProcessResult:
        return self.process_source(session, SourceKind.SHIPPING_LOG, batch_size)

    def process_all_logs(self, session: Session, batch_size=None) -> dict[str, ProcessResult]:
        """Run every registered source in order, each in its own transaction."""
        return {
            self._result_name(source.source_kind): self.process_source(
                session, source.source_kind, batch_size
            )
            for source in self._registry.sources()
        }

    @staticmethod
    def _result_name(source_kind: SourceKind) -> str:
        return {
            SourceKind.PRODUCTION_LOG: "production",
            SourceKind.SHIPPING_LOG: "shipping",
        }[source_kind]
