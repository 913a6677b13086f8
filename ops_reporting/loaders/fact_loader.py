from sqlalchemy.orm import Session

from ops_reporting.contracts import CanonicalIssueEvent, SourceKind
from ops_reporting.models import DataQualityFlag, FactIssueEvent


# Loaders only flush; the orchestrator owns the batch transaction. The unique
# constraints on the log keys turn a double write into an IntegrityError that
# aborts the whole batch.
class IssueEventLoader:
    def __init__(self, session: Session):
        self._session = session

    def insert(self, e: CanonicalIssueEvent) -> FactIssueEvent:
        row = FactIssueEvent(
            event_source=e.event_source.value,
            event_date=e.event_date,
            week_start_date=e.week_start_date,
            production_line_key=e.production_line_key,
            lot_key=e.lot_key,
            issue_type_key=e.issue_type_key,
            qty_impacted=e.qty_impacted,
            production_log_key=e.production_log_key,
            shipping_log_key=e.shipping_log_key,
        )
        self._session.add(row)
        self._session.flush()
        return row


class FlagLoader:
    def __init__(self, session: Session):
        self._session = session

    def insert(
        self,
        source_kind: SourceKind,
        rejection,
        link_fields: dict,
        lot_id_raw: str | None = None,
        lot_id_norm: str | None = None,
    ) -> DataQualityFlag:
        row = DataQualityFlag(
            flag_type=rejection.flag_type.value,
            source=SourceKind(source_kind).value,
            flag_reason=rejection.reason,
            missing_fields=rejection.missing_fields,
            lot_id_raw=lot_id_raw,
            lot_id_norm=lot_id_norm,
            **link_fields,
        )
        self._session.add(row)
        self._session.flush()
        return row
