from abc import ABC, abstractmethod
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ops_reporting.classifier import RecordContext, Rule
from ops_reporting.contracts import CanonicalIssueEvent, EventSource, SourceKind
from ops_reporting.models import DataQualityFlag, FactIssueEvent
from ops_reporting.projector import project_issue_event


class LogSource(ABC):
    @property
    @abstractmethod
    def source_kind(self) -> SourceKind:
        ...

    @property
    @abstractmethod
    def event_source(self) -> EventSource:
        ...

    @property
    @abstractmethod
    def model(self):
        ...

    # Column name shared by the raw log, fact_issue_event and data_quality_flag.
    @property
    @abstractmethod
    def key_column(self) -> str:
        ...

    @property
    @abstractmethod
    def rules(self) -> Sequence[Rule]:
        ...

    def record_key(self, record) -> int:
        return getattr(record, self.key_column)

    def link_fields(self, record) -> dict:
        return {self.key_column: self.record_key(record)}

    def build_context(self, record) -> RecordContext:
        return RecordContext(record=record, lot_id_raw=record.lot_id_raw)

    def select_unprocessed(self, session: Session, batch_size: int) -> list:
        """Oldest-first batch of rows with neither an issue event nor a flag."""
        key = getattr(self.model, self.key_column)
        has_event = select(FactIssueEvent.issue_event_key).where(
            getattr(FactIssueEvent, self.key_column) == key
        )
        has_flag = select(DataQualityFlag.flag_key).where(
            getattr(DataQualityFlag, self.key_column) == key
        )
        stmt = (
            select(self.model)
            .where(~has_event.exists(), ~has_flag.exists())
            .order_by(key)
            .limit(batch_size)
        )
        return list(session.execute(stmt).scalars().all())

    def project(self, ctx: RecordContext) -> CanonicalIssueEvent:
        return project_issue_event(self.event_source, ctx, self.link_fields(ctx.record))
