import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ops_reporting.contracts import EventSource
from ops_reporting.loaders.upsert import insert_if_absent
from ops_reporting.models import DimIssueType, DimProductionLine
from ops_reporting.normalize import normalize_label

logger = logging.getLogger(__name__)


class DimensionUpserter:
    """Materializes production lines and issue types keyed by normalized label.

    ``ensure_*`` returns the surrogate key, or ``None`` when the label
    normalizes to nothing. An existing row's display label is never
    overwritten.
    """

    def __init__(self, session: Session):
        self._session = session

    def ensure_production_line(self, line_name: str | None) -> int | None:
        line_name_norm = normalize_label(line_name)
        if line_name_norm is None:
            return None

        inserted = insert_if_absent(
            self._session,
            DimProductionLine,
            {"line_name": str(line_name).strip(), "line_name_norm": line_name_norm},
            ["line_name_norm"],
        )
        if inserted:
            logger.info("created production line %r (norm=%r)", str(line_name).strip(), line_name_norm)

        stmt = select(DimProductionLine.production_line_key).where(
            DimProductionLine.line_name_norm == line_name_norm
        )
        return self._session.execute(stmt).scalar_one()

    def ensure_issue_type(self, source: EventSource, issue_label: str | None) -> int | None:
        issue_label_norm = normalize_label(issue_label)
        if issue_label_norm is None:
            return None

        source_value = EventSource(source).value
        inserted = insert_if_absent(
            self._session,
            DimIssueType,
            {
                "source": source_value,
                "issue_label": str(issue_label).strip(),
                "issue_label_norm": issue_label_norm,
            },
            ["source", "issue_label_norm"],
        )
        if inserted:
            logger.info(
                "created issue type %r for %s (norm=%r)",
                str(issue_label).strip(),
                source_value,
                issue_label_norm,
            )

        stmt = select(DimIssueType.issue_type_key).where(
            DimIssueType.source == source_value,
            DimIssueType.issue_label_norm == issue_label_norm,
        )
        return self._session.execute(stmt).scalar_one()
