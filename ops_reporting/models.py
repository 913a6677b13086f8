from datetime import datetime, date

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from ops_reporting.dates import coerce_date, parse_iso_date


class Base(DeclarativeBase):
    pass


class RawDate(TypeDecorator):
    """Calendar date column that tolerates unparseable stored values.

    On SQLite the value is kept as ISO text and an invalid string such as
    ``'2026-02-30'`` is handed back as-is and left to the date rules to
    reject.
    """

    impl = Date
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(10))
        return dialect.type_descriptor(Date())

    def process_bind_param(self, value, dialect):
        if dialect.name != "sqlite" or value is None or isinstance(value, str):
            return value
        return coerce_date(value).isoformat()

    def process_result_value(self, value, dialect):
        if isinstance(value, str):
            return parse_iso_date(value) or value
        return value


class DimProductionLine(Base):
    __tablename__ = "dim_production_line"

    production_line_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    line_name: Mapped[str] = mapped_column(String(120), nullable=False)
    line_name_norm: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())


class DimPart(Base):
    __tablename__ = "dim_part"

    part_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    part_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    lots: Mapped[list["DimLot"]] = relationship(back_populates="part")


class DimLot(Base):
    __tablename__ = "dim_lot"

    lot_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lot_id_norm: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    part_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("dim_part.part_key"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    part: Mapped["DimPart | None"] = relationship(back_populates="lots")


class DimIssueType(Base):
    __tablename__ = "dim_issue_type"

    issue_type_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    issue_label: Mapped[str] = mapped_column(String(200), nullable=False)
    issue_label_norm: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint("source", "issue_label_norm", name="uq_issue_type_source_label"),
        CheckConstraint("source IN ('PRODUCTION', 'SHIPPING')", name="ck_issue_type_source"),
    )


# One row per lot; the first production line observed for a lot wins.
class LotLineAssignment(Base):
    __tablename__ = "lot_line_assignment"

    lot_line_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lot_key: Mapped[int] = mapped_column(
        Integer, ForeignKey("dim_lot.lot_key"), unique=True, nullable=False
    )
    production_line_key: Mapped[int] = mapped_column(
        Integer, ForeignKey("dim_production_line.production_line_key"), nullable=False
    )
    assigned_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())


class FactProductionLog(Base):
    __tablename__ = "fact_production_log"

    production_log_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_date: Mapped[date | None] = mapped_column(RawDate, nullable=True)
    shift: Mapped[str | None] = mapped_column(String(10), nullable=True)
    production_line_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("dim_production_line.production_line_key"), nullable=True
    )
    lot_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("dim_lot.lot_key"), nullable=True
    )
    part_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("dim_part.part_key"), nullable=True
    )
    units_planned: Mapped[int | None] = mapped_column(Integer, nullable=True)
    units_actual: Mapped[int | None] = mapped_column(Integer, nullable=True)
    downtime_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    line_issue_flag: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    primary_issue: Mapped[str | None] = mapped_column(String(200), nullable=True)
    supervisor_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    lot_id_raw: Mapped[str | None] = mapped_column(String(100), nullable=True)
    production_line_raw: Mapped[str | None] = mapped_column(String(120), nullable=True)
    inserted_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (Index("ix_prod_log_run_date", "run_date"),)


class FactShippingLog(Base):
    __tablename__ = "fact_shipping_log"

    shipping_log_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ship_date: Mapped[date | None] = mapped_column(RawDate, nullable=True)
    lot_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("dim_lot.lot_key"), nullable=True
    )
    sales_order_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    customer: Mapped[str | None] = mapped_column(String(120), nullable=True)
    destination_state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    carrier: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bol_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tracking_pro: Mapped[str | None] = mapped_column(String(50), nullable=True)
    qty_shipped: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ship_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    hold_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    shipping_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    lot_id_raw: Mapped[str | None] = mapped_column(String(100), nullable=True)
    inserted_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (Index("ix_ship_log_ship_date", "ship_date"),)


# At most one event per raw log row (NULLs do not collide in the unique constraints).
class FactIssueEvent(Base):
    __tablename__ = "fact_issue_event"

    issue_event_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_source: Mapped[str] = mapped_column(String(20), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    production_line_key: Mapped[int] = mapped_column(
        Integer, ForeignKey("dim_production_line.production_line_key"), nullable=False
    )
    lot_key: Mapped[int] = mapped_column(Integer, ForeignKey("dim_lot.lot_key"), nullable=False)
    issue_type_key: Mapped[int] = mapped_column(
        Integer, ForeignKey("dim_issue_type.issue_type_key"), nullable=False
    )
    qty_impacted: Mapped[int] = mapped_column(Integer, nullable=False)
    production_log_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fact_production_log.production_log_key"), nullable=True
    )
    shipping_log_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fact_shipping_log.shipping_log_key"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint("production_log_key", name="uq_issue_event_prod_log"),
        UniqueConstraint("shipping_log_key", name="uq_issue_event_ship_log"),
        CheckConstraint(
            "(production_log_key IS NULL) <> (shipping_log_key IS NULL)",
            name="ck_issue_event_one_source",
        ),
        CheckConstraint("qty_impacted >= 0", name="ck_issue_event_qty"),
        Index("ix_issue_event_week", "week_start_date"),
    )


class DataQualityFlag(Base):
    __tablename__ = "data_quality_flag"

    flag_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    flag_type: Mapped[str] = mapped_column(String(30), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    flag_reason: Mapped[str] = mapped_column(Text, nullable=False)
    missing_fields: Mapped[str | None] = mapped_column(String(200), nullable=True)
    lot_id_raw: Mapped[str | None] = mapped_column(String(100), nullable=True)
    lot_id_norm: Mapped[str | None] = mapped_column(String(100), nullable=True)
    production_log_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fact_production_log.production_log_key"), nullable=True
    )
    shipping_log_key: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fact_shipping_log.shipping_log_key"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint("production_log_key", name="uq_dq_flag_prod_log"),
        UniqueConstraint("shipping_log_key", name="uq_dq_flag_ship_log"),
        CheckConstraint(
            "flag_type IN ('UNMATCHED_LOT_ID', 'CONFLICT', 'INCOMPLETE_DATA')",
            name="ck_dq_flag_type",
        ),
        Index("ix_dq_flag_type", "flag_type"),
    )
