import os
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

DEFAULT_BATCH_SIZE = 500


@dataclass(frozen=True)
class DBConfig:
    url: str


@dataclass(frozen=True)
class IngestConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    # Quantity policy for projected issue events.
    production_issue_qty: int = 1
    production_no_issue_qty: int = 0
    production_default_qty: int = 1
    shipping_qty: int = 1


def load_db_config() -> DBConfig:
    url = os.environ.get("DATABASE_URL", "sqlite:///./ops_reporting.sqlite")
    return DBConfig(url=url)


def resolve_batch_size(raw, default: int = DEFAULT_BATCH_SIZE) -> int:
    """Return ``raw`` when it is a positive integer, otherwise ``default``."""
    if isinstance(raw, bool):
        return default
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw.isdigit():
            return default
        raw = int(raw)
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, int) and raw > 0:
        return raw
    return default


def load_ingest_config() -> IngestConfig:
    batch_size = resolve_batch_size(os.environ.get("INGEST_BATCH_SIZE"))
    return IngestConfig(batch_size=batch_size)


def build_engine(config: DBConfig):
    kwargs = {}
    if config.url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(config.url, **kwargs)


def build_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
