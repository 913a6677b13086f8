from sqlalchemy import insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session


# Uniqueness is enforced by the database; ON CONFLICT DO NOTHING keeps the
# first writer's row even when two runs race on the same key.
def insert_if_absent(session: Session, model, values: dict, conflict_cols: list[str]) -> bool:
    """Insert ``values`` unless a row with the same ``conflict_cols`` exists.

    Returns True when this call inserted the row.
    """
    table = model.__table__
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        stmt = pg_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=conflict_cols
        )
    elif dialect_name == "sqlite":
        stmt = sqlite_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=conflict_cols
        )
    else:
        lookup = select(model).filter_by(**{c: values[c] for c in conflict_cols})
        if session.execute(lookup).first() is not None:
            return False
        stmt = insert(table).values(**values)

    result = session.execute(stmt)
    return result.rowcount == 1
