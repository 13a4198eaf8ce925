"""
Sequence Service - atomic document numbering
"""
from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite

from woodflow.models import Counter

NUMBER_FORMATS = {
    "quotation": "QT-{:05d}",
    "bom": "BOM-{:04d}",
    "order": "ORD-{:05d}",
    "invoice": "INV-{:05d}",
    "receipt": "RC-{:04d}",
}

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def next_sequence(db: Session, key: str) -> int:
    """
    Increment and read the counter for ``key`` in a single statement.

    The row lock taken by the upsert is held until the caller's transaction
    ends, so two creations can never read the same value.
    """
    insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)
    if insert is None:
        raise RuntimeError(f"Unsupported database dialect for sequences: {db.get_bind().dialect.name}")

    stmt = (
        insert(Counter)
        .values(key=key, seq=1)
        .on_conflict_do_update(index_elements=[Counter.key], set_={"seq": Counter.seq + 1})
        .returning(Counter.seq)
    )
    return db.execute(stmt).scalar_one()


def next_number(db: Session, key: str) -> str:
    """Formatted document number, e.g. QT-00001"""
    return NUMBER_FORMATS[key].format(next_sequence(db, key))
