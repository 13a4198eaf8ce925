from concurrent.futures import ThreadPoolExecutor

from woodflow.core.config import settings
from woodflow.core.database import sqlite_connect_args
from woodflow.services.sequence_service import next_number, next_sequence


def test_numbers_are_formatted_per_document_type(db):
    assert next_number(db, "quotation") == "QT-00001"
    assert next_number(db, "quotation") == "QT-00002"
    assert next_number(db, "bom") == "BOM-0001"
    assert next_number(db, "order") == "ORD-00001"
    assert next_number(db, "invoice") == "INV-00001"
    assert next_number(db, "receipt") == "RC-0001"


def test_rolled_back_number_is_reused(db):
    assert next_sequence(db, "order") == 1
    db.rollback()
    assert next_sequence(db, "order") == 1


def test_concurrent_sessions_never_share_a_number(session_factory):
    def allocate(_):
        session = session_factory()
        try:
            numbers = []
            for _ in range(5):
                numbers.append(next_number(session, "quotation"))
                session.commit()
            return numbers
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = [n for batch in pool.map(allocate, range(4)) for n in batch]

    assert len(results) == 20
    assert len(set(results)) == 20
    assert sorted(results) == [f"QT-{i:05d}" for i in range(1, 21)]


def test_sqlite_connections_wait_for_locks():
    assert sqlite_connect_args("sqlite:///./woodflow.db") == {
        "check_same_thread": False,
        "timeout": settings.SQLITE_BUSY_TIMEOUT_SECONDS,
    }
    assert sqlite_connect_args("postgresql://woodflow@localhost/woodflow") == {}
