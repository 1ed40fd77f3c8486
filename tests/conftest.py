import pytest

import sqlitestmt


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "test.db")


@pytest.fixture
def conn(db_path):
    c = sqlitestmt.connect(db_path)
    yield c
    c.close()


def count_rows(conn, table):
    with conn.prepare(f"SELECT COUNT(*) FROM {table}") as stmt:
        assert stmt.next()
        return stmt.value(0).as_int()
