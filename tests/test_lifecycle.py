import pytest

import sqlitestmt
from sqlitestmt.native import SQLITE_CONSTRAINT, SQLITE_MISMATCH, SQLITE_RANGE


UNPREPARED_OPERATIONS = {
    "bind": lambda s: s.bind(1, 1),
    "bind_null": lambda s: s.bind_null(1),
    "bind_text": lambda s: s.bind_text(1, "x"),
    "bind_blob": lambda s: s.bind_blob(1, b"x"),
    "bind_unsupported": lambda s: s.bind(1, object()),
    "next": lambda s: s.next(),
    "execute": lambda s: s.execute(),
    "reset": lambda s: s.reset(),
    "column_count": lambda s: s.column_count(),
    "value": lambda s: s.value(0),
    "parameter_count": lambda s: s.parameter_count(),
    "clear_bindings": lambda s: s.clear_bindings(),
}


@pytest.mark.parametrize("op", list(UNPREPARED_OPERATIONS.values()), ids=list(UNPREPARED_OPERATIONS))
def test_operations_before_prepare(conn, op):
    stmt = conn.prepare("SELECT ?", deferred=True)
    assert not stmt.prepared
    with pytest.raises(sqlitestmt.NotPreparedError) as exc_info:
        op(stmt)
    assert exc_info.value.code is None


@pytest.mark.parametrize("op", list(UNPREPARED_OPERATIONS.values()), ids=list(UNPREPARED_OPERATIONS))
def test_operations_after_finalize(conn, op):
    stmt = conn.prepare("SELECT ?")
    stmt.finalize()
    with pytest.raises(sqlitestmt.NotPreparedError):
        op(stmt)


def test_fresh_statement_flags(conn):
    stmt = conn.prepare("SELECT 1")
    assert stmt.prepared
    assert not stmt.has_row
    assert not stmt.exhausted
    stmt.finalize()


def test_next_after_done_fails_until_reset(conn):
    stmt = conn.prepare("SELECT 1")
    assert stmt.next() is True
    assert stmt.has_row
    assert stmt.next() is False
    assert stmt.exhausted
    assert not stmt.has_row

    for _ in range(3):
        with pytest.raises(sqlitestmt.AlreadyDoneError):
            stmt.next()
    with pytest.raises(sqlitestmt.AlreadyDoneError):
        stmt.execute()

    stmt.reset()
    assert not stmt.exhausted
    assert not stmt.has_row
    assert stmt.next() is True
    stmt.finalize()


def test_value_before_next(conn):
    stmt = conn.prepare("SELECT 1")
    with pytest.raises(sqlitestmt.NoResultError):
        stmt.value(0)
    stmt.finalize()


def test_value_after_done(conn):
    stmt = conn.prepare("SELECT 1")
    assert stmt.next()
    assert not stmt.next()
    with pytest.raises(sqlitestmt.AlreadyDoneError):
        stmt.value(0)
    stmt.finalize()


def test_value_after_reset(conn):
    stmt = conn.prepare("SELECT 1")
    assert stmt.next()
    stmt.reset()
    with pytest.raises(sqlitestmt.NoResultError):
        stmt.value(0)
    stmt.finalize()


def test_value_index_out_of_range(conn):
    stmt = conn.prepare("SELECT 1, 2")
    assert stmt.next()
    stmt.value(1)
    with pytest.raises(IndexError):
        stmt.value(2)
    with pytest.raises(IndexError):
        stmt.value(-1)
    stmt.finalize()


def test_stale_value_refuses_to_read(conn):
    conn.execute_script("CREATE TABLE foo (id INTEGER); INSERT INTO foo VALUES (1); INSERT INTO foo VALUES (2);")
    stmt = conn.prepare("SELECT id FROM foo ORDER BY id")
    assert stmt.next()
    first = stmt.value(0)
    assert first.as_int() == 1
    assert stmt.next()
    with pytest.raises(sqlitestmt.NoResultError):
        first.as_int()
    assert stmt.value(0).as_int() == 2
    stmt.finalize()
    with pytest.raises(sqlitestmt.NotPreparedError):
        first.get()


def test_finalize_is_idempotent(conn):
    stmt = conn.prepare("SELECT 1")
    assert stmt.next()
    before = conn._stats["finalize_count"]
    for _ in range(5):
        stmt.finalize()
        assert not stmt.prepared
        assert not stmt.has_row
        assert not stmt.exhausted
    assert conn._stats["finalize_count"] == before + 1


def test_finalize_unprepared_statement(conn):
    stmt = conn.prepare("SELECT 1", deferred=True)
    stmt.finalize()
    assert not stmt.prepared


def test_reset_keeps_bindings(conn):
    stmt = conn.prepare("SELECT ?")
    stmt.bind(1, 42)
    assert stmt.next()
    assert stmt.value(0).as_int() == 42
    stmt.reset()
    assert stmt.next()
    assert stmt.value(0).as_int() == 42
    stmt.reset()
    stmt.clear_bindings()
    assert stmt.next()
    assert stmt.value(0).is_null()
    stmt.finalize()


def test_bind_does_not_touch_row_flags(conn):
    stmt = conn.prepare("SELECT ?")
    stmt.bind(1, "x")
    assert not stmt.has_row
    assert not stmt.exhausted
    stmt.finalize()


@pytest.mark.parametrize("index", [0, 2, 99])
def test_bind_index_out_of_range(conn, index):
    stmt = conn.prepare("SELECT ?")
    assert stmt.parameter_count() == 1
    with pytest.raises(sqlitestmt.BindError) as exc_info:
        stmt.bind(index, 1)
    assert exc_info.value.code == SQLITE_RANGE
    # State untouched, the statement still works
    stmt.bind(1, 1)
    assert stmt.next()
    stmt.finalize()


def test_bind_unknown_name(conn):
    stmt = conn.prepare("SELECT :a")
    with pytest.raises(sqlitestmt.BindError):
        stmt.bind("b", 1)
    stmt.finalize()


def test_bind_unsupported_type(conn):
    stmt = conn.prepare("SELECT ?")
    with pytest.raises(sqlitestmt.BindError):
        stmt.bind(1, object())
    with pytest.raises(sqlitestmt.BindError):
        stmt.bind(1.5, 1)
    stmt.finalize()


def test_failed_step_keeps_state(conn):
    conn.execute("CREATE TABLE foo (id INTEGER NOT NULL)")
    stmt = conn.prepare("INSERT INTO foo VALUES (?)")
    stmt.bind(1, None)
    with pytest.raises(sqlitestmt.StepError) as exc_info:
        stmt.next()
    assert exc_info.value.code == SQLITE_CONSTRAINT
    assert "NOT NULL" in str(exc_info.value)
    assert stmt.prepared
    assert not stmt.has_row
    assert not stmt.exhausted
    stmt.finalize()


def test_reset_after_failed_step(conn):
    conn.execute("CREATE TABLE foo (id INTEGER NOT NULL)")
    stmt = conn.prepare("INSERT INTO foo VALUES (?)")
    stmt.bind(1, None)
    with pytest.raises(sqlitestmt.StepError):
        stmt.execute()
    with pytest.raises(sqlitestmt.ResetError) as exc_info:
        stmt.reset()
    assert exc_info.value.code == SQLITE_CONSTRAINT
    assert stmt.prepared
    stmt.finalize()


def test_statement_repr(conn):
    stmt = conn.prepare("SELECT 1")
    assert "ready" in repr(stmt)
    stmt.next()
    assert "row" in repr(stmt)
    stmt.next()
    assert "exhausted" in repr(stmt)
    stmt.finalize()
    assert "unprepared" in repr(stmt)


FAILS_ON_SECOND_ROW = (
    "WITH t(x) AS (VALUES (1), (2), (3)) "
    "SELECT CASE WHEN x = 2 THEN abs(-9223372036854775807 - 1) ELSE x END FROM t"
)


def test_failed_step_invalidates_current_row_values(conn):
    stmt = conn.prepare(FAILS_ON_SECOND_ROW)
    assert stmt.next()
    first = stmt.value(0)
    assert first.as_int() == 1

    with pytest.raises(sqlitestmt.StepError):
        stmt.next()
    with pytest.raises(sqlitestmt.NoResultError):
        first.as_int()
    stmt.finalize()


def test_failed_reset_still_rewinds(conn):
    stmt = conn.prepare(FAILS_ON_SECOND_ROW)
    assert stmt.next()
    with pytest.raises(sqlitestmt.StepError):
        stmt.next()

    with pytest.raises(sqlitestmt.ResetError):
        stmt.reset()
    assert stmt.prepared
    assert not stmt.has_row
    assert not stmt.exhausted
    with pytest.raises(sqlitestmt.NoResultError):
        stmt.value(0)

    # The native cursor was rewound, so stepping starts over.
    assert stmt.next()
    assert stmt.value(0).as_int() == 1
    stmt.finalize()


def test_resetter_leaves_no_phantom_row(conn):
    stmt = conn.prepare(FAILS_ON_SECOND_ROW)
    with sqlitestmt.Resetter(stmt):
        assert stmt.next()
        with pytest.raises(sqlitestmt.StepError):
            stmt.next()
    assert not stmt.has_row
    with pytest.raises(sqlitestmt.NoResultError):
        stmt.value(0)
    stmt.finalize()


@pytest.mark.parametrize(
    "binder,value",
    [
        ("bind_int", "12"),
        ("bind_int", 1.5),
        ("bind_int64", "12"),
        ("bind_int64", None),
        ("bind_float", "abc"),
        ("bind_float", None),
        ("bind_text", 12),
        ("bind_text", b"bytes"),
        ("bind_blob", 5),
        ("bind_blob", "text"),
    ],
)
def test_typed_binder_rejects_wrong_type(conn, binder, value):
    stmt = conn.prepare("SELECT ?")
    with pytest.raises(sqlitestmt.BindError) as exc_info:
        getattr(stmt, binder)(1, value)
    assert exc_info.value.code == SQLITE_MISMATCH
    assert not stmt.has_row
    stmt.finalize()
