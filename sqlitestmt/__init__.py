from .native import (
    load_library, library_version,
    SQLITE_OK, SQLITE_ROW, SQLITE_DONE, SQLITE_RANGE, SQLITE_TOOBIG, SQLITE_MISMATCH,
    SQLITE_INTEGER, SQLITE_FLOAT, SQLITE_TEXT, SQLITE_BLOB, SQLITE_NULL,
    SQLITE_OPEN_READONLY, SQLITE_OPEN_READWRITE, SQLITE_OPEN_CREATE, SQLITE_OPEN_URI,
    SQLITE_TRANSIENT, INT32_MIN, INT32_MAX, INT64_MIN, INT64_MAX,
)
import abc
import collections
import collections.abc
import ctypes
import enum
import json
import logging

__version__ = "0.3.0"

logger = logging.getLogger(__name__)

# Exceptions
class Error(Exception):
    """Base failure. ``code`` is the native result code, or None when the
    failure was detected from the statement's own state."""

    def __init__(self, message, code=None, *, extended_code=None, sql=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.extended_code = extended_code
        self.sql = sql

class InterfaceError(Error):
    pass

class OperationalError(Error):
    pass

class PrepareError(Error):
    pass

class NotPreparedError(Error):
    pass

class BindError(Error):
    pass

class StepError(Error):
    pass

class AlreadyDoneError(Error):
    pass

class NoResultError(Error):
    pass

class ResetError(Error):
    pass

class ColumnCountError(Error):
    pass

class TransactionError(Error):
    pass

def _format_value_for_error(v, *, max_str=200, max_bytes=64):
    if v is None:
        return None
    if isinstance(v, (bool, int, float)):
        return v
    if isinstance(v, (bytes, bytearray, memoryview)):
        b = bytes(v)
        if len(b) <= max_bytes:
            return {"_type": "bytes", "hex": b.hex(), "len": len(b)}
        head = b[:max_bytes]
        return {"_type": "bytes", "hex_prefix": head.hex(), "len": len(b)}
    if isinstance(v, str):
        if len(v) <= max_str:
            return v
        return v[:max_str] + "…"
    s = repr(v)
    if len(s) <= max_str:
        return s
    return s[:max_str] + "…"

def _format_params_for_error(params, *, max_items=50):
    if params is None:
        return None
    if isinstance(params, collections.abc.Mapping):
        out = {}
        for i, (k, v) in enumerate(params.items()):
            if i >= max_items:
                out["_truncated"] = True
                break
            out[str(k)] = _format_value_for_error(v)
        return out
    try:
        seq = list(params)
    except TypeError:
        return _format_value_for_error(params)
    if len(seq) > max_items:
        seq = seq[:max_items] + ["<truncated>"]
    return [_format_value_for_error(v) for v in seq]

def _error_detail(db_handle):
    lib = load_library()
    if not db_handle:
        return None, None, "No database handle"
    code = lib.sqlite3_errcode(db_handle)
    extended = lib.sqlite3_extended_errcode(db_handle)
    msg = lib.sqlite3_errmsg(db_handle)
    # Native messages should be UTF-8, but don't crash if not.
    msg_str = msg.decode("utf-8", errors="replace") if msg else f"Unknown error {code}"
    return code, extended, msg_str

def _raise_error(db_handle, error_cls, *, code=None, sql=None, params=None):
    db_code, extended, msg_str = _error_detail(db_handle)
    if code is None:
        code = db_code
    elif code != db_code:
        # Some API calls (e.g. misuse) report through the return value only.
        errstr = load_library().sqlite3_errstr(code)
        if errstr:
            msg_str = errstr.decode("utf-8", errors="replace")
        extended = code

    if sql is not None:
        ctx = {
            "native_code": code,
            "sql": sql,
            "params": _format_params_for_error(params),
        }
        msg_str = msg_str + "\nContext: " + json.dumps(ctx, ensure_ascii=False)

    raise error_cls(msg_str, code, extended_code=extended, sql=sql)


class TransactionType(enum.Enum):
    DEFERRED = "DEFERRED"
    IMMEDIATE = "IMMEDIATE"
    EXCLUSIVE = "EXCLUSIVE"

def _transaction_type(kind):
    if isinstance(kind, TransactionType):
        return kind
    if isinstance(kind, str):
        try:
            return TransactionType[kind.strip().upper()]
        except KeyError:
            pass
    raise ValueError(f"Unknown transaction type: {kind!r}")


class Value:
    """Accessor for one column of a statement's current row.

    Nothing is cached: every getter reads the native column again, using
    SQLite's own conversion rules when the stored type differs from the
    requested one. A Value is bound to the row it was created on and refuses
    to read once the statement has moved on.
    """

    __slots__ = ("_statement", "_index", "_serial")

    def __init__(self, statement, index):
        self._statement = statement
        self._index = index
        self._serial = statement._row_serial

    @property
    def index(self):
        return self._index

    @property
    def statement(self):
        return self._statement

    def _handle(self):
        return self._statement._column_handle(self._index, self._serial)

    @property
    def type(self):
        """Storage class code of the column (SQLITE_INTEGER, ..., SQLITE_NULL)."""
        return self._statement._lib.sqlite3_column_type(self._handle(), self._index)

    def is_null(self):
        return self.type == SQLITE_NULL

    def as_int(self):
        return self._statement._lib.sqlite3_column_int(self._handle(), self._index)

    def as_int64(self):
        return self._statement._lib.sqlite3_column_int64(self._handle(), self._index)

    def as_float(self):
        return self._statement._lib.sqlite3_column_double(self._handle(), self._index)

    def as_text(self):
        handle = self._handle()
        lib = self._statement._lib
        # Type must be read before any conversion happens.
        if lib.sqlite3_column_type(handle, self._index) == SQLITE_NULL:
            return None
        ptr = lib.sqlite3_column_text(handle, self._index)
        if not ptr:
            return ""
        size = lib.sqlite3_column_bytes(handle, self._index)
        return ctypes.string_at(ptr, size).decode("utf-8", errors="replace")

    def as_blob(self):
        handle = self._handle()
        lib = self._statement._lib
        if lib.sqlite3_column_type(handle, self._index) == SQLITE_NULL:
            return None
        ptr = lib.sqlite3_column_blob(handle, self._index)
        # Zero-length blobs come back as a NULL pointer.
        if not ptr:
            return b""
        size = lib.sqlite3_column_bytes(handle, self._index)
        return ctypes.string_at(ptr, size)

    def get(self):
        """Read the column as the Python type matching its storage class."""
        kind = self.type
        if kind == SQLITE_INTEGER:
            return self.as_int64()
        if kind == SQLITE_FLOAT:
            return self.as_float()
        if kind == SQLITE_TEXT:
            return self.as_text()
        if kind == SQLITE_BLOB:
            return self.as_blob()
        return None

    def __int__(self):
        return self.as_int64()

    def __float__(self):
        return self.as_float()

    def __bytes__(self):
        return self.as_blob() or b""

    def __repr__(self):
        return f"<Value index={self._index} sql={self._statement.sql!r}>"


class Statement:
    """A single prepared statement owning one native statement handle.

    Lifecycle: prepare -> bind -> next()/execute() -> reset or finalize.
    ``finalize()`` never fails and may be called any number of times; a
    finalized statement can be prepared again.
    """

    def __init__(self, connection, sql, deferred=False):
        self._connection = connection
        self._sql = sql
        self._lib = load_library()
        self._handle = None
        self._tail = ""
        self._prepared = False
        self._has_row = False
        self._exhausted = False
        # Bumped whenever the current row changes; stale Values compare against it.
        self._row_serial = 0
        if not deferred:
            self.prepare()

    def __del__(self):
        if getattr(self, "_handle", None) is not None:
            self.finalize()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finalize()
        return False

    def __copy__(self):
        # Never share the native handle: compile a fresh one from the same text.
        return type(self)(self._connection, self._sql)

    def __deepcopy__(self, memo):
        return self.__copy__()

    def __iter__(self):
        return self.rows()

    def __repr__(self):
        if self._exhausted:
            state = "exhausted"
        elif self._has_row:
            state = "row"
        elif self._prepared:
            state = "ready"
        else:
            state = "unprepared"
        return f"<Statement {state} sql={self._sql!r}>"

    @property
    def connection(self):
        return self._connection

    @property
    def sql(self):
        return self._sql

    @property
    def tail(self):
        """SQL text left over after the first statement in ``sql``."""
        return self._tail

    @property
    def prepared(self):
        return self._prepared

    @property
    def has_row(self):
        return self._has_row

    @property
    def exhausted(self):
        return self._exhausted

    def assign(self, other):
        """Replace this statement with a fresh compilation of ``other``'s query."""
        self.finalize()
        self._connection = other._connection
        self._sql = other._sql
        self.prepare()
        return self

    def _db(self):
        return self._lib.sqlite3_db_handle(self._handle)

    def _compile(self):
        # Returns False when the text holds no statement at all (only
        # whitespace or comments); SQLite reports OK without a handle then.
        if self._handle is not None:
            self.finalize()
        try:
            db = self._connection._db_handle()
        except InterfaceError as e:
            raise PrepareError(e.message, sql=self._sql) from e
        encoded = self._sql.encode("utf-8")
        buf = ctypes.create_string_buffer(encoded)
        handle = ctypes.c_void_p()
        tail = ctypes.c_void_p()
        self._connection._stats["prepare_count"] += 1
        res = self._lib.sqlite3_prepare_v2(
            db,
            ctypes.cast(buf, ctypes.c_char_p),
            len(encoded),
            ctypes.byref(handle),
            ctypes.byref(tail),
        )
        if res != SQLITE_OK:
            _raise_error(db, PrepareError, code=res, sql=self._sql)

        if tail.value:
            offset = tail.value - ctypes.addressof(buf)
            self._tail = encoded[offset:].decode("utf-8")
        else:
            self._tail = ""

        if not handle.value:
            return False

        self._handle = handle
        self._prepared = True
        self._has_row = False
        self._exhausted = False
        self._row_serial += 1
        logger.debug(f"Prepared statement: {self._sql!r}")
        return True

    def prepare(self):
        """Compile ``sql`` against the connection, replacing any handle held."""
        if not self._compile():
            raise PrepareError("No SQL statement found in query", sql=self._sql)

    def finalize(self):
        if self._handle is not None:
            # The return code repeats the last step error; finalize itself cannot fail.
            self._lib.sqlite3_finalize(self._handle)
            self._handle = None
            self._connection._stats["finalize_count"] += 1
            logger.debug(f"Finalized statement: {self._sql!r}")
        self._prepared = False
        self._has_row = False
        self._exhausted = False
        self._row_serial += 1

    def _check_prepared(self):
        if not self._prepared:
            raise NotPreparedError("Statement unprepared!", sql=self._sql)

    def _check_row(self):
        self._check_prepared()
        if self._exhausted:
            raise AlreadyDoneError("Statement already done!", sql=self._sql)
        if not self._has_row:
            raise NoResultError("No Result!", sql=self._sql)

    def _column_handle(self, index, serial):
        self._check_row()
        if serial != self._row_serial:
            raise NoResultError(f"Row for column {index} is no longer current", sql=self._sql)
        return self._handle

    def reset(self):
        self._check_prepared()
        res = self._lib.sqlite3_reset(self._handle)
        # SQLite rewinds the cursor even when it reports the last step error.
        self._has_row = False
        self._exhausted = False
        self._row_serial += 1
        if res != SQLITE_OK:
            _raise_error(self._db(), ResetError, code=res, sql=self._sql)

    # Bindings

    def parameter_count(self):
        self._check_prepared()
        return self._lib.sqlite3_bind_parameter_count(self._handle)

    def _parameter_index(self, index):
        if isinstance(index, str):
            names = [index] if index[:1] in (":", "@", "$", "?") else [":" + index, "@" + index, "$" + index]
            for name in names:
                idx = self._lib.sqlite3_bind_parameter_index(self._handle, name.encode("utf-8"))
                if idx > 0:
                    return idx
            raise BindError(f"Unknown parameter name: {index!r}", SQLITE_RANGE, sql=self._sql)
        if isinstance(index, bool) or not isinstance(index, int):
            raise BindError(f"Parameter index must be int or str, got {type(index).__name__}", sql=self._sql)
        return index

    def _check_bind(self, res, value):
        if res != SQLITE_OK:
            _raise_error(self._db(), BindError, code=res, sql=self._sql, params=[value])

    def _check_type(self, index, value, types, kind):
        if not isinstance(value, types):
            raise BindError(
                f"Cannot bind {type(value).__name__} to {index!r} as {kind}",
                SQLITE_MISMATCH,
                sql=self._sql,
            )

    def bind_null(self, index):
        self._check_prepared()
        idx = self._parameter_index(index)
        self._check_bind(self._lib.sqlite3_bind_null(self._handle, idx), None)

    def bind_int(self, index, value):
        self._check_prepared()
        idx = self._parameter_index(index)
        self._check_type(index, value, (int,), "int")
        if not INT32_MIN <= value <= INT32_MAX:
            raise BindError(f"Integer {value} does not fit in 32 bits", SQLITE_RANGE, sql=self._sql)
        self._check_bind(self._lib.sqlite3_bind_int(self._handle, idx, value), value)

    def bind_int64(self, index, value):
        self._check_prepared()
        idx = self._parameter_index(index)
        self._check_type(index, value, (int,), "int64")
        # ctypes does no overflow checking.
        if not INT64_MIN <= value <= INT64_MAX:
            raise BindError(f"Integer {value} does not fit in 64 bits", SQLITE_RANGE, sql=self._sql)
        self._check_bind(self._lib.sqlite3_bind_int64(self._handle, idx, value), value)

    def bind_float(self, index, value):
        self._check_prepared()
        idx = self._parameter_index(index)
        self._check_type(index, value, (int, float), "float")
        self._check_bind(self._lib.sqlite3_bind_double(self._handle, idx, float(value)), value)

    def bind_text(self, index, value):
        self._check_prepared()
        idx = self._parameter_index(index)
        self._check_type(index, value, (str,), "text")
        b = value.encode("utf-8")
        if len(b) > INT32_MAX:
            raise BindError("Text parameter too large", SQLITE_TOOBIG, sql=self._sql)
        res = self._lib.sqlite3_bind_text(self._handle, idx, b, len(b), SQLITE_TRANSIENT)
        self._check_bind(res, value)

    def bind_blob(self, index, value):
        self._check_prepared()
        idx = self._parameter_index(index)
        self._check_type(index, value, (bytes, bytearray, memoryview), "blob")
        b = bytes(value)
        if len(b) > INT32_MAX:
            raise BindError("Blob parameter too large", SQLITE_TOOBIG, sql=self._sql)
        if not b:
            # A NULL data pointer would bind SQL NULL instead of an empty blob.
            res = self._lib.sqlite3_bind_zeroblob(self._handle, idx, 0)
        else:
            res = self._lib.sqlite3_bind_blob(self._handle, idx, b, len(b), SQLITE_TRANSIENT)
        self._check_bind(res, value)

    def bind(self, index, value=None):
        """Bind ``value`` to a 1-based parameter index or a parameter name."""
        if value is None:
            self.bind_null(index)
        elif isinstance(value, bool):
            self.bind_int(index, int(value))
        elif isinstance(value, int):
            if INT32_MIN <= value <= INT32_MAX:
                self.bind_int(index, value)
            else:
                self.bind_int64(index, value)
        elif isinstance(value, float):
            self.bind_float(index, value)
        elif isinstance(value, str):
            self.bind_text(index, value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            self.bind_blob(index, value)
        else:
            self._check_prepared()
            raise BindError(
                f"Unsupported parameter type for {index!r}: {type(value).__name__}",
                SQLITE_MISMATCH,
                sql=self._sql,
            )

    def bind_all(self, parameters):
        """Bind a sequence positionally (from 1) or a mapping by parameter name."""
        if isinstance(parameters, collections.abc.Mapping):
            for name, value in parameters.items():
                self.bind(str(name), value)
        else:
            for idx, value in enumerate(parameters, start=1):
                self.bind(idx, value)

    def clear_bindings(self):
        self._check_prepared()
        self._check_bind(self._lib.sqlite3_clear_bindings(self._handle), None)

    # Stepping

    def next(self):
        """Advance to the next row. Returns False once the statement is done."""
        self._check_prepared()
        if self._exhausted:
            raise AlreadyDoneError("Statement already done!", sql=self._sql)
        res = self._lib.sqlite3_step(self._handle)
        if res == SQLITE_ROW:
            self._has_row = True
            self._row_serial += 1
            return True
        if res == SQLITE_DONE:
            self._has_row = False
            self._exhausted = True
            self._row_serial += 1
            return False
        # Columns of a halted statement are undefined; invalidate outstanding Values.
        self._row_serial += 1
        _raise_error(self._db(), StepError, code=res, sql=self._sql)

    def execute(self):
        self.next()

    def execute_many(self, iterator, kind=TransactionType.DEFERRED):
        """Run the statement once per record of ``iterator`` inside one transaction.

        The statement is finalized and the transaction committed only after
        every record succeeded. A failure propagates with the statement left
        as it was and the transaction rolled back.
        """
        if not isinstance(iterator, DataIterator):
            iterator = RowIterator(iterator)
        count = 0
        with Transaction(self._connection, kind) as trans:
            while iterator.has_next():
                if self._has_row or self._exhausted:
                    self.reset()
                iterator.bind_next(self)
                self.execute()
                count += 1
            self.finalize()
            trans.commit()
        logger.debug(f"Executed {count} records: {self._sql!r}")
        return count

    # Columns

    def column_count(self):
        self._check_prepared()
        count = self._lib.sqlite3_column_count(self._handle)
        if count < 0:
            raise ColumnCountError(f"Invalid column count {count}", count, sql=self._sql)
        return count

    def column_name(self, index):
        self._check_prepared()
        name = self._lib.sqlite3_column_name(self._handle, index)
        return name.decode("utf-8") if name else ""

    def column_names(self):
        return [self.column_name(i) for i in range(self.column_count())]

    @property
    def readonly(self):
        self._check_prepared()
        return bool(self._lib.sqlite3_stmt_readonly(self._handle))

    def value(self, index):
        self._check_row()
        count = self.column_count()
        if not 0 <= index < count:
            raise IndexError(f"Column index {index} out of range [0, {count})")
        return Value(self, index)

    def rows(self):
        """Step through the remaining rows, yielding each as a tuple."""
        while self.next():
            yield tuple(self.value(i).get() for i in range(self.column_count()))


class Finalizer:
    """Execute a statement now and finalize it when the scope ends.

    If the execution fails the statement is finalized before the failure
    propagates.
    """

    def __init__(self, statement):
        self._statement = statement
        self._closed = False
        try:
            statement.execute()
        except BaseException:
            self.close()
            raise

    @property
    def statement(self):
        return self._statement

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self._statement.finalize()
        except Error as e:
            logger.debug(f"Ignoring error while finalizing {self._statement.sql!r}: {e}")

    def __enter__(self):
        return self._statement

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class Resetter:
    """Reset a statement when the scope ends."""

    def __init__(self, statement):
        self._statement = statement
        self._closed = False

    @property
    def statement(self):
        return self._statement

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self._statement.reset()
        except Error as e:
            logger.debug(f"Ignoring error while resetting {self._statement.sql!r}: {e}")

    def __enter__(self):
        return self._statement

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class Transaction:
    """A transaction begun on construction and rolled back unless committed."""

    def __init__(self, connection, kind=TransactionType.DEFERRED):
        self._connection = connection
        self.kind = _transaction_type(kind)
        self._state = None
        connection.begin(self.kind)
        self._state = "active"
        logger.info(f"BEGIN {self.kind.value} transaction on database: {connection.path}")

    @property
    def connection(self):
        return self._connection

    @property
    def active(self):
        return self._state == "active"

    @property
    def committed(self):
        return self._state == "committed"

    def _check_active(self, action):
        if self._state != "active":
            raise TransactionError(f"Cannot {action}: transaction already {self._state}")

    def commit(self):
        self._check_active("commit")
        self._connection.commit()
        self._state = "committed"
        logger.info(f"COMMIT transaction on database: {self._connection.path}")

    def rollback(self):
        self._check_active("rollback")
        try:
            self._connection.rollback()
        finally:
            # SQLite ends the transaction even when ROLLBACK reports an error.
            self._state = "rolled back"
        logger.info(f"ROLLBACK transaction on database: {self._connection.path}")

    def close(self):
        if not self.active:
            return
        try:
            self.rollback()
        except Error as e:
            logger.warning(f"Failed to roll back transaction on database {self._connection.path}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class DataIterator(abc.ABC):
    """Source of records for ``Statement.execute_many``."""

    @abc.abstractmethod
    def has_next(self):
        """Return True when another record is available."""

    @abc.abstractmethod
    def bind_next(self, statement):
        """Bind the next record's fields onto ``statement``'s parameters."""


class RowIterator(DataIterator):
    """Feeds sequences (bound by position) or mappings (bound by name)."""

    _EMPTY = object()

    def __init__(self, rows):
        self._rows = iter(rows)
        self._pending = self._EMPTY
        self.count = 0

    def has_next(self):
        if self._pending is self._EMPTY:
            self._pending = next(self._rows, self._EMPTY)
        return self._pending is not self._EMPTY

    def bind_next(self, statement):
        if not self.has_next():
            raise IndexError("No more rows")
        row = self._pending
        self._pending = self._EMPTY
        statement.bind_all(row)
        self.count += 1


class Connection:
    def __init__(self, path, *, timeout=5.0, readonly=False, uri=False):
        self._lib = load_library()
        self.path = path
        flags = SQLITE_OPEN_READONLY if readonly else SQLITE_OPEN_READWRITE | SQLITE_OPEN_CREATE
        if uri:
            flags |= SQLITE_OPEN_URI
        db = ctypes.c_void_p()
        res = self._lib.sqlite3_open_v2(path.encode("utf-8"), ctypes.byref(db), flags, None)
        if res != SQLITE_OK:
            if db.value:
                _, extended, msg_str = _error_detail(db)
                self._lib.sqlite3_close_v2(db)
            else:
                extended = res
                msg = self._lib.sqlite3_errstr(res)
                msg_str = msg.decode("utf-8") if msg else "Failed to open database"
            raise OperationalError(f"{msg_str}: {path}", res, extended_code=extended)
        self._db = db
        self._closed = False
        self._lib.sqlite3_busy_timeout(db, int(timeout * 1000))

        # Statistics for testing
        self._stats = collections.Counter()
        logger.debug(f"Opened database: {path}")

    def _db_handle(self):
        if self._closed:
            raise InterfaceError("Connection closed")
        return self._db

    @property
    def closed(self):
        return self._closed

    @property
    def in_transaction(self):
        return not self._lib.sqlite3_get_autocommit(self._db_handle())

    @property
    def changes(self):
        return self._lib.sqlite3_changes(self._db_handle())

    @property
    def total_changes(self):
        return self._lib.sqlite3_total_changes(self._db_handle())

    @property
    def last_insert_rowid(self):
        return self._lib.sqlite3_last_insert_rowid(self._db_handle())

    def last_error(self):
        code, _, message = _error_detail(self._db_handle())
        return code, message

    def prepare(self, sql, deferred=False):
        return Statement(self, sql, deferred=deferred)

    def execute(self, sql, parameters=None):
        """Run a single statement to its first step and return the change count."""
        stmt = Statement(self, sql)
        if parameters is not None:
            try:
                stmt.bind_all(parameters)
            except Error:
                stmt.finalize()
                raise
        Finalizer(stmt).close()
        return self.changes

    def execute_script(self, sql):
        """Run every statement in ``sql`` in order."""
        remaining = sql
        while remaining.strip():
            stmt = Statement(self, remaining, deferred=True)
            if not stmt._compile():
                break
            remaining = stmt.tail
            Finalizer(stmt).close()

    def _run_transaction_sql(self, sql):
        try:
            Finalizer(Statement(self, sql)).close()
        except Error as e:
            raise TransactionError(e.message, e.code, extended_code=e.extended_code, sql=sql) from e

    def begin(self, kind=TransactionType.DEFERRED):
        kind = _transaction_type(kind)
        self._run_transaction_sql(f"BEGIN {kind.value}")

    def commit(self):
        self._run_transaction_sql("COMMIT")

    def rollback(self):
        self._run_transaction_sql("ROLLBACK")

    def transaction(self, kind=TransactionType.DEFERRED):
        return Transaction(self, kind)

    def close(self):
        if self._closed:
            return
        # close_v2 defers the real close until live statements are finalized.
        self._lib.sqlite3_close_v2(self._db)
        self._db = None
        self._closed = True
        logger.debug(f"Closed database: {self.path}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if not self._closed and self.in_transaction:
                if exc_type:
                    self.rollback()
                else:
                    self.commit()
        finally:
            self.close()
        return False


def connect(path, **kwargs):
    return Connection(path, **kwargs)


__all__ = [
    "connect",
    "library_version",
    "Connection",
    "Statement",
    "Value",
    "Finalizer",
    "Resetter",
    "Transaction",
    "TransactionType",
    "DataIterator",
    "RowIterator",
    "Error",
    "InterfaceError",
    "OperationalError",
    "PrepareError",
    "NotPreparedError",
    "BindError",
    "StepError",
    "AlreadyDoneError",
    "NoResultError",
    "ResetError",
    "ColumnCountError",
    "TransactionError",
]
