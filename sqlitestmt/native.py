import ctypes
import ctypes.util
import os
import sys
from ctypes import c_int, c_int64, c_double, c_char_p, c_void_p, POINTER

# Primary result codes (must match sqlite3.h).
SQLITE_OK = 0
SQLITE_ERROR = 1
SQLITE_INTERNAL = 2
SQLITE_PERM = 3
SQLITE_ABORT = 4
SQLITE_BUSY = 5
SQLITE_LOCKED = 6
SQLITE_NOMEM = 7
SQLITE_READONLY = 8
SQLITE_INTERRUPT = 9
SQLITE_IOERR = 10
SQLITE_CORRUPT = 11
SQLITE_FULL = 13
SQLITE_CANTOPEN = 14
SQLITE_TOOBIG = 18
SQLITE_CONSTRAINT = 19
SQLITE_MISMATCH = 20
SQLITE_MISUSE = 21
SQLITE_RANGE = 25
SQLITE_ROW = 100
SQLITE_DONE = 101

# Fundamental datatypes returned by sqlite3_column_type.
SQLITE_INTEGER = 1
SQLITE_FLOAT = 2
SQLITE_TEXT = 3
SQLITE_BLOB = 4
SQLITE_NULL = 5

# Flags for sqlite3_open_v2.
SQLITE_OPEN_READONLY = 0x00000001
SQLITE_OPEN_READWRITE = 0x00000002
SQLITE_OPEN_CREATE = 0x00000004
SQLITE_OPEN_URI = 0x00000040

# Destructor sentinel telling SQLite to take its own copy of bound data.
SQLITE_TRANSIENT = c_void_p(-1)

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

_lib = None


def _candidate_paths():
    lib_path = os.environ.get("SQLITESTMT_NATIVE_LIB")
    if lib_path:
        # An explicit override is the only candidate.
        return [lib_path]

    candidates = []
    found = ctypes.util.find_library("sqlite3")
    if found:
        candidates.append(found)

    # Common build artifact names across platforms
    candidates.extend([
        "libsqlite3.so.0",
        "libsqlite3.so",
        "libsqlite3.0.dylib",
        "libsqlite3.dylib",
        "sqlite3.dll",
    ])

    # Interpreters that link SQLite statically export the C API from the
    # _sqlite3 extension module itself.
    try:
        import _sqlite3
    except ImportError:
        pass
    else:
        ext_path = getattr(_sqlite3, "__file__", None)
        if ext_path:
            candidates.append(ext_path)
            dll_dir = os.path.dirname(ext_path)
            candidates.append(os.path.join(dll_dir, "sqlite3.dll"))

    if sys.platform == "darwin":
        candidates.append("/usr/lib/libsqlite3.dylib")
    return candidates


def load_library():
    global _lib
    if _lib is not None:
        return _lib

    errors = []
    lib = None
    for path in _candidate_paths():
        try:
            candidate = ctypes.CDLL(path)
        except OSError as e:
            errors.append(f"{path}: {e}")
            continue
        if hasattr(candidate, "sqlite3_prepare_v2"):
            lib = candidate
            break
        errors.append(f"{path}: does not export the SQLite C API")

    if lib is None:
        detail = "; ".join(errors) if errors else "no candidates"
        raise RuntimeError(
            "Could not find the SQLite native library. Set SQLITESTMT_NATIVE_LIB env var. "
            f"Tried: {detail}"
        )

    # Define signatures

    lib.sqlite3_libversion.argtypes = []
    lib.sqlite3_libversion.restype = c_char_p

    # Connection
    lib.sqlite3_open_v2.argtypes = [c_char_p, POINTER(c_void_p), c_int, c_char_p]
    lib.sqlite3_open_v2.restype = c_int

    lib.sqlite3_close_v2.argtypes = [c_void_p]
    lib.sqlite3_close_v2.restype = c_int

    lib.sqlite3_busy_timeout.argtypes = [c_void_p, c_int]
    lib.sqlite3_busy_timeout.restype = c_int

    lib.sqlite3_get_autocommit.argtypes = [c_void_p]
    lib.sqlite3_get_autocommit.restype = c_int

    lib.sqlite3_changes.argtypes = [c_void_p]
    lib.sqlite3_changes.restype = c_int

    lib.sqlite3_total_changes.argtypes = [c_void_p]
    lib.sqlite3_total_changes.restype = c_int

    lib.sqlite3_last_insert_rowid.argtypes = [c_void_p]
    lib.sqlite3_last_insert_rowid.restype = c_int64

    # Errors
    lib.sqlite3_errcode.argtypes = [c_void_p]
    lib.sqlite3_errcode.restype = c_int

    lib.sqlite3_extended_errcode.argtypes = [c_void_p]
    lib.sqlite3_extended_errcode.restype = c_int

    lib.sqlite3_errmsg.argtypes = [c_void_p]
    lib.sqlite3_errmsg.restype = c_char_p

    lib.sqlite3_errstr.argtypes = [c_int]
    lib.sqlite3_errstr.restype = c_char_p

    # Statement lifecycle
    lib.sqlite3_prepare_v2.argtypes = [c_void_p, c_char_p, c_int, POINTER(c_void_p), POINTER(c_void_p)]
    lib.sqlite3_prepare_v2.restype = c_int

    lib.sqlite3_step.argtypes = [c_void_p]
    lib.sqlite3_step.restype = c_int

    lib.sqlite3_reset.argtypes = [c_void_p]
    lib.sqlite3_reset.restype = c_int

    lib.sqlite3_clear_bindings.argtypes = [c_void_p]
    lib.sqlite3_clear_bindings.restype = c_int

    lib.sqlite3_finalize.argtypes = [c_void_p]
    lib.sqlite3_finalize.restype = c_int

    lib.sqlite3_db_handle.argtypes = [c_void_p]
    lib.sqlite3_db_handle.restype = c_void_p

    lib.sqlite3_stmt_readonly.argtypes = [c_void_p]
    lib.sqlite3_stmt_readonly.restype = c_int

    # Bindings
    lib.sqlite3_bind_parameter_count.argtypes = [c_void_p]
    lib.sqlite3_bind_parameter_count.restype = c_int

    lib.sqlite3_bind_parameter_index.argtypes = [c_void_p, c_char_p]
    lib.sqlite3_bind_parameter_index.restype = c_int

    lib.sqlite3_bind_null.argtypes = [c_void_p, c_int]
    lib.sqlite3_bind_null.restype = c_int

    lib.sqlite3_bind_int.argtypes = [c_void_p, c_int, c_int]
    lib.sqlite3_bind_int.restype = c_int

    lib.sqlite3_bind_int64.argtypes = [c_void_p, c_int, c_int64]
    lib.sqlite3_bind_int64.restype = c_int

    lib.sqlite3_bind_double.argtypes = [c_void_p, c_int, c_double]
    lib.sqlite3_bind_double.restype = c_int

    lib.sqlite3_bind_text.argtypes = [c_void_p, c_int, c_char_p, c_int, c_void_p]
    lib.sqlite3_bind_text.restype = c_int

    lib.sqlite3_bind_blob.argtypes = [c_void_p, c_int, c_char_p, c_int, c_void_p]
    lib.sqlite3_bind_blob.restype = c_int

    lib.sqlite3_bind_zeroblob.argtypes = [c_void_p, c_int, c_int]
    lib.sqlite3_bind_zeroblob.restype = c_int

    # Columns
    lib.sqlite3_column_count.argtypes = [c_void_p]
    lib.sqlite3_column_count.restype = c_int

    lib.sqlite3_column_name.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_name.restype = c_char_p

    lib.sqlite3_column_type.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_type.restype = c_int

    lib.sqlite3_column_int.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_int.restype = c_int

    lib.sqlite3_column_int64.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_int64.restype = c_int64

    lib.sqlite3_column_double.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_double.restype = c_double

    # Raw pointers: text/blob may contain NULs, length comes from column_bytes.
    lib.sqlite3_column_text.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_text.restype = c_void_p

    lib.sqlite3_column_blob.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_blob.restype = c_void_p

    lib.sqlite3_column_bytes.argtypes = [c_void_p, c_int]
    lib.sqlite3_column_bytes.restype = c_int

    _lib = lib
    return _lib


def library_version():
    return load_library().sqlite3_libversion().decode("ascii")
