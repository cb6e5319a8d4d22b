"""
Errores del dominio de cuentas y mapeo de errores de base de datos.

- ValidationError          -> datos inválidos, se detecta antes de tocar la base
- DatabaseConnectionError  -> no se pudo obtener una conexión (driver/endpoint)
- PersistenceError         -> fallo de insert/update/consulta/commit
- RollbackError            -> fallo al revertir; sólo se registra, nunca reemplaza al error original
- HashingError             -> la primitiva criptográfica no está disponible
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class CuentasError(Exception):
    """Base de todos los errores que el menú muestra al operador."""


class ValidationError(CuentasError, ValueError):
    pass


class DatabaseConnectionError(CuentasError):
    pass


class PersistenceError(CuentasError):
    def __init__(self, message: str, *, operation: Optional[str] = None, kind: str = "other") -> None:
        super().__init__(message)
        self.operation = operation
        self.kind = kind


class RollbackError(CuentasError):
    pass


class HashingError(CuentasError):
    pass


def _get_sqlstate(exc: BaseException) -> Optional[str]:
    """Obtiene SQLSTATE si está disponible (psycopg3: .sqlstate, psycopg2: .pgcode)."""
    for obj in (exc, getattr(exc, "orig", None), getattr(exc, "__cause__", None)):
        if obj is None:
            continue
        code = getattr(obj, "sqlstate", None) or getattr(obj, "pgcode", None)
        if code:
            return str(code)
    return None


def map_db_error(exc: BaseException) -> str:
    """
    Retorna una etiqueta corta:
      'unique'   -> violación de unicidad (23505 / "UNIQUE constraint failed" / 1062)
      'fk'       -> violación de llave foránea (23503)
      'not_null' -> NOT NULL (23502)
      'check'    -> check constraint (23514)
      'other'    -> cualquier otro
    """
    sqlstate = _get_sqlstate(exc)
    if sqlstate == "23505":
        return "unique"
    if sqlstate == "23503":
        return "fk"
    if sqlstate == "23502":
        return "not_null"
    if sqlstate == "23514":
        return "check"

    if not isinstance(exc, IntegrityError):
        return "other"

    # SQLite y MySQL no exponen SQLSTATE; se distingue por el mensaje del driver
    message = str(getattr(exc, "orig", exc)).lower()
    if "unique" in message or "duplicate" in message:
        return "unique"
    if "foreign key" in message:
        return "fk"
    if "not null" in message or "cannot be null" in message:
        return "not_null"
    if "check constraint" in message:
        return "check"
    return "other"


@contextmanager
def persistence_errors(operation: str) -> Iterator[None]:
    """Traduce cualquier SQLAlchemyError del bloque a PersistenceError."""
    try:
        yield
    except SQLAlchemyError as exc:
        kind = map_db_error(exc)
        raise PersistenceError(
            f"Error de base de datos en {operation} ({kind})",
            operation=operation,
            kind=kind,
        ) from exc
