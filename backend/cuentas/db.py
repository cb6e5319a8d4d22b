from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import (
    ArgumentError,
    InterfaceError,
    NoSuchModuleError,
    OperationalError,
    SQLAlchemyError,
)
from sqlmodel import Session, SQLModel, create_engine

from cuentas import models  # noqa: F401  # ensure table registration
from cuentas.config import DATABASE_URL, DB_ECHO, DB_POOL_TIMEOUT
from cuentas.exceptions import DatabaseConnectionError, PersistenceError, RollbackError

logger = logging.getLogger(__name__)


class ConnectionProvider:
    """
    Fábrica de conexiones y sesiones sobre un Engine de SQLAlchemy.

    Cada `transaction()` obtiene su propia conexión del pool, así que dos
    operaciones no comparten el estado de autocommit ni el handle. La conexión
    compartida de `get_connection()` se conserva para chequeos puntuales y
    sólo debe usarla un llamador a la vez.
    """

    def __init__(
        self,
        url: Union[str, URL, None] = None,
        *,
        engine: Engine | None = None,
        echo: bool = DB_ECHO,
        pool_timeout: int = DB_POOL_TIMEOUT,
    ) -> None:
        self._url = url if url is not None else DATABASE_URL
        self._engine = engine
        self._echo = echo
        self._pool_timeout = pool_timeout
        self._connection: Connection | None = None

    @property
    def url(self) -> str:
        if self._engine is not None:
            return self._engine.url.render_as_string(hide_password=True)
        return make_url(self._url).render_as_string(hide_password=True)

    def get_engine(self) -> Engine:
        """Return the engine, creating it if necessary."""
        if self._engine is None:
            try:
                url = make_url(self._url)
                kwargs = {"echo": self._echo, "pool_pre_ping": True}
                if url.get_backend_name() != "sqlite":
                    kwargs["pool_timeout"] = self._pool_timeout
                self._engine = create_engine(url, **kwargs)
            except (ArgumentError, NoSuchModuleError, ImportError) as exc:
                logger.error("No se pudo cargar el driver para %s: %s", self._url, exc)
                raise DatabaseConnectionError(f"Driver de base de datos no disponible: {exc}") from exc
            logger.info("Motor de base de datos creado para %s", self.url)
        return self._engine

    def get_connection(self) -> Connection:
        """Conexión compartida; se reabre si no existe o fue cerrada."""
        if self._connection is None or self._connection.closed:
            engine = self.get_engine()
            try:
                self._connection = engine.connect()
            except (OperationalError, InterfaceError) as exc:
                logger.error("Error al conectar con la base de datos: %s", exc)
                raise DatabaseConnectionError(f"No se pudo conectar a {self.url}") from exc
            logger.info("Conectado correctamente a la base de datos.")
        return self._connection

    def close_connection(self) -> None:
        connection = self._connection
        self._connection = None
        if connection is None or connection.closed:
            return
        try:
            connection.close()
            logger.info("Conexión cerrada correctamente.")
        except SQLAlchemyError as exc:
            logger.error("Error al cerrar la conexión: %s", exc)

    def init_db(self) -> None:
        """Create database tables so a fresh environment boots cleanly."""
        engine = self.get_engine()
        try:
            SQLModel.metadata.create_all(bind=engine)
        except (OperationalError, InterfaceError) as exc:
            raise DatabaseConnectionError(f"No se pudo conectar a {self.url}") from exc
        logger.info("Tablas de la base de datos verificadas/creadas.")

    def dispose(self) -> None:
        self.close_connection()
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def _open_session(self) -> Session:
        session = Session(self.get_engine(), expire_on_commit=False)
        try:
            session.connection()
        except (OperationalError, InterfaceError) as exc:
            session.close()
            logger.error("No se pudo obtener una conexión: %s", exc)
            raise DatabaseConnectionError(f"No se pudo conectar a {self.url}") from exc
        return session

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Sesión de sólo lectura; se cierra siempre al salir."""
        session = self._open_session()
        try:
            yield session
        finally:
            _close_quietly(session)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Unidad de trabajo: commit si el bloque termina bien, rollback ante
        cualquier excepción (que se relanza sin cambios) y cierre garantizado.
        """
        session = self._open_session()
        try:
            yield session
            try:
                session.commit()
            except SQLAlchemyError as exc:
                raise PersistenceError("No se pudo confirmar la transacción", operation="commit") from exc
        except BaseException as exc:
            _rollback_quietly(session, exc)
            raise
        finally:
            _close_quietly(session)


def _rollback_quietly(session: Session, cause: BaseException) -> None:
    try:
        session.rollback()
        logger.info("Transacción revertida (%s).", type(cause).__name__)
    except Exception as exc:
        error = RollbackError("No se pudo revertir la transacción")
        error.__cause__ = exc
        logger.error("%s; se conserva el error original %r", error, cause, exc_info=error)


def _close_quietly(session: Session) -> None:
    try:
        session.close()
    except Exception as exc:
        logger.error("Error al liberar la conexión: %s", exc)


_provider: ConnectionProvider | None = None


def get_provider() -> ConnectionProvider:
    """Return the application provider, creating it if necessary."""
    global _provider
    if _provider is None:
        _provider = ConnectionProvider()
    return _provider


def set_provider(provider: Optional[ConnectionProvider]) -> None:
    """Override the application provider (useful for testing)."""
    global _provider
    _provider = provider


def set_engine(engine: Engine | None) -> None:
    """Override the application engine (useful for testing)."""
    set_provider(ConnectionProvider(engine=engine) if engine is not None else None)


def get_connection() -> Connection:
    return get_provider().get_connection()


def close_connection() -> None:
    if _provider is not None:
        _provider.close_connection()
