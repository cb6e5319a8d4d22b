"""
Acceso a la tabla 'usuarios'.

Todas las funciones reciben la sesión del llamador y sólo hacen flush: el
commit/rollback lo decide el servicio que abrió la transacción.
"""

from __future__ import annotations

from typing import List, Optional

from sqlmodel import Session, select

from cuentas.exceptions import PersistenceError, persistence_errors
from cuentas.models import Usuario

_UPDATABLE_FIELDS = ("username", "email", "nombre", "apellido", "activo", "estado", "eliminado")


def create(session: Session, usuario: Usuario) -> int:
    """Insert the user and return the generated primary key."""
    with persistence_errors("usuarios.create"):
        session.add(usuario)
        session.flush()
    return usuario.id


def find_by_id(session: Session, usuario_id: int) -> Optional[Usuario]:
    with persistence_errors("usuarios.find_by_id"):
        return session.get(Usuario, usuario_id)


def find_by_username(session: Session, username: str) -> Optional[Usuario]:
    with persistence_errors("usuarios.find_by_username"):
        return session.exec(select(Usuario).where(Usuario.username == username)).first()


def find_by_email(session: Session, email: str) -> Optional[Usuario]:
    with persistence_errors("usuarios.find_by_email"):
        return session.exec(select(Usuario).where(Usuario.email == email)).first()


def find_all(session: Session, *, include_deleted: bool = False) -> List[Usuario]:
    statement = select(Usuario).order_by(Usuario.id)
    if not include_deleted:
        statement = statement.where(Usuario.eliminado.is_(False))
    with persistence_errors("usuarios.find_all"):
        return list(session.exec(statement).all())


def update(session: Session, usuario: Usuario) -> Usuario:
    """Copy the persistent fields of `usuario` onto the stored row."""
    with persistence_errors("usuarios.update"):
        existing = session.get(Usuario, usuario.id) if usuario.id is not None else None
        if existing is None:
            raise PersistenceError(
                f"Usuario {usuario.id} no encontrado",
                operation="usuarios.update",
                kind="not_found",
            )
        for field in _UPDATABLE_FIELDS:
            setattr(existing, field, getattr(usuario, field))
        if usuario.fecha_registro is not None:
            existing.fecha_registro = usuario.fecha_registro
        session.add(existing)
        session.flush()
    return existing


def soft_delete_by_id(session: Session, usuario_id: int) -> bool:
    with persistence_errors("usuarios.soft_delete_by_id"):
        usuario = session.get(Usuario, usuario_id)
        if usuario is None:
            return False
        usuario.mark_deleted()
        session.add(usuario)
        session.flush()
    return True


def delete_by_id(session: Session, usuario_id: int) -> bool:
    """Hard delete; the owned credential goes with it."""
    with persistence_errors("usuarios.delete_by_id"):
        usuario = session.get(Usuario, usuario_id)
        if usuario is None:
            return False
        session.delete(usuario)
        session.flush()
    return True
