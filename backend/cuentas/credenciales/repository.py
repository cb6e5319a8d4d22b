from __future__ import annotations

from typing import List, Optional

from sqlmodel import Session, select

from cuentas.exceptions import PersistenceError, persistence_errors
from cuentas.models import CredencialAcceso, Estado

_UPDATABLE_FIELDS = ("hash_password", "salt", "estado", "ultimo_cambio")


def create(session: Session, credencial: CredencialAcceso) -> int:
    """
    Insert a credential. `usuario_id` must already point to a user inserted
    in the same session.
    """
    if credencial.usuario_id is None:
        raise PersistenceError(
            "La credencial no tiene usuario_id",
            operation="credenciales.create",
            kind="fk",
        )
    with persistence_errors("credenciales.create"):
        session.add(credencial)
        session.flush()
    return credencial.id


def find_by_id(session: Session, credencial_id: int) -> Optional[CredencialAcceso]:
    with persistence_errors("credenciales.find_by_id"):
        return session.get(CredencialAcceso, credencial_id)


def find_by_usuario_id(session: Session, usuario_id: int) -> Optional[CredencialAcceso]:
    with persistence_errors("credenciales.find_by_usuario_id"):
        return session.exec(
            select(CredencialAcceso).where(CredencialAcceso.usuario_id == usuario_id)
        ).first()


def find_all(session: Session) -> List[CredencialAcceso]:
    with persistence_errors("credenciales.find_all"):
        return list(session.exec(select(CredencialAcceso).order_by(CredencialAcceso.id)).all())


def update(session: Session, credencial: CredencialAcceso) -> CredencialAcceso:
    with persistence_errors("credenciales.update"):
        existing = session.get(CredencialAcceso, credencial.id) if credencial.id is not None else None
        if existing is None:
            raise PersistenceError(
                f"Credencial {credencial.id} no encontrada",
                operation="credenciales.update",
                kind="not_found",
            )
        for field in _UPDATABLE_FIELDS:
            value = getattr(credencial, field)
            if value is not None:
                setattr(existing, field, value)
        session.add(existing)
        session.flush()
    return existing


def soft_delete_by_id(session: Session, credencial_id: int) -> bool:
    with persistence_errors("credenciales.soft_delete_by_id"):
        credencial = session.get(CredencialAcceso, credencial_id)
        if credencial is None:
            return False
        credencial.estado = Estado.INACTIVO
        session.add(credencial)
        session.flush()
    return True


def delete_by_id(session: Session, credencial_id: int) -> bool:
    with persistence_errors("credenciales.delete_by_id"):
        credencial = session.get(CredencialAcceso, credencial_id)
        if credencial is None:
            return False
        session.delete(credencial)
        session.flush()
    return True
