from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import List, Optional

from cuentas.credenciales import repository as credencial_repository
from cuentas.credenciales.hashing import generate_salt, hash_password
from cuentas.db import ConnectionProvider, get_provider
from cuentas.exceptions import PersistenceError, ValidationError
from cuentas.models import CredencialAcceso, Estado, Usuario, utcnow
from cuentas.schemas import NuevaCredencial
from cuentas.usuarios import repository as usuario_repository

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _validate_usuario(usuario: Optional[Usuario]) -> None:
    if usuario is None:
        raise ValidationError("El usuario es obligatorio")
    if _is_blank(usuario.username):
        raise ValidationError("El username es obligatorio")
    if _is_blank(usuario.email):
        raise ValidationError("El email es obligatorio")


def _apply_usuario_defaults(usuario: Usuario) -> None:
    if usuario.fecha_registro is None:
        usuario.fecha_registro = utcnow()
    if usuario.estado is None:
        usuario.estado = Estado.ACTIVO


def _build_credencial(
    password: str, estado: Optional[Estado], ultimo_cambio: Optional[datetime]
) -> CredencialAcceso:
    salt = generate_salt()
    return CredencialAcceso(
        hash_password=hash_password(password, salt),
        salt=salt,
        estado=estado or Estado.ACTIVO,
        ultimo_cambio=ultimo_cambio or utcnow(),
    )


class AccountService:
    """Capa de negocio para Usuario: orquesta repositorios y transacciones."""

    def __init__(self, provider: ConnectionProvider | None = None) -> None:
        self.provider = provider or get_provider()

    # —————— CRUD ——————

    def create(self, usuario: Usuario) -> int:
        _validate_usuario(usuario)
        _apply_usuario_defaults(usuario)
        with self.provider.transaction() as session:
            usuario_id = usuario_repository.create(session, usuario)
        logger.info("Usuario creado con ID %s (%s)", usuario_id, usuario.username)
        return usuario_id

    def find_by_id(self, usuario_id: int) -> Optional[Usuario]:
        with self.provider.session() as session:
            return usuario_repository.find_by_id(session, usuario_id)

    def find_all(self, *, include_deleted: bool = False) -> List[Usuario]:
        with self.provider.session() as session:
            return usuario_repository.find_all(session, include_deleted=include_deleted)

    def update(self, usuario: Usuario) -> Usuario:
        _validate_usuario(usuario)
        if usuario.estado is None:
            usuario.estado = Estado.ACTIVO
        with self.provider.transaction() as session:
            updated = usuario_repository.update(session, usuario)
        logger.info("Usuario %s actualizado", usuario.id)
        return updated

    def soft_delete_by_id(self, usuario_id: int) -> bool:
        with self.provider.transaction() as session:
            found = usuario_repository.soft_delete_by_id(session, usuario_id)
        if found:
            logger.info("Usuario %s dado de baja (lógica)", usuario_id)
        return found

    def delete_by_id(self, usuario_id: int) -> bool:
        with self.provider.transaction() as session:
            found = usuario_repository.delete_by_id(session, usuario_id)
        if found:
            logger.info("Usuario %s eliminado definitivamente", usuario_id)
        return found

    def find_by_username(self, username: str) -> Optional[Usuario]:
        with self.provider.session() as session:
            return usuario_repository.find_by_username(session, username)

    def find_by_email(self, email: str) -> Optional[Usuario]:
        with self.provider.session() as session:
            return usuario_repository.find_by_email(session, email)

    # —————— Usuario + credencial ——————

    def create_user_with_credential(
        self,
        usuario: Optional[Usuario],
        credencial: Optional[NuevaCredencial],
    ) -> int:
        """
        Crea el usuario y su credencial en una única transacción.

        Orden obligatorio por la FK: primero USUARIO (genera id), luego
        CREDENCIAL con ese usuario_id. Si algo falla se revierten ambos y se
        relanza el error original.
        """
        _validate_usuario(usuario)
        if credencial is None:
            raise ValidationError("La credencial es obligatoria")
        if _is_blank(credencial.password.get_secret_value()):
            raise ValidationError("La contraseña es obligatoria")

        _apply_usuario_defaults(usuario)
        nueva = _build_credencial(
            credencial.password.get_secret_value(),
            credencial.estado,
            credencial.ultimo_cambio,
        )

        with self.provider.transaction() as session:
            usuario_id = usuario_repository.create(session, usuario)
            logger.debug("Usuario %s insertado (sin commit)", usuario_id)

            nueva.usuario_id = usuario_id
            credencial_repository.create(session, nueva)
            usuario.credencial = nueva
            logger.debug("Credencial insertada para usuario %s (sin commit)", usuario_id)

        logger.info("Usuario %s creado junto con su credencial", usuario_id)
        return usuario_id

    def change_password(self, usuario_id: int, new_password: str) -> None:
        if _is_blank(new_password):
            raise ValidationError("La contraseña es obligatoria")
        salt = generate_salt()
        hashed = hash_password(new_password, salt)

        with self.provider.transaction() as session:
            credencial = credencial_repository.find_by_usuario_id(session, usuario_id)
            if credencial is None:
                raise PersistenceError(
                    f"El usuario {usuario_id} no tiene credencial",
                    operation="credenciales.change_password",
                    kind="not_found",
                )
            credencial.mark_password_changed(hashed, salt)
            credencial_repository.update(session, credencial)
        logger.info("Contraseña actualizada para usuario %s", usuario_id)

    def demo_rollback(self, usuario: Optional[Usuario] = None) -> None:
        """
        Inserta un usuario de prueba y fuerza un error antes del commit, para
        comprobar que el rollback no deja filas. Siempre lanza PersistenceError.
        """
        if usuario is None:
            stamp = int(time.time() * 1000)
            usuario = Usuario(
                username=f"rollback_demo_{stamp}",
                email=f"demo.rollback.{stamp}@example.com",
                nombre="Demo",
                apellido="Rollback",
            )
        _validate_usuario(usuario)
        _apply_usuario_defaults(usuario)

        with self.provider.transaction() as session:
            usuario_id = usuario_repository.create(session, usuario)
            logger.info("Usuario demo creado con ID %s (sin commit)", usuario_id)
            raise PersistenceError("Error simulado para demostrar ROLLBACK", operation="demo_rollback")
