"""Menú de consola para administrar usuarios y credenciales."""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Callable, Optional, TextIO

from cuentas.config import LOG_FORMAT, LOG_LEVEL
from cuentas.credenciales.verifier import CredentialCheck, CredentialVerifier
from cuentas.db import ConnectionProvider, set_provider
from cuentas.exceptions import CuentasError, DatabaseConnectionError, PersistenceError, ValidationError
from cuentas.models import Usuario
from cuentas.schemas import NuevaCredencial
from cuentas.usuarios.service import AccountService

logger = logging.getLogger(__name__)

OPCIONES = (
    ("1", "Crear usuario con credencial"),
    ("2", "Buscar usuario por ID"),
    ("3", "Listar usuarios"),
    ("4", "Actualizar usuario"),
    ("5", "Baja lógica de usuario"),
    ("6", "Eliminar usuario definitivamente"),
    ("7", "Buscar usuario por username"),
    ("8", "Buscar usuario por email"),
    ("9", "Validar credencial"),
    ("10", "Cambiar contraseña"),
    ("11", "Demo de rollback"),
    ("0", "Salir"),
)


def format_usuario(usuario: Usuario) -> str:
    estado = usuario.estado.value if usuario.estado else "-"
    nombre = " ".join(part for part in (usuario.nombre, usuario.apellido) if part) or "-"
    flags = " [eliminado]" if usuario.eliminado else ""
    return f"#{usuario.id} {usuario.username} <{usuario.email}> {nombre} estado={estado}{flags}"


class AppMenu:
    def __init__(
        self,
        service: AccountService,
        verifier: CredentialVerifier,
        *,
        input_fn: Callable[[str], str] = input,
        password_fn: Callable[[str], str] = getpass.getpass,
        out: Optional[TextIO] = None,
    ) -> None:
        self.service = service
        self.verifier = verifier
        self.input_fn = input_fn
        self.password_fn = password_fn
        self.out = out or sys.stdout
        self.acciones = {
            "1": self.crear_usuario,
            "2": self.buscar_por_id,
            "3": self.listar,
            "4": self.actualizar,
            "5": self.baja_logica,
            "6": self.eliminar,
            "7": self.buscar_por_username,
            "8": self.buscar_por_email,
            "9": self.validar_credencial,
            "10": self.cambiar_password,
            "11": self.demo_rollback,
        }

    def _print(self, message: str = "") -> None:
        print(message, file=self.out)

    def _ask(self, prompt: str) -> str:
        return self.input_fn(prompt).strip()

    def _ask_id(self, prompt: str = "ID de usuario: ") -> int:
        raw = self._ask(prompt)
        try:
            return int(raw)
        except ValueError:
            raise ValidationError(f"'{raw}' no es un ID válido") from None

    def _show(self, usuario: Optional[Usuario]) -> None:
        self._print(format_usuario(usuario) if usuario else "Usuario no encontrado.")

    def run(self) -> None:
        while True:
            self._print()
            for clave, texto in OPCIONES:
                self._print(f"{clave}. {texto}")
            opcion = self._ask("Opción: ")
            if opcion == "0":
                self._print("Hasta luego.")
                return
            accion = self.acciones.get(opcion)
            if accion is None:
                self._print("Opción inválida.")
                continue
            try:
                accion()
            except ValidationError as exc:
                self._print(f"Datos inválidos: {exc}")
            except DatabaseConnectionError as exc:
                self._print(f"Sin conexión a la base de datos: {exc}")
            except PersistenceError as exc:
                self._print(f"Error de persistencia: {exc}")
            except CuentasError as exc:
                self._print(f"Error: {exc}")

    def crear_usuario(self) -> None:
        usuario = Usuario(
            username=self._ask("Username: "),
            email=self._ask("Email: "),
            nombre=self._ask("Nombre: ") or None,
            apellido=self._ask("Apellido: ") or None,
        )
        credencial = NuevaCredencial(password=self.password_fn("Contraseña: "))
        usuario_id = self.service.create_user_with_credential(usuario, credencial)
        self._print(f"Usuario creado con ID {usuario_id}.")

    def buscar_por_id(self) -> None:
        self._show(self.service.find_by_id(self._ask_id()))

    def listar(self) -> None:
        usuarios = self.service.find_all()
        if not usuarios:
            self._print("No hay usuarios.")
        for usuario in usuarios:
            self._print(format_usuario(usuario))

    def actualizar(self) -> None:
        usuario = self.service.find_by_id(self._ask_id())
        if usuario is None:
            self._print("Usuario no encontrado.")
            return
        self._print("Deje vacío para conservar el valor actual.")
        usuario.email = self._ask(f"Email [{usuario.email}]: ") or usuario.email
        usuario.nombre = self._ask(f"Nombre [{usuario.nombre or ''}]: ") or usuario.nombre
        usuario.apellido = self._ask(f"Apellido [{usuario.apellido or ''}]: ") or usuario.apellido
        self.service.update(usuario)
        self._print("Usuario actualizado.")

    def baja_logica(self) -> None:
        found = self.service.soft_delete_by_id(self._ask_id())
        self._print("Usuario dado de baja." if found else "Usuario no encontrado.")

    def eliminar(self) -> None:
        found = self.service.delete_by_id(self._ask_id())
        self._print("Usuario eliminado." if found else "Usuario no encontrado.")

    def buscar_por_username(self) -> None:
        self._show(self.service.find_by_username(self._ask("Username: ")))

    def buscar_por_email(self) -> None:
        self._show(self.service.find_by_email(self._ask("Email: ")))

    def validar_credencial(self) -> None:
        usuario_id = self._ask_id()
        resultado = self.verifier.check(usuario_id, self.password_fn("Contraseña: "))
        mensajes = {
            CredentialCheck.VALID: "Credencial válida.",
            CredentialCheck.INVALID_PASSWORD: "Contraseña incorrecta.",
            CredentialCheck.NO_CREDENTIAL: "El usuario no tiene credencial.",
        }
        self._print(mensajes[resultado])

    def cambiar_password(self) -> None:
        usuario_id = self._ask_id()
        self.service.change_password(usuario_id, self.password_fn("Nueva contraseña: "))
        self._print("Contraseña actualizada.")

    def demo_rollback(self) -> None:
        self._print(">>> Iniciando demo de rollback con error simulado...")
        try:
            self.service.demo_rollback()
        except PersistenceError as exc:
            self._print(f">>> Se ejecutó ROLLBACK: {exc}")


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Gestión de usuarios y credenciales de acceso.")
    parser.add_argument("--database-url", help="URL SQLAlchemy (por defecto DATABASE_URL o DB_* del entorno).")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Nivel de logging (INFO, DEBUG, ...).")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    provider = ConnectionProvider(args.database_url)
    set_provider(provider)
    try:
        provider.init_db()
        provider.get_connection()
        logger.info("Menú iniciado contra %s", provider.url)
    except DatabaseConnectionError as exc:
        print(f"No se pudo iniciar: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        AppMenu(AccountService(provider), CredentialVerifier(provider)).run()
    finally:
        provider.dispose()


if __name__ == "__main__":
    main()
