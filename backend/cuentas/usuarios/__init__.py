"""Usuarios: repositorio y servicio de cuentas."""

from .service import AccountService

__all__ = ["AccountService"]
