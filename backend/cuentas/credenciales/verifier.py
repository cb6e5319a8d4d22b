from __future__ import annotations

import logging
from enum import Enum

from cuentas.credenciales import repository as credencial_repository
from cuentas.credenciales.hashing import verify_password
from cuentas.db import ConnectionProvider, get_provider
from cuentas.exceptions import DatabaseConnectionError, HashingError, PersistenceError

logger = logging.getLogger(__name__)


class CredentialCheck(str, Enum):
    VALID = "VALID"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    NO_CREDENTIAL = "NO_CREDENTIAL"


class CredentialVerifier:
    def __init__(self, provider: ConnectionProvider | None = None) -> None:
        self.provider = provider or get_provider()

    def check(self, usuario_id: int, password: str) -> CredentialCheck:
        """
        Compara `password` contra el hash guardado del usuario.

        Distingue credencial inexistente de contraseña incorrecta; los fallos
        del sistema (conexión, consulta, hash) se propagan como excepción.
        """
        with self.provider.session() as session:
            credencial = credencial_repository.find_by_usuario_id(session, usuario_id)
            if credencial is None:
                return CredentialCheck.NO_CREDENTIAL
            stored_hash, salt = credencial.hash_password, credencial.salt

        if verify_password(password, salt, stored_hash):
            return CredentialCheck.VALID
        return CredentialCheck.INVALID_PASSWORD

    def validate_credential(self, usuario_id: int, password: str) -> bool:
        """True sólo si la contraseña coincide; cualquier error cuenta como no validado."""
        try:
            result = self.check(usuario_id, password)
        except (DatabaseConnectionError, PersistenceError, HashingError) as exc:
            logger.warning("No se pudo validar la credencial del usuario %s: %s", usuario_id, exc)
            return False
        if result is not CredentialCheck.VALID:
            logger.info("Credencial rechazada para usuario %s (%s)", usuario_id, result.value)
        return result is CredentialCheck.VALID
