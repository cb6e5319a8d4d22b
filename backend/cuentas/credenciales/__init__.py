"""Credenciales de acceso: hash de contraseñas, repositorio y verificación."""

from .hashing import generate_salt, hash_password, verify_password
from .verifier import CredentialCheck, CredentialVerifier

__all__ = [
    "CredentialCheck",
    "CredentialVerifier",
    "generate_salt",
    "hash_password",
    "verify_password",
]
