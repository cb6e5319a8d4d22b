"""Generación de sal y derivación/verificación de hashes de contraseña (PBKDF2-SHA256)."""

from __future__ import annotations

import base64
import binascii
import hmac
import secrets

from passlib.exc import MissingBackendError, UnknownHashError
from passlib.hash import pbkdf2_sha256

from cuentas.config import HASH_ROUNDS, SALT_LENGTH
from cuentas.exceptions import HashingError
from cuentas.settings import MAX_SALT_LENGTH


def generate_salt(length: int = SALT_LENGTH) -> str:
    """Devuelve `length` bytes aleatorios (fuente criptográfica) codificados en base64."""
    if not 0 < length <= MAX_SALT_LENGTH:
        raise ValueError(f"La longitud de la sal debe estar entre 1 y {MAX_SALT_LENGTH}")
    return base64.b64encode(secrets.token_bytes(length)).decode("ascii")


def _decode_salt(salt: str) -> bytes:
    try:
        return base64.b64decode(salt.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise HashingError("La sal almacenada no es base64 válido") from exc


def hash_password(plain_password: str, salt: str, *, rounds: int = HASH_ROUNDS) -> str:
    """
    Deriva el hash de `plain_password` con la sal indicada.

    El resultado es determinista para el mismo par (contraseña, sal), requisito
    para poder verificar; con otra sal el hash cambia.
    """
    raw_salt = _decode_salt(salt)
    try:
        hasher = pbkdf2_sha256.using(salt=raw_salt, rounds=rounds)
        return hasher.hash(plain_password)
    except (MissingBackendError, UnknownHashError) as exc:
        raise HashingError("PBKDF2-SHA256 no está disponible en este entorno") from exc


def _stored_rounds(stored_hash: str) -> int:
    try:
        return pbkdf2_sha256.from_string(stored_hash).rounds
    except (ValueError, TypeError) as exc:
        raise HashingError("El hash almacenado no es PBKDF2-SHA256 válido") from exc


def verify_password(plain_password: str, salt: str, stored_hash: str) -> bool:
    """Recalcula el hash con la sal y las iteraciones con que se guardó."""
    candidate = hash_password(plain_password, salt, rounds=_stored_rounds(stored_hash))
    return hmac.compare_digest(candidate.encode("utf-8"), stored_hash.encode("utf-8"))
