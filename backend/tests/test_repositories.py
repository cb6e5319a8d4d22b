from __future__ import annotations

import pytest

from cuentas.credenciales import repository as credencial_repository
from cuentas.exceptions import PersistenceError
from cuentas.models import CredencialAcceso, Estado, Usuario, utcnow
from cuentas.usuarios import repository as usuario_repository


def _usuario(username: str) -> Usuario:
    return Usuario(
        username=username,
        email=f"{username}@example.com",
        fecha_registro=utcnow(),
        estado=Estado.ACTIVO,
    )


def _credencial(usuario_id: int) -> CredencialAcceso:
    return CredencialAcceso(
        usuario_id=usuario_id,
        hash_password="$pbkdf2-sha256$1$c2FsdA$aGFzaA",
        salt="c2FsdA==",
        estado=Estado.ACTIVO,
        ultimo_cambio=utcnow(),
    )


def test_usuario_create_returns_generated_id(provider):
    with provider.transaction() as session:
        first = usuario_repository.create(session, _usuario("ana"))
        second = usuario_repository.create(session, _usuario("beto"))
    assert first is not None
    assert second == first + 1


def test_usuario_create_without_service_uses_column_defaults(provider):
    with provider.transaction() as session:
        usuario_id = usuario_repository.create(session, Usuario(username="ana", email="ana@example.com"))

    with provider.session() as session:
        stored = usuario_repository.find_by_id(session, usuario_id)
    assert stored.fecha_registro is not None
    assert stored.estado == Estado.ACTIVO


def test_usuario_lookups(provider):
    with provider.transaction() as session:
        usuario_id = usuario_repository.create(session, _usuario("ana"))

    with provider.session() as session:
        assert usuario_repository.find_by_id(session, usuario_id).username == "ana"
        assert usuario_repository.find_by_username(session, "ana").id == usuario_id
        assert usuario_repository.find_by_email(session, "ana@example.com").id == usuario_id
        assert usuario_repository.find_by_username(session, "nadie") is None
        assert usuario_repository.find_by_id(session, 999) is None


def test_usuario_duplicate_username_is_unique_violation(provider):
    with provider.transaction() as session:
        usuario_repository.create(session, _usuario("ana"))

    with pytest.raises(PersistenceError) as exc_info:
        with provider.transaction() as session:
            duplicate = _usuario("ana")
            duplicate.email = "otra@example.com"
            usuario_repository.create(session, duplicate)
    assert exc_info.value.kind == "unique"
    assert exc_info.value.operation == "usuarios.create"


def test_usuario_update_copies_fields(provider):
    with provider.transaction() as session:
        usuario_id = usuario_repository.create(session, _usuario("ana"))

    changes = _usuario("ana")
    changes.id = usuario_id
    changes.nombre = "Ana"
    changes.email = "ana.nueva@example.com"
    with provider.transaction() as session:
        usuario_repository.update(session, changes)

    with provider.session() as session:
        stored = usuario_repository.find_by_id(session, usuario_id)
    assert stored.nombre == "Ana"
    assert stored.email == "ana.nueva@example.com"


def test_usuario_update_missing_row_is_not_found(provider):
    ghost = _usuario("ghost")
    ghost.id = 42
    with pytest.raises(PersistenceError) as exc_info:
        with provider.transaction() as session:
            usuario_repository.update(session, ghost)
    assert exc_info.value.kind == "not_found"


def test_usuario_soft_delete_hides_from_find_all(provider):
    with provider.transaction() as session:
        keep_id = usuario_repository.create(session, _usuario("ana"))
        gone_id = usuario_repository.create(session, _usuario("beto"))

    with provider.transaction() as session:
        assert usuario_repository.soft_delete_by_id(session, gone_id) is True
        assert usuario_repository.soft_delete_by_id(session, 999) is False

    with provider.session() as session:
        assert [u.id for u in usuario_repository.find_all(session)] == [keep_id]
        assert len(usuario_repository.find_all(session, include_deleted=True)) == 2
        deleted = usuario_repository.find_by_id(session, gone_id)
    assert deleted.eliminado is True
    assert deleted.activo is False
    assert deleted.estado == Estado.INACTIVO


def test_usuario_hard_delete_removes_credential(provider):
    with provider.transaction() as session:
        usuario_id = usuario_repository.create(session, _usuario("ana"))
        credencial_repository.create(session, _credencial(usuario_id))

    with provider.transaction() as session:
        assert usuario_repository.delete_by_id(session, usuario_id) is True
        assert usuario_repository.delete_by_id(session, usuario_id) is False

    with provider.session() as session:
        assert usuario_repository.find_by_id(session, usuario_id) is None
        assert credencial_repository.find_all(session) == []


def test_credencial_requires_usuario_id(provider):
    credencial = _credencial(1)
    credencial.usuario_id = None
    with pytest.raises(PersistenceError) as exc_info:
        with provider.transaction() as session:
            credencial_repository.create(session, credencial)
    assert exc_info.value.kind == "fk"


def test_credencial_crud(provider):
    with provider.transaction() as session:
        usuario_id = usuario_repository.create(session, _usuario("ana"))
        credencial_id = credencial_repository.create(session, _credencial(usuario_id))

    with provider.session() as session:
        assert credencial_repository.find_by_id(session, credencial_id).usuario_id == usuario_id
        assert credencial_repository.find_by_usuario_id(session, usuario_id).id == credencial_id
        assert len(credencial_repository.find_all(session)) == 1

    changes = _credencial(usuario_id)
    changes.id = credencial_id
    changes.salt = "bnVldmE="
    with provider.transaction() as session:
        credencial_repository.update(session, changes)
        assert credencial_repository.soft_delete_by_id(session, credencial_id) is True

    with provider.session() as session:
        stored = credencial_repository.find_by_id(session, credencial_id)
    assert stored.salt == "bnVldmE="
    assert stored.estado == Estado.INACTIVO

    with provider.transaction() as session:
        assert credencial_repository.delete_by_id(session, credencial_id) is True
        assert credencial_repository.delete_by_id(session, credencial_id) is False

    with provider.session() as session:
        assert credencial_repository.find_by_usuario_id(session, usuario_id) is None
        assert usuario_repository.find_by_id(session, usuario_id) is not None
