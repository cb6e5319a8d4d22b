from __future__ import annotations

import io

from cuentas.scripts.menu import AppMenu


def _run(service, verifier, answers, passwords=()):
    answers = iter(answers)
    passwords = iter(passwords)
    out = io.StringIO()
    menu = AppMenu(
        service,
        verifier,
        input_fn=lambda _prompt: next(answers),
        password_fn=lambda _prompt: next(passwords),
        out=out,
    )
    menu.run()
    return out.getvalue()


def test_create_find_and_validate(service, verifier):
    output = _run(
        service,
        verifier,
        [
            "1", "bob", "bob@example.com", "Bob", "",
            "7", "bob",
            "9", "1",
            "9", "1",
            "3",
            "0",
        ],
        passwords=["secret123", "secret123", "wrong"],
    )

    assert "Usuario creado con ID 1." in output
    assert "#1 bob <bob@example.com> Bob estado=ACTIVO" in output
    assert "Credencial válida." in output
    assert "Contraseña incorrecta." in output
    assert output.rstrip().endswith("Hasta luego.")


def test_errors_are_reported_to_operator(service, verifier):
    output = _run(
        service,
        verifier,
        [
            "1", "", "sin-username@example.com", "", "",
            "2", "abc",
            "42",
            "0",
        ],
        passwords=["secret123"],
    )

    assert "Datos inválidos: El username es obligatorio" in output
    assert "Datos inválidos: 'abc' no es un ID válido" in output
    assert "Opción inválida." in output


def test_update_delete_and_rollback_demo(service, verifier):
    output = _run(
        service,
        verifier,
        [
            "1", "bob", "bob@example.com", "", "",
            "4", "1", "", "Roberto", "",
            "2", "1",
            "10", "1",
            "9", "1",
            "11",
            "5", "1",
            "3",
            "6", "1",
            "6", "1",
            "0",
        ],
        passwords=["secret123", "nueva-clave", "nueva-clave"],
    )

    assert "Usuario actualizado." in output
    assert "#1 bob <bob@example.com> Roberto estado=ACTIVO" in output
    assert "Contraseña actualizada." in output
    assert "Credencial válida." in output
    assert ">>> Se ejecutó ROLLBACK" in output
    assert "Usuario dado de baja." in output
    assert "No hay usuarios." in output
    assert "Usuario eliminado." in output
    assert "Usuario no encontrado." in output
    assert service.find_all(include_deleted=True) == []
