from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from cuentas.credenciales.verifier import CredentialVerifier
from cuentas.db import ConnectionProvider, set_provider
from cuentas.models import CredencialAcceso, Usuario  # noqa: F401  # ensure table registration
from cuentas.usuarios.service import AccountService


@pytest.fixture(scope="function")
def test_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        SQLModel.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def provider(test_engine):
    provider = ConnectionProvider(engine=test_engine)
    set_provider(provider)
    try:
        yield provider
    finally:
        provider.close_connection()
        set_provider(None)


@pytest.fixture(scope="function")
def service(provider):
    return AccountService(provider)


@pytest.fixture(scope="function")
def verifier(provider):
    return CredentialVerifier(provider)
