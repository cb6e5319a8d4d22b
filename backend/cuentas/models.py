from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel

from cuentas.config import SALT_COLUMN_LENGTH


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Estado(str, Enum):
    ACTIVO = "ACTIVO"
    INACTIVO = "INACTIVO"


# —————— Definición del modelo de usuario ——————
class Usuario(SQLModel, table=True):
    """
    Representa la tabla 'usuarios' en la base de datos.

    Campos:
    - id            : Clave primaria autogenerada.
    - username/email: Únicos y obligatorios.
    - fecha_registro: Por defecto, la hora de creación del objeto.
    - estado        : Por defecto ACTIVO.
    - eliminado     : Baja lógica; la fila sigue existiendo.
    - credencial    : Credencial de acceso propia (opcional hasta persistirla).
    """

    __tablename__ = "usuarios"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, max_length=50, nullable=False)
    email: str = Field(index=True, unique=True, max_length=120, nullable=False)
    nombre: Optional[str] = Field(default=None, max_length=80)
    apellido: Optional[str] = Field(default=None, max_length=80)
    fecha_registro: Optional[datetime] = Field(default_factory=utcnow, nullable=False)
    activo: bool = Field(default=True, nullable=False)
    estado: Optional[Estado] = Field(default=Estado.ACTIVO, nullable=False)
    eliminado: bool = Field(default=False, nullable=False)

    credencial: Optional["CredencialAcceso"] = Relationship(
        back_populates="usuario",
        sa_relationship_kwargs={
            "uselist": False,
            "lazy": "selectin",
            "cascade": "all, delete-orphan",
        },
    )

    def mark_deleted(self) -> None:
        """Baja lógica: se conserva la fila y se marca como eliminada."""
        self.eliminado = True
        self.activo = False
        self.estado = Estado.INACTIVO


# —————— Credencial de acceso (hash + sal) ——————
class CredencialAcceso(SQLModel, table=True):
    """
    Representa la tabla 'credenciales'. Nunca guarda la contraseña en texto plano:
    sólo el hash PBKDF2 y la sal con la que se derivó.
    """

    __tablename__ = "credenciales"

    id: Optional[int] = Field(default=None, primary_key=True)
    usuario_id: Optional[int] = Field(
        default=None,
        foreign_key="usuarios.id",
        unique=True,
        index=True,
        nullable=False,
    )
    hash_password: str = Field(max_length=255, nullable=False)
    salt: str = Field(max_length=SALT_COLUMN_LENGTH, nullable=False)
    estado: Optional[Estado] = Field(default=Estado.ACTIVO, nullable=False)
    ultimo_cambio: Optional[datetime] = Field(default_factory=utcnow, nullable=False)

    usuario: Optional[Usuario] = Relationship(back_populates="credencial")

    def mark_password_changed(self, hash_password: str, salt: str) -> None:
        self.hash_password = hash_password
        self.salt = salt
        self.ultimo_cambio = utcnow()
