from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, SecretStr

from cuentas.models import Estado


class NuevaCredencial(BaseModel):
    """Datos de entrada de una credencial antes de derivar su hash."""

    password: SecretStr
    estado: Optional[Estado] = None
    ultimo_cambio: Optional[datetime] = None
