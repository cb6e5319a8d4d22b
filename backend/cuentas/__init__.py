"""Gestión de cuentas de usuario: usuarios, credenciales de acceso y menú de consola."""
