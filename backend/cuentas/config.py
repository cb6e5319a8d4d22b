from cuentas.settings import MAX_SALT_LENGTH, settings

# —————— Conexión a la base de datos ——————
# DATABASE_URL   : URL SQLAlchemy armada a partir de DB_DRIVER/DB_HOST/DB_NAME/DB_USER/DB_PASS
#                  (o tomada tal cual de DATABASE_URL si está definida)
# DB_ECHO        : Si es True, SQLAlchemy registra cada sentencia SQL emitida
# DB_POOL_TIMEOUT: Segundos máximos de espera para obtener una conexión del pool
DATABASE_URL = settings.sqlalchemy_url()
DB_ECHO = settings.db_echo
DB_POOL_TIMEOUT = settings.db_pool_timeout

# —————— Hash de contraseñas ——————
# SALT_LENGTH: Cantidad de bytes aleatorios de la sal de cada credencial
# HASH_ROUNDS: Iteraciones de PBKDF2-SHA256 al derivar el hash
# SALT_COLUMN_LENGTH: Caracteres base64 de la sal más larga admitida
SALT_LENGTH = settings.salt_length
HASH_ROUNDS = settings.hash_rounds
SALT_COLUMN_LENGTH = 4 * MAX_SALT_LENGTH // 3

# —————— Logging ——————
LOG_LEVEL = settings.log_level
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
