import json
from pathlib import Path
from typing import Optional

from starlette.config import Config
from starlette.datastructures import Secret

from ..models.pydantic.database import DatabaseURL

# Read .env file, if exists
p: Path = Path(__file__).parents[2] / ".env"
config: Config = Config(p if p.exists() else None)

empty_db_secret = {
    "dbInstanceIdentifier": None,
    "dbname": "site_polygons",
    "engine": None,
    "host": "localhost",
    "password": None,  # pragma: allowlist secret
    "port": 5432,
    "username": None,
}

# As of writing, Fargate doesn't support to fetch secrets by key.
# Only entire secret object can be obtained.
DB_WRITER_SECRET = json.loads(
    config("DB_WRITER_SECRET", cast=str, default=json.dumps(empty_db_secret))
)
DB_READER_SECRET = json.loads(
    config("DB_READER_SECRET", cast=str, default=json.dumps(empty_db_secret))
)

ENV = config("ENV", cast=str, default="dev")

READER_USERNAME: Optional[str] = config(
    "DB_USER_RO", cast=str, default=DB_READER_SECRET["username"]
)
READER_PASSWORD: Optional[Secret] = config(
    "DB_PASSWORD_RO", cast=Secret, default=DB_READER_SECRET["password"]
)
READER_HOST: str = config("DB_HOST_RO", cast=str, default=DB_READER_SECRET["host"])
READER_PORT: int = config("DB_PORT_RO", cast=int, default=DB_READER_SECRET["port"])
READER_DBNAME = config("DATABASE_RO", cast=str, default=DB_READER_SECRET["dbname"])

WRITER_USERNAME: Optional[str] = config(
    "DB_USER", cast=str, default=DB_WRITER_SECRET["username"]
)
WRITER_PASSWORD: Optional[Secret] = config(
    "DB_PASSWORD", cast=Secret, default=DB_WRITER_SECRET["password"]
)
WRITER_HOST: str = config("DB_HOST", cast=str, default=DB_WRITER_SECRET["host"])
WRITER_PORT: int = config("DB_PORT", cast=int, default=DB_WRITER_SECRET["port"])
WRITER_DBNAME = config("DATABASE", cast=str, default=DB_WRITER_SECRET["dbname"])

if ENV == "dev":
    NAME_SUFFIX = config("NAME_SUFFIX", cast=str, default="")
    READER_DBNAME = f"{READER_DBNAME}{NAME_SUFFIX}"
    WRITER_DBNAME = f"{WRITER_DBNAME}{NAME_SUFFIX}"

DATABASE_CONFIG: DatabaseURL = DatabaseURL(
    drivername="asyncpg",
    username=READER_USERNAME,
    password=READER_PASSWORD,
    host=READER_HOST,
    port=READER_PORT,
    database=READER_DBNAME,
)

WRITE_DATABASE_CONFIG: DatabaseURL = DatabaseURL(
    drivername="asyncpg",
    username=WRITER_USERNAME,
    password=WRITER_PASSWORD,
    host=WRITER_HOST,
    port=WRITER_PORT,
    database=WRITER_DBNAME,
)

ALEMBIC_CONFIG: DatabaseURL = DatabaseURL(
    drivername="postgresql+psycopg2",
    username=WRITER_USERNAME,
    password=WRITER_PASSWORD,
    host=WRITER_HOST,
    port=WRITER_PORT,
    database=WRITER_DBNAME,
)

SQL_REQUEST_TIMEOUT = 58

RW_API_URL = config("RW_API_URL", cast=str, default=None)
EMAIL_SERVICE_URL = config("EMAIL_SERVICE_URL", cast=str, default=None)
SERVICE_ACCOUNT_TOKEN = config("SERVICE_ACCOUNT_TOKEN", cast=str, default=None)

# Overlaps at or below both thresholds are resolved by clipping,
# anything larger needs a manual fix.
MAX_OVERLAP_PERCENTAGE: float = config(
    "MAX_OVERLAP_PERCENTAGE", cast=float, default=3.5
)
MAX_OVERLAP_AREA_HECTARES: float = config(
    "MAX_OVERLAP_AREA_HECTARES", cast=float, default=0.1
)

# Both in degrees (EPSG:4326 coordinate units)
BUFFER_DISTANCE: float = config("BUFFER_DISTANCE", cast=float, default=0.000001)
SIMPLIFY_TOLERANCE: float = config(
    "SIMPLIFY_TOLERANCE", cast=float, default=0.0000005
)

BATCH_SIZE: int = config("BATCH_SIZE", cast=int, default=20)
CLIPPING_CONCURRENCY: int = config("CLIPPING_CONCURRENCY", cast=int, default=10)

HOUR: int = int(60 * 60)
JOB_TTL_HOURS: int = config("JOB_TTL_HOURS", cast=int, default=1)
KEEP_JOBS_TIMEOUT: int = HOUR * JOB_TTL_HOURS
