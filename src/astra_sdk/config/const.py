# src/astra_sdk/config/const.py
from __future__ import annotations

# Имена полей: одинаковые для process properties, переменных окружения и ~/.astrarc
ASTRA_DB_ID = "ASTRA_DB_ID"
ASTRA_DB_REGION = "ASTRA_DB_REGION"
ASTRA_DB_APPLICATION_TOKEN = "ASTRA_DB_APPLICATION_TOKEN"
ASTRA_DB_CLIENT_ID = "ASTRA_DB_CLIENT_ID"
ASTRA_DB_CLIENT_SECRET = "ASTRA_DB_CLIENT_SECRET"
ASTRA_DB_USERNAME = "ASTRA_DB_USERNAME"
ASTRA_DB_PASSWORD = "ASTRA_DB_PASSWORD"
ASTRA_DB_KEYSPACE = "ASTRA_DB_KEYSPACE"
ASTRA_DB_SECURE_BUNDLE = "ASTRA_DB_SECURE_BUNDLE"

FIELD_NAMES: tuple[str, ...] = (
    ASTRA_DB_ID,
    ASTRA_DB_REGION,
    ASTRA_DB_APPLICATION_TOKEN,
    ASTRA_DB_CLIENT_ID,
    ASTRA_DB_CLIENT_SECRET,
    ASTRA_DB_USERNAME,
    ASTRA_DB_PASSWORD,
    ASTRA_DB_KEYSPACE,
    ASTRA_DB_SECURE_BUNDLE,
)

SECRET_FIELDS: frozenset[str] = frozenset({ASTRA_DB_APPLICATION_TOKEN, ASTRA_DB_CLIENT_SECRET, ASTRA_DB_PASSWORD})

# config file
ASTRARC_FILENAME = ".astrarc"
ASTRARC_DEFAULT_SECTION = "default"

# local cache of secure bundles
ASTRA_HOME_ENV = "ASTRA_HOME"
CACHE_FOLDER = ".astra"
SECURE_CONNECT_PREFIX = "secure_connect_bundle_"

TOKEN_PREFIX = "AstraCS:"

DEVOPS_URL = "https://api.astra.datastax.com"
STARGATE_URL_TEMPLATE = "https://{db_id}-{region}.apps.astra.datastax.com"

DEFAULT_TIMEOUT_SEC: float = 30.0
