"""
Connection-string codec for space-separated key=value PostgreSQL DSNs.

Every tenant connection string is derived from the shared DSN by rewriting its
``dbname`` token; every other token (host, port, user, password, sslmode,
TimeZone, ...) is kept verbatim and in place. The functions here are pure and
stateless.

DSN Format:
    ``host=localhost user=pgsql-saas password=pgsql-saas dbname=pgsql-saas port=5435 sslmode=disable``

    - Tokens are separated by whitespace
    - Each token must be ``key=value`` with a non-empty key
    - ``dbname`` is mandatory for every operation in this module

Usage:
    ```python
    from saas.database.dsn import ConnStrGenerator, with_suffixed_database_name

    template = with_suffixed_database_name(shared_dsn, TENANT_ID_PLACEHOLDER)
    # "... dbname=pgsql-saas-%s ..."
    ConnStrGenerator(template).generate("42")
    # "... dbname=pgsql-saas-42 ..."
    ```
"""

from sqlalchemy.engine import URL

from saas.exceptions import MalformedConnectionStringError

DBNAME_KEY = "dbname"
TENANT_ID_PLACEHOLDER = "%s"


def parse_dsn(dsn: str) -> list[tuple[str, str]]:
    """
    Split a DSN into ordered ``(key, value)`` pairs.

    Values may themselves contain ``=`` (only the first one separates key and
    value). Consecutive whitespace is ignored.

    Raises:
        MalformedConnectionStringError: If a token is not a ``key=value`` pair.
    """
    pairs = []
    for token in dsn.split():
        key, sep, value = token.partition("=")
        if not sep or not key:
            msg = f"invalid key-value pair: {token}"
            raise MalformedConnectionStringError(msg)
        pairs.append((key, value))
    return pairs


def format_dsn(pairs: list[tuple[str, str]]) -> str:
    return " ".join(f"{key}={value}" for key, value in pairs)


def _require_dbname(pairs: list[tuple[str, str]], dsn: str) -> int:
    for index, (key, _) in enumerate(pairs):
        if key == DBNAME_KEY:
            return index
    msg = f"dbname key not found in DSN: {redact_dsn(dsn)}"
    raise MalformedConnectionStringError(msg)


def extract_database_name(dsn: str) -> str:
    """Return the value of the ``dbname`` token."""
    pairs = parse_dsn(dsn)
    return pairs[_require_dbname(pairs, dsn)][1]


def without_database_name(dsn: str) -> str:
    """Return the DSN with its ``dbname`` token removed (a server-level DSN)."""
    pairs = parse_dsn(dsn)
    index = _require_dbname(pairs, dsn)
    return format_dsn(pairs[:index] + pairs[index + 1:])


def with_database_name(dsn: str, database_name: str) -> str:
    """Return the DSN with the ``dbname`` value replaced, keeping its position."""
    pairs = parse_dsn(dsn)
    index = _require_dbname(pairs, dsn)
    pairs[index] = (DBNAME_KEY, database_name)
    return format_dsn(pairs)


def with_suffixed_database_name(dsn: str, suffix: str) -> str:
    """
    Append ``-<suffix>`` to the database name.

    Example:
        ``dbname=shared`` with suffix ``42`` becomes ``dbname=shared-42``.
    """
    return with_database_name(dsn, f"{extract_database_name(dsn)}-{suffix}")


def redact_dsn(dsn: str) -> str:
    """Mask the password token so a DSN can be logged."""
    redacted = []
    for token in dsn.split():
        key, sep, _ = token.partition("=")
        redacted.append(f"{key}=***" if sep and key == "password" else token)
    return " ".join(redacted)


def dsn_to_url(
    dsn: str,
    drivername: str = "postgresql+asyncpg",
    database_name: str | None = None,
) -> tuple[URL, dict]:
    """
    Convert a key=value DSN into a SQLAlchemy URL and asyncpg connect arguments.

    Args:
        dsn: The DSN to convert. ``dbname`` may be absent when ``database_name``
            is given (server-level DSNs produced by ``without_database_name``).
        drivername: SQLAlchemy driver name.
        database_name: Overrides the database the URL points at.

    Returns:
        Tuple of (URL, connect_args). ``sslmode`` maps to asyncpg's ``ssl``
        argument and ``TimeZone``/``application_name`` to ``server_settings``.
    """
    values = dict(parse_dsn(dsn))
    database = database_name or values.get(DBNAME_KEY)
    if not database:
        msg = f"dbname key not found in DSN: {redact_dsn(dsn)}"
        raise MalformedConnectionStringError(msg)

    port = values.get("port")
    url = URL.create(
        drivername=drivername,
        username=values.get("user"),
        password=values.get("password"),
        host=values.get("host"),
        port=int(port) if port else None,
        database=database,
    )

    connect_args: dict = {}
    sslmode = values.get("sslmode")
    if sslmode:
        connect_args["ssl"] = False if sslmode == "disable" else sslmode
    server_settings = {}
    if values.get("TimeZone"):
        server_settings["timezone"] = values["TimeZone"]
    if values.get("application_name"):
        server_settings["application_name"] = values["application_name"]
    if server_settings:
        connect_args["server_settings"] = server_settings
    return url, connect_args


class ConnStrGenerator:
    """
    Generates per-tenant connection strings from a template whose database
    name carries a ``%s`` placeholder for the tenant id.

    Only the ``dbname`` token is rewritten, so a password containing ``%s``
    is never touched.
    """

    def __init__(self, template: str) -> None:
        database_name = extract_database_name(template)
        if TENANT_ID_PLACEHOLDER not in database_name:
            msg = f"connection string template has no {TENANT_ID_PLACEHOLDER} placeholder in dbname"
            raise MalformedConnectionStringError(msg)
        self.template = template

    @classmethod
    def from_shared_dsn(cls, shared_dsn: str) -> "ConnStrGenerator":
        return cls(with_suffixed_database_name(shared_dsn, TENANT_ID_PLACEHOLDER))

    def generate(self, tenant_id: str) -> str:
        database_name = extract_database_name(self.template)
        return with_database_name(
            self.template, database_name.replace(TENANT_ID_PLACEHOLDER, tenant_id)
        )
