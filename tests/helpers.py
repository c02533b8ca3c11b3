"""Shared test helpers: an in-memory catalog behind a fake connection."""

from typing import Any, Optional

from schema_scaffold.base.connection import BaseConnection

# First marker found in a query decides which canned rows answer it
QUERY_KINDS = [
    ("pg_enum", "enums"),
    ("pg_available_extensions", "extensions"),
    ("information_schema.sequences", "sequences"),
    ("attisdropped", "columns"),
    ("pg_constraint", "constraints"),
    ("pg_index", "indexes"),
    ("pg_class", "tables"),
]


class FakeConnection(BaseConnection):
    """Connection that answers catalog queries from canned rows."""

    def __init__(
        self,
        catalog: Optional[dict[str, list[dict]]] = None,
        server_version: int = 160002,
        database: str = "testdb",
        is_open: bool = False,
        fail_on: Optional[str] = None,
    ):
        super().__init__(config=None)
        self.catalog = catalog or {}
        self._server_version = server_version
        self._database = database
        self._open = is_open
        self.fail_on = fail_on
        self.queries: list[tuple[str, str, tuple]] = []
        self.connect_calls = 0
        self.disconnect_calls = 0

    def connect(self) -> None:
        self._open = True
        self.connect_calls += 1

    def disconnect(self) -> None:
        self._open = False
        self.disconnect_calls += 1

    @property
    def connection(self) -> Any:
        return self

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def server_version(self) -> int:
        return self._server_version

    @property
    def database_name(self) -> str:
        return self._database

    def execute_dict(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        assert self._open, "query issued on a closed connection"
        kind = query_kind(query)
        self.queries.append((kind, query, params))
        if kind == self.fail_on:
            raise RuntimeError(f"{kind} query failed")
        return [dict(row) for row in self.catalog.get(kind, [])]

    def queries_of(self, kind: str) -> list[tuple[str, tuple]]:
        return [(query, params) for k, query, params in self.queries if k == kind]


def query_kind(query: str) -> str:
    for marker, kind in QUERY_KINDS:
        if marker in query:
            return kind
    raise AssertionError(f"Unrecognized catalog query: {query}")


def table_row(relname: str, nspname: str = "public", description: Optional[str] = None) -> dict:
    return {"nspname": nspname, "relname": relname, "description": description}


def column_row(
    relname: str,
    attnum: int,
    attname: str,
    typname: str = "int4",
    formatted: Optional[str] = None,
    nspname: str = "public",
    nullable: bool = True,
    default: Optional[str] = None,
    dropped: bool = False,
    identity: str = "",
    typtype: str = "b",
    elemtyptype: Optional[str] = None,
    basetypname: Optional[str] = None,
    formatted_base: Optional[str] = None,
    basetyptype: Optional[str] = None,
    description: Optional[str] = None,
) -> dict:
    if dropped:
        attname = f"........pg.dropped.{attnum}........"
        typname = formatted = typtype = None
    return {
        "nspname": nspname,
        "relname": relname,
        "attnum": attnum,
        "attname": attname,
        "typname": typname,
        "basetypname": basetypname,
        "description": description,
        "attisdropped": dropped,
        "attidentity": identity,
        "formatted_typname": formatted if formatted is not None else _formatted(typname),
        "formatted_basetypname": formatted_base,
        "typtype": typtype,
        "elemtyptype": elemtyptype,
        "basetyptype": basetyptype,
        "nullable": nullable,
        "column_default": default,
    }


_FORMATTED_TYPES = {
    "int2": "smallint",
    "int4": "integer",
    "int8": "bigint",
    "bool": "boolean",
    "float8": "double precision",
    "timestamp": "timestamp without time zone",
}


def _formatted(typname: Optional[str]) -> Optional[str]:
    if typname is None:
        return None
    return _FORMATTED_TYPES.get(typname, typname)


def constraint_row(
    relname: str,
    conname: str,
    contype: str,
    conkey: list[int],
    nspname: str = "public",
    conindid: int = 0,
    fr_relname: Optional[str] = None,
    fr_nspname: Optional[str] = None,
    confkey: Optional[list[int]] = None,
    confdeltype: Optional[str] = None,
) -> dict:
    if contype == "f":
        fr_nspname = fr_nspname or nspname
        confdeltype = confdeltype or "a"
    return {
        "nspname": nspname,
        "relname": relname,
        "conname": conname,
        "contype": contype,
        "conkey": conkey,
        "conindid": conindid,
        "fr_nspname": fr_nspname,
        "fr_relname": fr_relname,
        "confkey": confkey,
        "confdeltype": confdeltype,
    }


def index_row(
    relname: str,
    idx_relname: str,
    indkey: Any,
    nspname: str = "public",
    idx_oid: int = 1000,
    unique: bool = False,
    amname: str = "btree",
    exprs: Optional[str] = None,
    pred: Optional[str] = None,
) -> dict:
    return {
        "idx_oid": idx_oid,
        "nspname": nspname,
        "cls_relname": relname,
        "idx_relname": idx_relname,
        "indisunique": unique,
        "indkey": indkey,
        "amname": amname,
        "exprs": exprs,
        "pred": pred,
    }


def sequence_row(
    name: str,
    schema: str = "public",
    data_type: str = "bigint",
    start: int = 1,
    minimum: int = 1,
    maximum: int = 2**63 - 1,
    increment: int = 1,
    cyclic: bool = False,
    owner_schema: Optional[str] = None,
    owner_table: Optional[str] = None,
    owner_column: Optional[str] = None,
) -> dict:
    return {
        "sequence_schema": schema,
        "sequence_name": name,
        "data_type": data_type,
        "start_value": start,
        "minimum_value": minimum,
        "maximum_value": maximum,
        "increment": increment,
        "is_cyclic": cyclic,
        "owner_schema": owner_schema,
        "owner_table": owner_table,
        "owner_column": owner_column,
    }


def enum_row(typname: str, labels: list[str], nspname: str = "public") -> dict:
    return {"nspname": nspname, "typname": typname, "labels": labels}


def extension_row(name: str, installed_version: Optional[str] = "1.0") -> dict:
    return {"name": name, "default_version": installed_version or "1.0", "installed_version": installed_version}


def diagnostics_of(caplog, event: str) -> list[dict]:
    """Structured fields of all captured diagnostic records for an event."""
    return [
        record.diagnostic
        for record in caplog.records
        if getattr(record, "diagnostic", {}).get("event") == event
    ]
