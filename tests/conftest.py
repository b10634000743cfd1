"""Shared fixtures.

The store tests in tests/db run against PostgreSQL: a Testcontainers server
when Docker is usable, otherwise the server named by the DB_* settings. Each
test gets a freshly created schema so an existing store is never touched.

When neither server is reachable (and for the pipeline and CLI tests) the
store runs on in-memory SQLite through a small shim that speaks the psycopg2
``%s`` placeholder style, cursor context-manager protocol and exception
classes. The shim DDL is derived from the production SCHEMA_QUERIES so table
and column names stay in sync.
"""

from __future__ import annotations

import copy
import gzip
import json
import os
import sqlite3
from datetime import datetime
from typing import Any

import psycopg2
import pytest

from cve_ingest.config.settings import DBConfig, get_db_config, get_settings
from cve_ingest.db.database import CveDatabase
from cve_ingest.sources.base.exceptions import ConfigException
from cve_ingest.sources.nvd.models import ArchiveItem

TEST_SCHEMA = "cve_ingest_test"


def _has_docker() -> bool:
    # Testcontainers needs a working Docker socket
    return os.path.exists("/var/run/docker.sock") or bool(os.getenv("DOCKER_HOST"))


def _connect(config: DBConfig, **kwargs):
    return psycopg2.connect(
        host=config.host,
        port=config.port,
        database=config.database,
        user=config.user,
        password=config.password,
        connect_timeout=5,
        **kwargs,
    )


def sqlite_ddl(query: str) -> str:
    return (
        query.replace("SERIAL PRIMARY KEY", "INTEGER PRIMARY KEY AUTOINCREMENT")
        .replace("JSONB", "TEXT")
        .replace("DOUBLE PRECISION", "REAL")
    )


def _as_driver_error(error: sqlite3.Error) -> psycopg2.Error:
    if isinstance(error, sqlite3.IntegrityError):
        return psycopg2.IntegrityError(str(error))
    return psycopg2.DatabaseError(str(error))


class FailInjectingCursor:
    """Cursor wrapper that raises a driver error for any query containing owner.fail_on"""

    def __init__(self, owner: "BackendConnection", cursor):
        self._owner = owner
        self._cursor = cursor

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self._cursor.close()
        return False

    def execute(self, query: str, params=()):
        if self._owner.fail_on and self._owner.fail_on in query:
            raise psycopg2.OperationalError(f"injected failure on {self._owner.fail_on}")
        self._owner.run(self._cursor, query, params)

    def fetchone(self):
        return self._cursor.fetchone()

    def fetchall(self):
        return self._cursor.fetchall()


class BackendConnection:
    """psycopg2-style connection surface shared by the PostgreSQL and SQLite backends"""

    def __init__(self, raw):
        self.raw = raw
        self.closed = 0
        self.fail_on: str | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.raw.commit()
        else:
            self.raw.rollback()
        return False

    def cursor(self) -> FailInjectingCursor:
        return FailInjectingCursor(self, self.raw.cursor())

    def commit(self):
        self.raw.commit()

    def rollback(self):
        self.raw.rollback()

    def close(self):
        self.raw.close()
        self.closed = 1

    def run(self, cursor, query: str, params):
        raise NotImplementedError

    def query(self, sql: str, params=()) -> list[tuple]:
        """Read rows using ``?`` placeholders; timestamps come back as ISO text"""
        cursor = self.raw.cursor()
        try:
            self.run(cursor, sql.replace("?", "%s"), params)
            rows = cursor.fetchall()
        finally:
            cursor.close()
        self.raw.rollback()
        return [tuple(v.isoformat() if isinstance(v, datetime) else v for v in row) for row in rows]


class SQLiteConnection(BackendConnection):
    """In-memory sqlite3 connection translating the PostgreSQL DDL and driver errors"""

    def __init__(self):
        super().__init__(sqlite3.connect(":memory:"))
        self.raw.execute("PRAGMA foreign_keys = ON")

    def run(self, cursor, query: str, params):
        if query.lstrip().upper().startswith("CREATE TABLE"):
            query = sqlite_ddl(query)
        try:
            cursor.execute(query.replace("%s", "?"), params)
        except sqlite3.Error as e:
            raise _as_driver_error(e) from e


class PostgresConnection(BackendConnection):
    """psycopg2 connection confined to a throwaway schema"""

    def __init__(self, config: DBConfig):
        super().__init__(_connect(config, options=f"-c search_path={TEST_SCHEMA}"))
        self._reset_schema(create=True)

    def _reset_schema(self, create: bool):
        with self.raw.cursor() as cursor:
            cursor.execute(f"DROP SCHEMA IF EXISTS {TEST_SCHEMA} CASCADE")
            if create:
                cursor.execute(f"CREATE SCHEMA {TEST_SCHEMA}")
        self.raw.commit()

    def run(self, cursor, query: str, params):
        cursor.execute(query, params)

    def close(self):
        if not self.raw.closed:
            self.raw.rollback()
            self._reset_schema(create=False)
        super().close()


@pytest.fixture(scope="session")
def postgres_config():
    """Settings of a reachable PostgreSQL server, or None when there is none.

    Tries Testcontainers first, then the DB_* settings from the environment.
    """
    if _has_docker():
        try:
            from testcontainers.postgres import PostgresContainer

            container = PostgresContainer("postgres:16-alpine")
            container.start()
        except Exception as e:
            print(f"[tests] Testcontainers PostgreSQL not available: {e}")
        else:
            try:
                yield DBConfig(
                    host=container.get_container_host_ip(),
                    port=int(container.get_exposed_port(5432)),
                    database=container.dbname,
                    user=container.username,
                    password=container.password,
                )
            finally:
                container.stop()
            return

    config = None
    try:
        config = get_db_config(get_settings())
        _connect(config).close()
    except (ConfigException, psycopg2.Error) as e:
        print(f"[tests] No PostgreSQL server configured, store tests use SQLite: {e}")
        config = None
    yield config


@pytest.fixture
def db_conn(postgres_config) -> BackendConnection:
    conn = PostgresConnection(postgres_config) if postgres_config else SQLiteConnection()
    yield conn
    if not conn.closed:
        conn.close()


@pytest.fixture
def db_store(db_conn) -> CveDatabase:
    db = CveDatabase(conn=db_conn)
    db.initialize_schema()
    return db


@pytest.fixture
def sqlite_conn() -> SQLiteConnection:
    conn = SQLiteConnection()
    yield conn
    if not conn.closed:
        conn.close()


@pytest.fixture
def store(sqlite_conn) -> CveDatabase:
    db = CveDatabase(conn=sqlite_conn)
    db.initialize_schema()
    return db


CVSS_V3 = {
    "version": "3.1",
    "vectorString": "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H",
    "attackVector": "NETWORK",
    "attackComplexity": "LOW",
    "privilegesRequired": "NONE",
    "userInteraction": "NONE",
    "scope": "UNCHANGED",
    "confidentialityImpact": "HIGH",
    "integrityImpact": "HIGH",
    "availabilityImpact": "HIGH",
    "baseScore": 9.8,
    "baseSeverity": "CRITICAL",
}

CVSS_V2 = {
    "version": "2.0",
    "vectorString": "AV:L/AC:M/Au:S/C:P/I:N/A:C",
    "accessVector": "LOCAL",
    "accessComplexity": "MEDIUM",
    "authentication": "SINGLE",
    "confidentialityImpact": "PARTIAL",
    "integrityImpact": "NONE",
    "availabilityImpact": "COMPLETE",
    "baseScore": 5.4,
}


def raw_item(cve_id: str = "CVE-2020-0001", *, v3: bool = True, v2: bool = True,
             references: list[str] | None = None, nodes: list[dict] | None = None,
             cwe: str | None = "CWE-79", published: str = "2020-01-02T03:04Z",
             modified: str = "2020-02-03T04:05Z") -> dict[str, Any]:
    """One CVE_Items entry as it appears in the NVD 1.1 feed"""
    impact: dict[str, Any] = {}
    if v3:
        impact["baseMetricV3"] = {
            "cvssV3": copy.deepcopy(CVSS_V3), "exploitabilityScore": 3.9, "impactScore": 5.9}
    if v2:
        impact["baseMetricV2"] = {
            "cvssV2": copy.deepcopy(CVSS_V2), "severity": "MEDIUM",
            "exploitabilityScore": 3.4, "impactScore": 7.8, "acInsufInfo": False}

    problemtype_data = [{"description": [{"lang": "en", "value": cwe}]}] if cwe else []
    if references is None:
        references = ["https://example.com/advisory"]
    if nodes is None:
        nodes = [{
            "operator": "OR",
            "cpe_match": [
                {"vulnerable": True, "cpe23Uri": "cpe:2.3:a:acme:widget:1.0:*:*:*:*:*:*:*"},
            ],
        }]

    return {
        "cve": {
            "data_type": "CVE",
            "data_format": "MITRE",
            "data_version": "4.0",
            "CVE_data_meta": {"ID": cve_id, "ASSIGNER": "cve@mitre.org"},
            "problemtype": {"problemtype_data": problemtype_data},
            "references": {"reference_data": [
                {"url": url, "name": url, "refsource": "MISC", "tags": []} for url in references
            ]},
            "description": {"description_data": [{"lang": "en", "value": f"Summary of {cve_id}"}]},
        },
        "configurations": {"CVE_data_version": "4.0", "nodes": nodes},
        "impact": impact,
        "publishedDate": published,
        "lastModifiedDate": modified,
    }


def make_item(*args, **kwargs) -> ArchiveItem:
    return ArchiveItem.model_validate(raw_item(*args, **kwargs))


def archive_bytes(items: list[dict]) -> bytes:
    document = {
        "CVE_data_type": "CVE",
        "CVE_data_format": "MITRE",
        "CVE_data_version": "4.0",
        "CVE_data_numberOfCVEs": str(len(items)),
        "CVE_data_timestamp": "2020-12-31T23:59Z",
        "CVE_Items": items,
    }
    return gzip.compress(json.dumps(document).encode("utf-8"))


def delta_entry(cve_id: str = "CVE-2024-1234", **overrides) -> dict[str, Any]:
    """One element of the CIRCL last feed"""
    entry = {
        "Modified": "2024-05-01T10:00:00",
        "Published": "2024-04-30T09:00:00",
        "access": {"authentication": "NONE", "complexity": "LOW", "vector": "NETWORK"},
        "assigner": "cve@mitre.org",
        "capec": [{
            "id": "63",
            "name": "Cross-Site Scripting (XSS)",
            "prerequisites": "Target client software must allow scripting",
            "related_weakness": ["79", "20"],
            "solutions": "Design: Use browser technologies that do not allow client side scripting.",
            "summary": "An adversary embeds malicious scripts in content",
        }],
        "cvss": 6.1,
        "cvss-time": "2024-05-01T10:00:00",
        "cvss-vector": "AV:N/AC:M/Au:N/C:N/I:P/A:N",
        "cwe": "CWE-79",
        "id": cve_id,
        "impact": {"availability": "NONE", "confidentiality": "NONE", "integrity": "PARTIAL"},
        "last-modified": "2024-05-01T10:00:00",
        "references": ["https://example.org/1", "https://example.org/2"],
        "summary": "Reflected XSS in the search form.",
        "vulnerable_configuration": ["cpe:2.3:a:acme:portal:2.0:*:*:*:*:*:*:*"],
        "vulnerable_configuration_cpe_2_2": [{"id": "cpe:/a:acme:portal:2.0", "title": "ACME Portal 2.0"}],
        "vulnerable_product": ["cpe:2.3:a:acme:portal:2.0:*:*:*:*:*:*:*"],
    }
    entry.update(overrides)
    return entry
