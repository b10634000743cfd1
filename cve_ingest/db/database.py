import json
import logging
from collections import namedtuple
from typing import Dict, Iterable, Optional

import psycopg2

from ..config.settings import DBConfig
from ..models import CanonicalRecord, canonical_json
from ..sources.base.exceptions import StoreFailure
from .schema import SCHEMA_QUERIES, TABLES

logger = logging.getLogger(__name__)

# One set-valued field of CanonicalRecord: the intern table holding its
# members and the junction table linking members to a cve row.
# columns[0] is the unique interning key; to_row maps a member to one value per column.
Collection = namedtuple(
    'Collection', ['attribute', 'table', 'columns', 'junction', 'member_column', 'to_row'])


def _text_row(value):
    return (value,)


def _json_row(value):
    return (canonical_json(value), json.dumps(value))


COLLECTIONS = (
    Collection('references', 'refs', ('url',),
               'cve_references', 'ref_id', _text_row),
    Collection('vulnerable_configurations', 'vulnerable_configurations', ('cpe',),
               'cve_vulnerable_configurations', 'vulnerable_configuration_id', _text_row),
    Collection('vulnerable_configurations_cpe22', 'vulnerable_configurations_cpe22',
               ('value_key', 'value'),
               'cve_vulnerable_configurations_cpe22', 'vulnerable_configuration_cpe22_id',
               _json_row),
    Collection('vulnerable_products', 'vulnerable_products', ('product',),
               'cve_vulnerable_products', 'vulnerable_product_id', _text_row),
)

UPSERT_ACCESS = """
INSERT INTO accesses (authentication, complexity, vector)
VALUES (%s, %s, %s)
ON CONFLICT (authentication, complexity, vector) DO UPDATE SET
    authentication = EXCLUDED.authentication
RETURNING id
"""

UPSERT_IMPACT = """
INSERT INTO impacts (availability, confidentiality, integrity)
VALUES (%s, %s, %s)
ON CONFLICT (availability, confidentiality, integrity) DO UPDATE SET
    availability = EXCLUDED.availability
RETURNING id
"""

UPSERT_CVE = """
INSERT INTO cves (
    natural_id, modified, published, last_modified, assigner,
    cvss, cvss_time, cvss_vector, cwe, summary, access_id, impact_id
) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
ON CONFLICT (natural_id) DO UPDATE SET
    modified = EXCLUDED.modified,
    published = EXCLUDED.published,
    last_modified = EXCLUDED.last_modified,
    assigner = EXCLUDED.assigner,
    cvss = EXCLUDED.cvss,
    cvss_time = EXCLUDED.cvss_time,
    cvss_vector = EXCLUDED.cvss_vector,
    cwe = EXCLUDED.cwe,
    summary = EXCLUDED.summary,
    access_id = EXCLUDED.access_id,
    impact_id = EXCLUDED.impact_id
RETURNING id
"""


class CveDatabase:
    """Normalizing writer for the advisory store.

    Records are applied one at a time. Each record's writes (intern upserts,
    the cves row and the junction-set replacement) run in one transaction.
    """

    def __init__(self, config: Optional[DBConfig] = None, conn=None):
        self.config = config
        self.conn = conn
        self.progress_every = 1000

    def __enter__(self):
        if self.conn is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self):
        try:
            logger.info(f"Connecting to database {self.config.database} "
                        f"at {self.config.host}:{self.config.port} as {self.config.user}")
            self.conn = psycopg2.connect(
                host=self.config.host,
                port=self.config.port,
                database=self.config.database,
                user=self.config.user,
                password=self.config.password,
            )
            self.conn.autocommit = False
            logger.info("Database connection established successfully.")
        except psycopg2.Error as e:
            logger.error(f"Unable to connect to the database: {e}")
            raise StoreFailure(f"Unable to connect to the database: {e}") from e

    def close(self):
        if self.conn and not self.conn.closed:
            self.conn.close()
            logger.info("Connection closed")

    def initialize_schema(self):
        """Create every table of the store; existing tables are left untouched"""
        try:
            with self.conn:
                with self.conn.cursor() as cursor:
                    for query in SCHEMA_QUERIES:
                        cursor.execute(query)
            logger.info("Database schema initialized successfully.")
        except psycopg2.Error as e:
            logger.error(f"Schema initialization failed: {e}")
            raise StoreFailure(f"Schema initialization failed: {e}") from e

    def upsert_cve(self, record: CanonicalRecord) -> int:
        """
        Apply one record idempotently and return its cves surrogate id

        Raises:
            StoreFailure: If any statement fails; the record's transaction is rolled back
        """
        try:
            with self.conn:
                with self.conn.cursor() as cursor:
                    access_id = self._fetch_id(cursor, UPSERT_ACCESS, (
                        record.access.authentication or '',
                        record.access.complexity or '',
                        record.access.vector or '',
                    ))
                    impact_id = self._fetch_id(cursor, UPSERT_IMPACT, (
                        record.impact.availability or '',
                        record.impact.confidentiality or '',
                        record.impact.integrity or '',
                    ))
                    cve_id = self._fetch_id(cursor, UPSERT_CVE, (
                        record.natural_id,
                        record.modified_at,
                        record.published_at,
                        record.last_modified,
                        record.assigner,
                        record.cvss_score,
                        record.cvss_time,
                        record.cvss_vector,
                        record.cwe,
                        record.summary,
                        access_id,
                        impact_id,
                    ))
                    for collection in COLLECTIONS:
                        self._replace_members(
                            cursor, cve_id, collection, getattr(record, collection.attribute))
        except psycopg2.Error as e:
            logger.error(f"Failed to store {record.natural_id}: {e}")
            raise StoreFailure(
                f"Failed to store {record.natural_id}: {e}", natural_id=record.natural_id) from e

        logger.debug(f"Stored {record.natural_id} as cves.id={cve_id}")
        return cve_id

    def ingest(self, records: Iterable[CanonicalRecord]) -> int:
        """Apply records in order, stopping at the first failure"""
        count = 0
        for record in records:
            self.upsert_cve(record)
            count += 1
            if count % self.progress_every == 0:
                logger.info(f"Stored {count:,} records...")
        return count

    def _replace_members(self, cursor, cve_id: int, collection: Collection, values):
        cursor.execute(f"DELETE FROM {collection.junction} WHERE cve_id = %s", (cve_id,))

        key_column = collection.columns[0]
        upsert_member = f"""
        INSERT INTO {collection.table} ({', '.join(collection.columns)})
        VALUES ({', '.join(['%s'] * len(collection.columns))})
        ON CONFLICT ({key_column}) DO UPDATE SET
            {key_column} = EXCLUDED.{key_column}
        RETURNING id
        """
        link_member = f"""
        INSERT INTO {collection.junction} (cve_id, {collection.member_column})
        VALUES (%s, %s)
        """
        for value in values:
            member_id = self._fetch_id(cursor, upsert_member, collection.to_row(value))
            cursor.execute(link_member, (cve_id, member_id))

    @staticmethod
    def _fetch_id(cursor, query: str, params) -> int:
        cursor.execute(query, params)
        return cursor.fetchone()[0]

    def get_database_stats(self) -> Dict[str, int]:
        """Row count per table"""
        stats = {}
        try:
            with self.conn:
                with self.conn.cursor() as cursor:
                    for table in TABLES:
                        cursor.execute(f"SELECT COUNT(*) FROM {table}")
                        stats[table] = cursor.fetchone()[0]
        except psycopg2.Error as e:
            raise StoreFailure(f"Failed to read table statistics: {e}") from e
        return stats

    def print_stats(self):
        stats = self.get_database_stats()
        logger.info("Database Statistics:")
        for table, count in stats.items():
            logger.info(f"   {table}: {count:,}")
