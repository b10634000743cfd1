"""
PostgreSQL schema for the normalized advisory store.

accesses / impacts and the four collection tables hold each distinct value
once; cves references them by surrogate id and the cve_* junction tables link
a record to its current set members.

CPE 2.2 blobs are interned on value_key, their canonical JSON text, and the
blob itself is kept in value.
"""

SCHEMA_QUERIES = [
    """
    CREATE TABLE IF NOT EXISTS accesses (
        id SERIAL PRIMARY KEY,
        authentication TEXT NOT NULL DEFAULT '',
        complexity TEXT NOT NULL DEFAULT '',
        vector TEXT NOT NULL DEFAULT '',
        UNIQUE (authentication, complexity, vector)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS impacts (
        id SERIAL PRIMARY KEY,
        availability TEXT NOT NULL DEFAULT '',
        confidentiality TEXT NOT NULL DEFAULT '',
        integrity TEXT NOT NULL DEFAULT '',
        UNIQUE (availability, confidentiality, integrity)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cves (
        id SERIAL PRIMARY KEY,
        natural_id TEXT NOT NULL UNIQUE,
        modified TIMESTAMP NOT NULL,
        published TIMESTAMP NOT NULL,
        last_modified TIMESTAMP NOT NULL,
        assigner TEXT NOT NULL,
        cvss DOUBLE PRECISION,
        cvss_time TEXT,
        cvss_vector TEXT,
        cwe TEXT NOT NULL,
        summary TEXT NOT NULL,
        access_id INTEGER NOT NULL REFERENCES accesses(id),
        impact_id INTEGER NOT NULL REFERENCES impacts(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS refs (
        id SERIAL PRIMARY KEY,
        url TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vulnerable_configurations (
        id SERIAL PRIMARY KEY,
        cpe TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vulnerable_configurations_cpe22 (
        id SERIAL PRIMARY KEY,
        value_key TEXT NOT NULL UNIQUE,
        value JSONB NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vulnerable_products (
        id SERIAL PRIMARY KEY,
        product TEXT NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cve_references (
        cve_id INTEGER NOT NULL REFERENCES cves(id),
        ref_id INTEGER NOT NULL REFERENCES refs(id),
        PRIMARY KEY (cve_id, ref_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cve_vulnerable_configurations (
        cve_id INTEGER NOT NULL REFERENCES cves(id),
        vulnerable_configuration_id INTEGER NOT NULL REFERENCES vulnerable_configurations(id),
        PRIMARY KEY (cve_id, vulnerable_configuration_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cve_vulnerable_configurations_cpe22 (
        cve_id INTEGER NOT NULL REFERENCES cves(id),
        vulnerable_configuration_cpe22_id INTEGER NOT NULL REFERENCES vulnerable_configurations_cpe22(id),
        PRIMARY KEY (cve_id, vulnerable_configuration_cpe22_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cve_vulnerable_products (
        cve_id INTEGER NOT NULL REFERENCES cves(id),
        vulnerable_product_id INTEGER NOT NULL REFERENCES vulnerable_products(id),
        PRIMARY KEY (cve_id, vulnerable_product_id)
    )
    """,
]

TABLES = [
    'accesses',
    'impacts',
    'cves',
    'refs',
    'vulnerable_configurations',
    'vulnerable_configurations_cpe22',
    'vulnerable_products',
    'cve_references',
    'cve_vulnerable_configurations',
    'cve_vulnerable_configurations_cpe22',
    'cve_vulnerable_products',
]
