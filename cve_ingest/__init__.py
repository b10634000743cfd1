"""
CVE Ingest

Loads vulnerability advisories from the NVD yearly archive feeds and the
CIRCL "last" feed into a normalized PostgreSQL store.

Key Components:
- models: canonical in-memory record shared by every source
- sources: archive fetcher, schema adapter and delta feed client
- db: schema definition and the normalizing upsert engine
- pipeline / cli: run orchestration for the three operating modes
"""

__version__ = '1.0.0'
