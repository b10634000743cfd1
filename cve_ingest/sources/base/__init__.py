"""
Base Infrastructure for CVE ingest sources

Key Components:
- BaseFetcher: HTTP session handling shared by all sources
- exceptions: error taxonomy used across the package
"""

from .base_fetcher import BaseFetcher
from .exceptions import (
    CacheIoFailure,
    ConfigException,
    CveIngestException,
    DecodeFailure,
    MalformedTimestamp,
    StoreFailure,
    TransportFailure,
)

__all__ = [
    'BaseFetcher',
    'CveIngestException',
    'MalformedTimestamp',
    'TransportFailure',
    'CacheIoFailure',
    'DecodeFailure',
    'StoreFailure',
    'ConfigException',
]
