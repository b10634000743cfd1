"""
Custom Exceptions for the CVE ingest pipeline

Purpose: One error taxonomy shared by the fetchers, the adapter and the store
Usage: Library errors are caught at the component boundary and re-raised as
       one of these classes with the original exception chained

Exception Hierarchy:
- CveIngestException (base)
  ├── MalformedTimestamp (upstream date does not match the expected format)
  ├── TransportFailure (network / HTTP errors on either feed)
  ├── CacheIoFailure (filesystem errors on the archive cache)
  ├── DecodeFailure (gzip, JSON or document-structure errors)
  ├── StoreFailure (relational store errors)
  └── ConfigException (configuration errors)
"""


class CveIngestException(Exception):
    """Base exception for all ingest operations"""

    def __init__(self, message: str, source_name: str = None, details: dict = None):
        self.source_name = source_name
        self.details = details or {}
        super().__init__(message)

    def __str__(self):
        if self.source_name:
            return f"[{self.source_name}] {super().__str__()}"
        return super().__str__()


class MalformedTimestamp(CveIngestException):
    """Raised when an upstream timestamp cannot be parsed"""

    def __init__(self, message: str, source_name: str = None,
                 value: str = None, expected_format: str = None, **kwargs):
        self.value = value
        self.expected_format = expected_format
        details = {'value': value, 'expected_format': expected_format, **kwargs}
        super().__init__(message, source_name, details)


class TransportFailure(CveIngestException):
    """Raised when an HTTP request fails"""

    def __init__(self, message: str, source_name: str = None,
                 status_code: int = None, url: str = None, **kwargs):
        self.status_code = status_code
        self.url = url
        details = {'status_code': status_code, 'url': url, **kwargs}
        super().__init__(message, source_name, details)


class CacheIoFailure(CveIngestException):
    """Raised when the archive cache cannot be read or written"""

    def __init__(self, message: str, source_name: str = None,
                 path: str = None, **kwargs):
        self.path = path
        details = {'path': path, **kwargs}
        super().__init__(message, source_name, details)


class DecodeFailure(CveIngestException):
    """Raised when a payload cannot be decompressed, parsed or validated"""

    def __init__(self, message: str, source_name: str = None,
                 raw_data_sample: str = None, **kwargs):
        self.raw_data_sample = raw_data_sample
        details = {'raw_data_sample': raw_data_sample, **kwargs}
        super().__init__(message, source_name, details)


class StoreFailure(CveIngestException):
    """Raised when a relational store operation fails"""

    def __init__(self, message: str, source_name: str = None,
                 natural_id: str = None, **kwargs):
        self.natural_id = natural_id
        details = {'natural_id': natural_id, **kwargs}
        super().__init__(message, source_name, details)


class ConfigException(CveIngestException):
    """Raised when configuration is invalid"""

    def __init__(self, message: str, source_name: str = None,
                 config_key: str = None, **kwargs):
        self.config_key = config_key
        details = {'config_key': config_key, **kwargs}
        super().__init__(message, source_name, details)
