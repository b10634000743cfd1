"""
Base Fetcher for CVE ingest sources

Abstract base class shared by the archive fetcher and the delta feed client.
Owns the HTTP session and maps transport errors onto TransportFailure.
Requests are never retried: a failure aborts the run.
"""

import abc
import logging
from typing import Iterable

import requests

from ...models import CanonicalRecord
from .exceptions import TransportFailure


class BaseFetcher(abc.ABC):
    """Abstract base class for all advisory sources"""

    def __init__(self, source_name: str, timeout: int = 300, session: requests.Session = None):
        """
        Initialize fetcher

        Args:
            source_name: Name of the source, used for logging and error context
            timeout: Seconds before a request is abandoned
            session: Optional pre-built session (tests inject a stub here)
        """
        self.source_name = source_name
        self.timeout = timeout
        self.logger = logging.getLogger(f"fetcher.{source_name}")

        # Session for connection pooling
        self.session = session or requests.Session()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()

    @abc.abstractmethod
    def fetch_records(self) -> Iterable[CanonicalRecord]:
        """
        Fetch advisories from the source

        Returns:
            Canonical records in upstream delivery order
        """
        pass

    def _make_request(self, url: str) -> requests.Response:
        """
        Issue a GET request

        Raises:
            TransportFailure: On connection errors and non-2xx responses
        """
        self.logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise TransportFailure(
                f"HTTP {status_code} from {url}",
                source_name=self.source_name, status_code=status_code, url=url) from e
        except requests.RequestException as e:
            raise TransportFailure(
                f"Request to {url} failed: {e}",
                source_name=self.source_name, url=url) from e
        return response

    def cleanup(self):
        """Clean up resources (close sessions, etc.)"""
        if hasattr(self, 'session'):
            self.session.close()
