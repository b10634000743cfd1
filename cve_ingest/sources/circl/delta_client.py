"""
CIRCL "last" feed client

The feed returns a JSON array of the most recently changed advisories, already
in the canonical flat shape. Every element is validated before any record is
handed out, so a bad payload fails the run before the store is touched.
"""

from typing import List

import requests
from pydantic import ValidationError

from ...config.settings import DEFAULT_DELTA_URL
from ...models import CanonicalRecord
from ..base import BaseFetcher
from ..base.exceptions import DecodeFailure


class DeltaFeedClient(BaseFetcher):
    """Client for the latest-changes feed"""

    def __init__(self, url: str = DEFAULT_DELTA_URL, timeout: int = 300,
                 session: requests.Session = None):
        super().__init__('circl', timeout=timeout, session=session)
        self.url = url

    def fetch_records(self) -> List[CanonicalRecord]:
        response = self._make_request(self.url)

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeFailure(
                f"Delta feed is not valid JSON: {e}", source_name=self.source_name,
                raw_data_sample=response.text[:200]) from e

        if not isinstance(payload, list):
            raise DecodeFailure(
                f"Delta feed must be a JSON array, got {type(payload).__name__}",
                source_name=self.source_name)

        records = []
        for index, entry in enumerate(payload):
            try:
                records.append(CanonicalRecord.model_validate(entry))
            except ValidationError as e:
                raise DecodeFailure(
                    f"Delta feed entry {index} is invalid: {e.error_count()} validation errors",
                    source_name=self.source_name, index=index, errors=e.errors()) from e

        self.logger.info(f"Fetched {len(records):,} records from {self.url}")
        return records
