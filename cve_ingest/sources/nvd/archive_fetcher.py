"""
NVD yearly archive fetcher

APPROACH:
1. Look for the year's compressed feed in the cache directory (one file per
   year, named by the year)
2. On a miss, download nvdcve-1.1-<year>.json.gz and write the raw gzip bytes
   to the cache before decoding anything
3. Decompress and validate the cached bytes on every call

The cache is permanent: a cached year is never downloaded again. The current
year is kept fresh through the delta feed instead.
"""

import gzip
import json
import zlib
from pathlib import Path
from typing import Iterable, Iterator

import requests
from pydantic import ValidationError
from tqdm import tqdm

from ...config.settings import DEFAULT_ARCHIVE_URL_TEMPLATE
from ...models import CanonicalRecord
from ..base import BaseFetcher
from ..base.exceptions import CacheIoFailure, DecodeFailure
from .adapter import adapt_item
from .models import ArchiveDocument


def decode_archive(raw: bytes) -> ArchiveDocument:
    """
    Decompress and validate one yearly archive

    Raises:
        DecodeFailure: On bad gzip data, invalid JSON or an unexpected document structure
    """
    try:
        body = gzip.decompress(raw)
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeFailure(f"Archive is not valid gzip data: {e}", source_name='nvd') from e

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise DecodeFailure(
            f"Archive is not valid JSON: {e}", source_name='nvd',
            raw_data_sample=body[:200].decode('utf-8', errors='replace')) from e

    try:
        return ArchiveDocument.model_validate(payload)
    except ValidationError as e:
        raise DecodeFailure(
            f"Archive has an unexpected structure: {e.error_count()} validation errors",
            source_name='nvd', errors=e.errors()) from e


class ArchiveFetcher(BaseFetcher):
    """Cached downloader for the NVD JSON 1.1 yearly feeds"""

    def __init__(self, cache_dir: Path, years: Iterable[int] = (),
                 url_template: str = DEFAULT_ARCHIVE_URL_TEMPLATE,
                 timeout: int = 300, session: requests.Session = None):
        super().__init__('nvd', timeout=timeout, session=session)
        self.cache_dir = Path(cache_dir)
        self.years = sorted(years)
        self.url_template = url_template

    def cache_path(self, year: int) -> Path:
        return self.cache_dir / str(year)

    def download_year(self, year: int) -> Path:
        """Make sure the year's raw archive is in the cache and return its path"""
        path = self.cache_path(year)

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cached = path.exists()
        except OSError as e:
            raise CacheIoFailure(
                f"Cannot prepare cache directory {self.cache_dir}: {e}",
                source_name=self.source_name, path=str(self.cache_dir)) from e

        if cached:
            self.logger.info(f"Using cached archive for {year}: {path}")
            return path

        url = self.url_template.format(year=year)
        self.logger.info(f"Downloading archive for {year} from {url}")
        response = self._make_request(url)

        try:
            path.write_bytes(response.content)
        except OSError as e:
            raise CacheIoFailure(
                f"Cannot write cached archive {path}: {e}",
                source_name=self.source_name, path=str(path)) from e

        self.logger.info(f"Cached {len(response.content):,} bytes for {year} at {path}")
        return path

    def fetch_year(self, year: int) -> ArchiveDocument:
        """Return the parsed archive document for one year"""
        path = self.download_year(year)

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise CacheIoFailure(
                f"Cannot read cached archive {path}: {e}",
                source_name=self.source_name, path=str(path)) from e

        document = decode_archive(raw)
        self.logger.info(f"Loaded {len(document.cve_items):,} items for {year}")
        return document

    def fetch_records(self, show_progress: bool = False) -> Iterator[CanonicalRecord]:
        """Yield canonical records for every configured year, ascending, in feed order"""
        for year in self.years:
            items = self.fetch_year(year).cve_items
            for item in tqdm(items, desc=str(year), unit="cve", disable=not show_progress):
                yield adapt_item(item)
