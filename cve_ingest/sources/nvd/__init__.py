"""NVD JSON 1.1 yearly archive source"""

from .adapter import adapt_item
from .archive_fetcher import ArchiveFetcher, decode_archive
from .models import ArchiveDocument, ArchiveItem

__all__ = ['ArchiveFetcher', 'ArchiveDocument', 'ArchiveItem', 'adapt_item', 'decode_archive']
