"""CIRCL latest-changes feed source"""

from .delta_client import DeltaFeedClient

__all__ = ['DeltaFeedClient']
