"""
Advisory sources

- nvd: yearly NVD JSON 1.1 archive feeds (fetcher + schema adapter)
- circl: CIRCL "last" feed, already in canonical shape
"""
