from ninebooks.fetchers.base import BaseFetcher
from ninebooks.fetchers.rakuten import RakutenBooksFetcher
from ninebooks.fetchers.google_books import GoogleBooksFetcher

__all__ = [
    "BaseFetcher",
    "RakutenBooksFetcher",
    "GoogleBooksFetcher",
]
