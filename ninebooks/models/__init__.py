from ninebooks.models.base import Base
from ninebooks.models.user import User
from ninebooks.models.book import Book
from ninebooks.models.shelf import Shelf, ShelfBook
from ninebooks.models.engagement import ShelfLike, ShelfBookmark, BookBookmark

__all__ = [
    "Base",
    "User",
    "Book",
    "Shelf",
    "ShelfBook",
    "ShelfLike",
    "ShelfBookmark",
    "BookBookmark",
]
