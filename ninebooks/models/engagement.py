import sqlalchemy
import sqlalchemy.orm
from ninebooks.models.base import Base


class ShelfLike(Base):
    __tablename__ = "user_shelf_likes"
    __table_args__ = (
        sqlalchemy.UniqueConstraint("user_id", "shelf_id", name="uq_user_shelf_likes_user_shelf"),
    )

    id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(36), primary_key=True
    )
    user_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(64),
        sqlalchemy.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    shelf_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(36),
        sqlalchemy.ForeignKey("shelves.id", ondelete="CASCADE"),
        nullable=False
    )
    created_at: sqlalchemy.orm.Mapped[sqlalchemy.DateTime] = sqlalchemy.orm.mapped_column(
        sqlalchemy.DateTime, nullable=False, server_default=sqlalchemy.func.now()
    )


class ShelfBookmark(Base):
    __tablename__ = "user_shelf_bookmarks"
    __table_args__ = (
        sqlalchemy.UniqueConstraint("user_id", "shelf_id", name="uq_user_shelf_bookmarks_user_shelf"),
    )

    id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(36), primary_key=True
    )
    user_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(64),
        sqlalchemy.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    shelf_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(36),
        sqlalchemy.ForeignKey("shelves.id", ondelete="CASCADE"),
        nullable=False
    )
    created_at: sqlalchemy.orm.Mapped[sqlalchemy.DateTime] = sqlalchemy.orm.mapped_column(
        sqlalchemy.DateTime, nullable=False, server_default=sqlalchemy.func.now()
    )


class BookBookmark(Base):
    __tablename__ = "user_book_bookmarks"
    __table_args__ = (
        sqlalchemy.UniqueConstraint("user_id", "isbn", name="uq_user_book_bookmarks_user_isbn"),
    )

    id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(36), primary_key=True
    )
    user_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(64),
        sqlalchemy.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    isbn: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(13),
        sqlalchemy.ForeignKey("books.isbn", ondelete="CASCADE"),
        nullable=False
    )
    created_at: sqlalchemy.orm.Mapped[sqlalchemy.DateTime] = sqlalchemy.orm.mapped_column(
        sqlalchemy.DateTime, nullable=False, server_default=sqlalchemy.func.now()
    )
