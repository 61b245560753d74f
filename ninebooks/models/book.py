import sqlalchemy
import sqlalchemy.orm
from ninebooks.models.base import Base


class Book(Base):
    __tablename__ = "books"

    isbn: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(13), primary_key=True
    )
    # display only, provider terms forbid redistribution
    cover_url: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Text, nullable=True
    )
    amazon_affiliate_url: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Text, nullable=True
    )
    rakuten_affiliate_url: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Text, nullable=True
    )
