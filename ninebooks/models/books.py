import typing
import pydantic


class BookSearchResult(pydantic.BaseModel):
    isbn: str
    title: str
    author: str
    cover_url: typing.Optional[str] = None
    source: typing.Literal["rakuten", "google"]

    model_config = pydantic.ConfigDict(
        json_schema_extra={
            "example": {
                "isbn": "9784101010014",
                "title": "こころ",
                "author": "夏目漱石",
                "cover_url": "https://thumbnail.image.rakuten.co.jp/0_mall/book/cabinet/0014/9784101010014.jpg",
                "source": "rakuten",
            }
        }
    )


class BookSearchData(pydantic.BaseModel):
    books: typing.List[BookSearchResult]
    cached: bool


class BookSearchResponse(pydantic.BaseModel):
    success: bool
    data: typing.Optional[BookSearchData] = None
    error: typing.Optional[typing.Any] = None


class CacheStatusData(pydantic.BaseModel):
    hits: typing.Dict[str, BookSearchResult]
    misses: typing.List[str]


class CacheStatusResponse(pydantic.BaseModel):
    success: bool
    data: typing.Optional[CacheStatusData] = None
    error: typing.Optional[typing.Any] = None


class BookBookmarkData(pydantic.BaseModel):
    isbn: str
    bookmarked: bool


class BookBookmarkResponse(pydantic.BaseModel):
    success: bool
    data: typing.Optional[BookBookmarkData] = None
    error: typing.Optional[typing.Any] = None
