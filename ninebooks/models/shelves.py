import typing
import pydantic


class SlotOut(pydantic.BaseModel):
    isbn: str
    position: int
    review: typing.Optional[str] = None
    is_spoiler: bool = False
    cover_url: typing.Optional[str] = None
    amazon_affiliate_url: typing.Optional[str] = None
    rakuten_affiliate_url: typing.Optional[str] = None


class ShelfOut(pydantic.BaseModel):
    id: str
    user_id: str
    name: str
    view_count: int
    likes_count: int
    bookmarks_count: int
    created_at: str
    updated_at: str


class ShelfDetailOut(ShelfOut):
    books: typing.List[SlotOut] = pydantic.Field(default_factory=list)


class ShelfSummaryOut(pydantic.BaseModel):
    id: str
    name: str
    user_id: str
    view_count: int
    likes_count: int
    bookmarks_count: int
    created_at: str
    isbns: typing.List[str] = pydantic.Field(default_factory=list)


class FeedPageData(pydantic.BaseModel):
    shelves: typing.List[ShelfSummaryOut]
    has_more: bool


class FeedPageResponse(pydantic.BaseModel):
    success: bool
    data: typing.Optional[FeedPageData] = None
    error: typing.Optional[typing.Any] = None


class EngagementData(pydantic.BaseModel):
    shelf_id: str
    active: bool
    count: int


class ViewData(pydantic.BaseModel):
    view_count: int
    counted: bool


class EngagementStateData(pydantic.BaseModel):
    liked: typing.List[str]
    bookmarked: typing.List[str]


class ShelfDetailData(pydantic.BaseModel):
    shelf: ShelfDetailOut


class ShelfDetailResponse(pydantic.BaseModel):
    success: bool
    data: typing.Optional[ShelfDetailData] = None
    error: typing.Optional[typing.Any] = None


class EngagementResponse(pydantic.BaseModel):
    success: bool
    data: typing.Optional[EngagementData] = None
    error: typing.Optional[typing.Any] = None


class EngagementStateResponse(pydantic.BaseModel):
    success: bool
    data: typing.Optional[EngagementStateData] = None
    error: typing.Optional[typing.Any] = None
