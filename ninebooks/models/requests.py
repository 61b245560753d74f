import typing

import pydantic


class CreateShelfRequest(pydantic.BaseModel):
    name: str = pydantic.Field(max_length=255, description="Display name of the shelf")

    model_config = pydantic.ConfigDict(
        json_schema_extra={"example": {"name": "私をかたちづくる本"}}
    )


class RenameShelfRequest(pydantic.BaseModel):
    name: str = pydantic.Field(max_length=255, description="New display name")


class AddBookRequest(pydantic.BaseModel):
    isbn: str = pydantic.Field(description="ISBN-10 or ISBN-13, separators allowed")
    cover_url: typing.Optional[str] = pydantic.Field(default=None)
    rakuten_affiliate_url: typing.Optional[str] = pydantic.Field(default=None)

    model_config = pydantic.ConfigDict(
        json_schema_extra={
            "example": {
                "isbn": "9784101010014",
                "cover_url": "https://thumbnail.image.rakuten.co.jp/0_mall/book/cabinet/0014/9784101010014.jpg",
                "rakuten_affiliate_url": None,
            }
        }
    )


class UpdateSlotRequest(pydantic.BaseModel):
    review: typing.Optional[str] = pydantic.Field(default=None, max_length=2000)
    is_spoiler: typing.Optional[bool] = pydantic.Field(default=None)
    position: typing.Optional[int] = pydantic.Field(default=None, ge=1, le=9)


class ReorderBooksRequest(pydantic.BaseModel):
    isbns: typing.List[str] = pydantic.Field(
        default_factory=list, description="Every ISBN on the shelf, in the new order"
    )


class IdentityUserData(pydantic.BaseModel):
    id: str
    first_name: typing.Optional[str] = None
    last_name: typing.Optional[str] = None
    username: typing.Optional[str] = None
    image_url: typing.Optional[str] = None

    model_config = pydantic.ConfigDict(extra="ignore")


class IdentityWebhookEvent(pydantic.BaseModel):
    type: str
    data: IdentityUserData

    model_config = pydantic.ConfigDict(extra="ignore")
