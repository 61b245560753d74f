import typing
import pydantic


class ErrorDetail(pydantic.BaseModel):
    code: str
    message: str
    details: typing.Dict[str, typing.Any] = pydantic.Field(default_factory=dict)


class APIResponse(pydantic.BaseModel):
    """Envelope shared by every JSON endpoint except /health."""

    success: bool
    data: typing.Optional[typing.Any] = None
    error: typing.Optional[ErrorDetail] = None

    model_config = pydantic.ConfigDict(
        json_schema_extra={
            "examples": [
                {"success": True, "data": {"view_count": 12, "counted": True}, "error": None},
                {
                    "success": False,
                    "data": None,
                    "error": {"code": "SHELF_FULL", "message": "shelf is full (max 9 books)", "details": {}},
                },
            ]
        }
    )


class HealthResponse(pydantic.BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
    cache_backend: str
    providers: typing.Dict[str, bool]
