import typing
import fastapi
import ninebooks.models.responses

APIResponse = ninebooks.models.responses.APIResponse
ErrorDetail = ninebooks.models.responses.ErrorDetail


def _envelope(body: APIResponse, status_code: int) -> fastapi.responses.JSONResponse:
    return fastapi.responses.JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json")
    )


def success_response(data: typing.Any, status_code: int = 200) -> fastapi.responses.JSONResponse:
    return _envelope(APIResponse(success=True, data=data), status_code)


def error_response(
    code: str,
    message: str,
    details: typing.Dict[str, typing.Any] = None,
    status_code: int = 400
) -> fastapi.responses.JSONResponse:
    error = ErrorDetail(code=code, message=message, details=details or {})
    return _envelope(APIResponse(success=False, error=error), status_code)


_SERVICE_ERRORS: typing.Dict[str, typing.Tuple[int, str]] = {
    "query_required": (400, "query is required"),
    "name_required": (400, "name is required"),
    "isbn_required": (400, "isbn is required"),
    "items_required": (400, "isbns is required"),
    "invalid_isbn": (400, "isbn must be 10 or 13 digits"),
    "invalid_sort": (400, "sort must be one of latest, bookmarks, random"),
    "invalid_offset": (400, "offset must not be negative"),
    "invalid_position": (400, "position is outside the shelf"),
    "invalid_order": (400, "isbns must list every book on the shelf exactly once"),
    "shelf_full": (400, "shelf is full (max 9 books)"),
    "forbidden": (403, "you do not own this shelf"),
    "not_found": (404, "not found"),
    "already_on_shelf": (409, "book is already on this shelf"),
}


def service_error_response(e: ValueError) -> fastapi.responses.JSONResponse:
    reason = str(e)
    status_code, message = _SERVICE_ERRORS.get(reason, (400, reason))
    return error_response(reason.upper(), message, status_code=status_code)
