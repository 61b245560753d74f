import hmac
import typing
import logging
import fastapi
import sqlalchemy.ext.asyncio
import ninebooks.config
import ninebooks.db
import ninebooks.models.requests
import ninebooks.services.user_service as user_service
import ninebooks.utils.responses

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/api/v1/webhooks", tags=["Webhooks"])

WEBHOOK_SECRET_HEADER = "X-Webhook-Secret"


def _authorised(provided: typing.Optional[str]) -> bool:
    expected = ninebooks.config.settings.webhook_secret
    if not expected:
        return True
    return hmac.compare_digest(provided or "", expected)


@router.post(
    "/identity",
    summary="Receive identity provider user events",
    description="""
    Mirrors identity provider users into the local `users` table.

    - `user.created`, `user.updated`: insert or update the user
    - `user.deleted`: delete the user and, through cascades, their shelves
    - anything else is acknowledged and ignored

    When `WEBHOOK_SECRET` is configured the request must carry it in the
    `X-Webhook-Secret` header.
    """
)
async def identity_webhook(
    request: fastapi.Request,
    event: ninebooks.models.requests.IdentityWebhookEvent,
    session: sqlalchemy.ext.asyncio.AsyncSession = fastapi.Depends(ninebooks.db.get_session)
):
    if not _authorised(request.headers.get(WEBHOOK_SECRET_HEADER)):
        logger.warning("Rejected identity webhook with a bad secret")
        return ninebooks.utils.responses.error_response("UNAUTHORIZED", "invalid webhook secret", status_code=401)

    data = event.data
    try:
        if event.type in ("user.created", "user.updated"):
            await user_service.upsert_user(
                session,
                data.id,
                user_service.display_name_from(data.first_name, data.last_name, data.username, data.id),
                data.image_url
            )
        elif event.type == "user.deleted":
            await user_service.delete_user(session, data.id)
        else:
            logger.debug(f"Ignoring identity event {event.type}")
        return ninebooks.utils.responses.success_response({"ok": True})
    except Exception as e:
        logger.error(f"Unexpected error handling identity event {event.type}: {e}")
        return ninebooks.utils.responses.error_response("INTERNAL_ERROR", "An unexpected error occurred", status_code=500)
