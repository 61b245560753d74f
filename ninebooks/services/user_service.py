import typing
import logging
import sqlalchemy
import sqlalchemy.ext.asyncio
import sqlalchemy.dialects.postgresql
import ninebooks.models.user

logger = logging.getLogger(__name__)

User = ninebooks.models.user.User


def display_name_from(
    first_name: typing.Optional[str],
    last_name: typing.Optional[str],
    username: typing.Optional[str],
    user_id: str
) -> str:
    full_name = " ".join(part for part in (first_name, last_name) if part)
    return full_name or username or user_id


async def upsert_user(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str,
    display_name: str,
    avatar_url: typing.Optional[str] = None
) -> User:
    stmt = sqlalchemy.dialects.postgresql.insert(User).values(
        id=user_id,
        display_name=display_name,
        avatar_url=avatar_url
    ).on_conflict_do_update(
        index_elements=[User.id],
        set_={
            "display_name": display_name,
            "avatar_url": avatar_url
        }
    ).returning(User)

    result = await session.execute(stmt)
    await session.commit()
    logger.info(f"Upserted user {user_id}")
    return result.scalar_one()


async def delete_user(
    session: sqlalchemy.ext.asyncio.AsyncSession,
    user_id: str
) -> None:
    await session.execute(sqlalchemy.delete(User).where(User.id == user_id))
    await session.commit()
    logger.info(f"Deleted user {user_id}")
