import typing
import logging

logger = logging.getLogger(__name__)


class SessionStore(typing.Protocol):
    def get(self, key: str) -> typing.Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemorySessionStore:
    def __init__(self, initial: typing.Optional[typing.Dict[str, str]] = None):
        self._values: typing.Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> typing.Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class GuestQuota:
    """Forward swipes a signed-out visitor may make before being asked to log in.

    The first ``limit`` forward swipes pass; the next one flags the limit.
    The count lives in a session store so a reload does not reset it.
    """

    STORAGE_KEY = "ninebooks.guest_swipes"

    def __init__(
        self,
        limit: int,
        store: typing.Optional[SessionStore] = None,
        count: typing.Optional[int] = None
    ):
        self.limit = limit
        self.store = store if store is not None else MemorySessionStore()
        self.count = count if count is not None else self._load()
        self.limit_reached = self.count > self.limit

    def _load(self) -> int:
        raw = self.store.get(self.STORAGE_KEY)
        try:
            return max(0, int(raw)) if raw is not None else 0
        except ValueError:
            logger.warning(f"Ignoring corrupt guest swipe count {raw!r}")
            return 0

    def consume(self) -> bool:
        if self.limit_reached:
            return False

        self.count += 1
        self.store.set(self.STORAGE_KEY, str(self.count))

        if self.count > self.limit:
            self.limit_reached = True
            return False
        return True

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)
