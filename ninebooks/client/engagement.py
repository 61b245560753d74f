import enum
import typing


class EngagementState(str, enum.Enum):
    SYNCED = "synced"
    PENDING_ADD = "pending_add"
    PENDING_REMOVE = "pending_remove"


class EngagementTracker:
    """Optimistic like/bookmark state of one user on one shelf.

    ``confirmed`` and ``count`` are what the server last acknowledged; ``active``
    and ``display_count`` are what the UI shows. Every toggle gets a sequence
    number and only the newest one may settle the state, so a slow answer to an
    older request cannot overwrite a newer choice. A failed newest request falls
    back to the confirmed values.
    """

    def __init__(self, confirmed: bool = False, count: int = 0):
        self.confirmed = confirmed
        self.count = count
        self.state = EngagementState.SYNCED
        self._seq = 0
        self._confirmed_seq = 0

    @property
    def active(self) -> bool:
        if self.state == EngagementState.PENDING_ADD:
            return True
        if self.state == EngagementState.PENDING_REMOVE:
            return False
        return self.confirmed

    @property
    def display_count(self) -> int:
        return max(0, self.count + int(self.active) - int(self.confirmed))

    @property
    def pending(self) -> bool:
        return self.state != EngagementState.SYNCED

    def request_toggle(self) -> typing.Tuple[int, bool]:
        target = not self.active
        self._seq += 1
        self.state = EngagementState.PENDING_ADD if target else EngagementState.PENDING_REMOVE
        return self._seq, target

    def settle(
        self,
        seq: int,
        target: bool,
        ok: bool,
        count: typing.Optional[int] = None
    ) -> bool:
        """Apply the outcome of request ``seq``. Returns True when it was the newest."""
        if ok and seq > self._confirmed_seq:
            self.confirmed = target
            self._confirmed_seq = seq
            if count is not None:
                self.count = max(0, count)

        if seq != self._seq:
            return False

        self.state = EngagementState.SYNCED
        return True

    def sync(self, confirmed: typing.Optional[bool] = None, count: typing.Optional[int] = None) -> None:
        """Adopt server state, unless a request of ours is still in flight."""
        if self.pending:
            return
        if confirmed is not None:
            self.confirmed = confirmed
        if count is not None:
            self.count = max(0, count)
