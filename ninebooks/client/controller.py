import asyncio
import typing
import logging
import httpx
import ninebooks.config
import ninebooks.models.shelves
from ninebooks.client.api import FeedApiClient, FeedApiError
from ninebooks.client.engagement import EngagementTracker
from ninebooks.client.gestures import TouchGate, WheelGate, key_direction
from ninebooks.client.guest import GuestQuota, SessionStore
from ninebooks.client.hydration import MetadataHydrator
from ninebooks.client.state import Direction, EngagementKind, LoginPrompt, NavigationResult, SortMode

logger = logging.getLogger(__name__)

ShelfSummaryOut = ninebooks.models.shelves.ShelfSummaryOut

Listener = typing.Callable[[str], None]

_API_ERRORS = (FeedApiError, httpx.HTTPError, asyncio.TimeoutError, ValueError)

_COUNT_FIELDS = {
    EngagementKind.LIKE: "likes_count",
    EngagementKind.BOOKMARK: "bookmarks_count",
}


class FeedController:
    """State of the full-screen swipe feed: one shelf at a time, endless paging.

    Navigation methods are synchronous and return at once; network work
    (next pages, engagement confirmations, view counts, book metadata) runs in
    background tasks owned by the controller and cancelled by ``aclose``.
    ``listener`` is called with ``"items"``, ``"cursor"``, ``"prompt"``,
    ``"engagement"`` or ``"metadata"`` whenever that part of the state changes.
    """

    def __init__(
        self,
        api: FeedApiClient,
        settings: typing.Optional[ninebooks.config.FeedClientSettings] = None,
        session_store: typing.Optional[SessionStore] = None,
        quota: typing.Optional[GuestQuota] = None,
        listener: typing.Optional[Listener] = None,
        sort_mode: SortMode = SortMode.LATEST
    ):
        self.api = api
        self.settings = settings or ninebooks.config.FeedClientSettings()
        self.signed_in = api.signed_in
        self.quota = quota or GuestQuota(self.settings.guest_swipe_limit, session_store)
        self.hydrator = MetadataHydrator(
            api,
            stagger=self.settings.hydration_stagger,
            on_metadata=lambda isbn, book: self._emit("metadata")
        )
        self.listener = listener

        self.items: typing.List[ShelfSummaryOut] = []
        self.cursor = 0
        # vertical translate of the track, in percent of one card
        self.offset = 0.0
        self.has_more = True
        self.is_fetching = False
        self.is_animating = False
        self.sort_mode = SortMode(sort_mode)
        self.prompt: typing.Optional[LoginPrompt] = None
        self.notice: typing.Optional[str] = None
        self.generation = 0

        self.wheel = WheelGate(window=self.settings.wheel_window, min_delta=self.settings.wheel_min_delta)
        self.touch = TouchGate(threshold=self.settings.swipe_threshold)

        self._next_offset = 0
        self._trackers: typing.Dict[typing.Tuple[EngagementKind, str], EngagementTracker] = {}
        self._tasks: typing.Set[asyncio.Task] = set()
        self._page_task: typing.Optional[asyncio.Task] = None

    @property
    def current(self) -> typing.Optional[ShelfSummaryOut]:
        if 0 <= self.cursor < len(self.items):
            return self.items[self.cursor]
        return None

    @property
    def metadata(self):
        return self.hydrator.metadata

    def _emit(self, event: str) -> None:
        if self.listener is not None:
            self.listener(event)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _find_item(self, shelf_id: str) -> typing.Optional[ShelfSummaryOut]:
        return next((item for item in self.items if item.id == shelf_id), None)

    # ------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------

    async def start(self) -> bool:
        return await self.fetch_page(0)

    async def fetch_page(self, offset: int) -> bool:
        """Load one page at ``offset``. Offset 0 replaces the items, others append.

        Returns False without touching the items when another fetch is running,
        the request fails or times out, or the sort changed while it was in flight.
        """
        if self.is_fetching:
            return False

        generation = self.generation
        sort = self.sort_mode
        self.is_fetching = True
        try:
            page = await asyncio.wait_for(
                self.api.get_feed_page(sort.value, offset),
                timeout=self.settings.feed_fetch_timeout
            )
        except _API_ERRORS as e:
            logger.warning(f"Feed page {sort.value}@{offset} failed: {e!r}")
            return False
        finally:
            if generation == self.generation:
                self.is_fetching = False

        if generation != self.generation:
            logger.debug(f"Dropping feed page {sort.value}@{offset} for an old sort")
            return False

        if offset == 0:
            self.items = list(page.shelves)
        else:
            # random order may serve the same shelf twice
            known = {item.id for item in self.items}
            self.items.extend(shelf for shelf in page.shelves if shelf.id not in known)
        self._next_offset = offset + len(page.shelves)
        self.has_more = page.has_more
        self._emit("items")

        if page.shelves:
            self._sync_counts(page.shelves)
            if self.signed_in:
                self._spawn(self._seed_engagement([shelf.id for shelf in page.shelves]))
            self._hydrate_around_cursor()
            if offset == 0:
                self._spawn(self._record_view(self.items[0].id))
        return True

    def _maybe_prefetch(self) -> None:
        if not self.has_more or self.is_fetching:
            return
        if self._page_task is not None and not self._page_task.done():
            return
        if len(self.items) - self.cursor <= self.settings.feed_prefetch_threshold:
            self._page_task = self._spawn(self.fetch_page(self._next_offset))

    async def change_sort(self, mode: typing.Union[SortMode, str]) -> bool:
        self.sort_mode = SortMode(mode)
        self.generation += 1
        if self._page_task is not None and not self._page_task.done():
            self._page_task.cancel()
        self._page_task = None
        self.hydrator.cancel_pending()

        self.items = []
        self.cursor = 0
        self.offset = 0.0
        self.has_more = True
        self.is_fetching = False
        self.is_animating = False
        self._next_offset = 0
        self._emit("items")
        self._emit("cursor")

        return await self.fetch_page(0)

    # ------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------

    def navigate(self, direction: typing.Union[Direction, int]) -> NavigationResult:
        direction = Direction(direction)

        if not self.signed_in and self.quota.limit_reached:
            self._show_prompt(LoginPrompt.LIMIT)
            return NavigationResult.BLOCKED

        if self.is_animating:
            return NavigationResult.IGNORED

        target = self.cursor + int(direction)
        if not 0 <= target < len(self.items):
            if direction == Direction.FORWARD:
                self._maybe_prefetch()
            return NavigationResult.IGNORED

        if direction == Direction.FORWARD and not self.signed_in and not self.quota.consume():
            self._show_prompt(LoginPrompt.LIMIT)
            return NavigationResult.BLOCKED

        self.cursor = target
        self.offset = -100.0 * target
        self.is_animating = True
        self._spawn(self._end_transition(self.generation))
        self._emit("cursor")

        self._maybe_prefetch()
        self._hydrate_around_cursor()
        self._spawn(self._record_view(self.items[target].id))
        return NavigationResult.MOVED

    def finish_transition(self) -> None:
        self.is_animating = False

    async def _end_transition(self, generation: int) -> None:
        await asyncio.sleep(self.settings.feed_transition_duration)
        if generation == self.generation:
            self.finish_transition()

    def on_wheel(self, delta_y: float) -> typing.Optional[NavigationResult]:
        direction = self.wheel.accept(delta_y)
        return self.navigate(direction) if direction is not None else None

    def on_touch_start(self, y: float) -> None:
        self.touch.start(y)

    def on_touch_end(self, y: float) -> typing.Optional[NavigationResult]:
        direction = self.touch.end(y)
        return self.navigate(direction) if direction is not None else None

    def on_key(self, key: str, repeat: bool = False) -> typing.Optional[NavigationResult]:
        direction = key_direction(key, repeat)
        return self.navigate(direction) if direction is not None else None

    def _show_prompt(self, prompt: LoginPrompt) -> None:
        self.prompt = prompt
        self._emit("prompt")

    def dismiss_prompt(self) -> None:
        self.prompt = None
        self._emit("prompt")

    # ------------------------------------------------------------
    # Likes & bookmarks
    # ------------------------------------------------------------

    def tracker(self, kind: typing.Union[EngagementKind, str], shelf_id: str) -> EngagementTracker:
        kind = EngagementKind(kind)
        key = (kind, shelf_id)
        if key not in self._trackers:
            item = self._find_item(shelf_id)
            count = getattr(item, _COUNT_FIELDS[kind]) if item is not None else 0
            self._trackers[key] = EngagementTracker(confirmed=False, count=count)
        return self._trackers[key]

    def is_active(self, kind: typing.Union[EngagementKind, str], shelf_id: str) -> bool:
        return self.tracker(kind, shelf_id).active

    def count(self, kind: typing.Union[EngagementKind, str], shelf_id: str) -> int:
        return self.tracker(kind, shelf_id).display_count

    def toggle_engagement(
        self,
        kind: typing.Union[EngagementKind, str],
        shelf_id: typing.Optional[str] = None
    ) -> typing.Optional[asyncio.Task]:
        """Flip like/bookmark at once and confirm with the server in the background.

        Guests get the ACTION login prompt instead. The returned task resolves
        to True when the server accepted the change.
        """
        kind = EngagementKind(kind)
        if shelf_id is None:
            if self.current is None:
                return None
            shelf_id = self.current.id

        if not self.signed_in:
            self._show_prompt(LoginPrompt.ACTION)
            return None

        tracker = self.tracker(kind, shelf_id)
        seq, target = tracker.request_toggle()
        self._emit("engagement")
        return self._spawn(self._confirm_engagement(kind, shelf_id, tracker, seq, target))

    async def _confirm_engagement(
        self,
        kind: EngagementKind,
        shelf_id: str,
        tracker: EngagementTracker,
        seq: int,
        target: bool
    ) -> bool:
        try:
            active, count = await self.api.set_engagement(kind, shelf_id, target)
        except _API_ERRORS as e:
            logger.warning(f"Could not set {kind.value}={target} on shelf {shelf_id}: {e!r}")
            if tracker.settle(seq, target, ok=False):
                self.notice = f"Could not update {kind.value}, please try again"
            self._emit("engagement")
            return False

        tracker.settle(seq, active, ok=True, count=count)
        self._emit("engagement")
        return True

    async def _seed_engagement(self, shelf_ids: typing.List[str]) -> None:
        try:
            liked, bookmarked = await self.api.get_engagement_state(shelf_ids)
        except _API_ERRORS as e:
            logger.warning(f"Could not load engagement state for {len(shelf_ids)} shelves: {e!r}")
            return

        for shelf_id in shelf_ids:
            self.tracker(EngagementKind.LIKE, shelf_id).sync(confirmed=shelf_id in liked)
            self.tracker(EngagementKind.BOOKMARK, shelf_id).sync(confirmed=shelf_id in bookmarked)
        self._emit("engagement")

    def _sync_counts(self, shelves: typing.Iterable[ShelfSummaryOut]) -> None:
        for shelf in shelves:
            for kind, field in _COUNT_FIELDS.items():
                tracker = self._trackers.get((kind, shelf.id))
                if tracker is not None:
                    tracker.sync(count=getattr(shelf, field))

    # ------------------------------------------------------------
    # Views & metadata
    # ------------------------------------------------------------

    async def _record_view(self, shelf_id: str) -> None:
        try:
            await self.api.record_view(shelf_id)
        except _API_ERRORS as e:
            logger.debug(f"View of shelf {shelf_id} not recorded: {e!r}")

    def _hydrate_around_cursor(self) -> typing.Optional[asyncio.Task]:
        reach = self.settings.hydration_neighbours
        start = max(0, self.cursor - reach)
        isbns = [isbn for item in self.items[start:self.cursor + reach + 1] for isbn in item.isbns]
        return self.hydrator.hydrate(isbns)

    async def aclose(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await self.hydrator.aclose()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
