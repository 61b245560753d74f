import time
import typing
from ninebooks.client.state import Direction

KEY_DIRECTIONS: typing.Dict[str, Direction] = {
    "ArrowDown": Direction.FORWARD,
    "PageDown": Direction.FORWARD,
    "j": Direction.FORWARD,
    "ArrowUp": Direction.BACKWARD,
    "PageUp": Direction.BACKWARD,
    "k": Direction.BACKWARD,
}


class WheelGate:
    """Turns a burst of wheel events from one physical gesture into a single step.

    Events below ``min_delta`` are trackpad noise. After an accepted event every
    further event inside ``window`` seconds is dropped.
    """

    def __init__(
        self,
        window: float = 0.8,
        min_delta: float = 30.0,
        clock: typing.Callable[[], float] = time.monotonic
    ):
        self.window = window
        self.min_delta = min_delta
        self._clock = clock
        self._last_accepted: typing.Optional[float] = None

    def accept(self, delta_y: float) -> typing.Optional[Direction]:
        if abs(delta_y) < self.min_delta:
            return None

        now = self._clock()
        if self._last_accepted is not None and now - self._last_accepted < self.window:
            return None

        self._last_accepted = now
        return Direction.FORWARD if delta_y > 0 else Direction.BACKWARD


class TouchGate:
    def __init__(self, threshold: float = 50.0):
        self.threshold = threshold
        self._start_y: typing.Optional[float] = None

    def start(self, y: float) -> None:
        self._start_y = y

    def end(self, y: float) -> typing.Optional[Direction]:
        if self._start_y is None:
            return None
        distance = self._start_y - y
        self._start_y = None

        if abs(distance) < self.threshold:
            return None
        # finger moving up reveals the next shelf
        return Direction.FORWARD if distance > 0 else Direction.BACKWARD


def key_direction(key: str, repeat: bool = False) -> typing.Optional[Direction]:
    if repeat:
        return None
    return KEY_DIRECTIONS.get(key)
