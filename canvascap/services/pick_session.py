"""Interactive two-corner selection on the live canvas.

A pick session waits for a primary-button click on the canvas surface, then
polls the third-party coordinate readout until it shows a new, parseable
tile/pixel tuple. It does this twice and hands back both corners as global
pixels, in click order.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..errors import CaptureCancelled, CaptureError, ReadoutTimeout, SessionClosed
from ..models.coords import GlobalPixel, TileCoords
from ..utils.readout import parse_readout
from ..utils.tile_math import TILE_SIZE, coords_to_global

logger = logging.getLogger(__name__)

PRIMARY_BUTTON = 0


class SessionState(str, Enum):
    """Lifecycle of a pick session."""

    IDLE = "idle"
    AWAITING_FIRST_CLICK = "awaiting_first_click"
    AWAITING_FIRST_READOUT = "awaiting_first_readout"
    AWAITING_SECOND_CLICK = "awaiting_second_click"
    AWAITING_SECOND_READOUT = "awaiting_second_readout"
    DONE = "done"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.DONE, SessionState.CANCELLED)


CLICK_STATES = (SessionState.AWAITING_FIRST_CLICK, SessionState.AWAITING_SECOND_CLICK)


@dataclass(frozen=True)
class SurfaceRect:
    """Bounding box of the canvas element in viewport pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(frozen=True)
class PointerGesture:
    """A pointer press as reported by the host page."""

    x: float
    y: float
    button: int = PRIMARY_BUTTON


StateCallback = Callable[[SessionState, str], None]


class PickSession:
    """Single-use state machine producing two corner points."""

    def __init__(
        self,
        surface_bounds: Callable[[], SurfaceRect],
        read_readout: Callable[[], Optional[str]],
        tile_size: int = TILE_SIZE,
        readout_timeout: float = 6.0,
        poll_interval: float = 0.1,
        on_state_change: Optional[StateCallback] = None,
    ):
        """
        Initialize a pick session.

        Args:
            surface_bounds: Returns the current canvas rectangle
            read_readout: Returns the readout's current text (read-only)
            tile_size: Tile edge length used to convert corners
            readout_timeout: Seconds to wait for the readout after each click
            poll_interval: Seconds between readout polls
            on_state_change: Optional callback(state, label) for UI feedback
        """
        self.surface_bounds = surface_bounds
        self.read_readout = read_readout
        self.tile_size = tile_size
        self.readout_timeout = readout_timeout
        self.poll_interval = poll_interval
        self.on_state_change = on_state_change

        self.label = ""
        self._state = SessionState.IDLE
        self._click: Optional[asyncio.Future] = None
        self._cancel_event = asyncio.Event()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is not SessionState.IDLE and not self._state.is_terminal

    def feed_gesture(self, gesture: PointerGesture) -> bool:
        """
        Offer a pointer press to the session.

        Returns:
            True if the gesture counted as a corner click
        """
        if self._state not in CLICK_STATES or self._click is None or self._click.done():
            return False
        if gesture.button != PRIMARY_BUTTON:
            return False
        if not self.surface_bounds().contains(gesture.x, gesture.y):
            return False

        # Baseline is taken at click time; the readout may update right after
        self._click.set_result(self.read_readout())
        return True

    def cancel(self) -> None:
        """Abort the session (escape key). No-op once finished."""
        if self.active:
            self._cancel_event.set()

    async def run(self, label: str = "Select corners") -> tuple[GlobalPixel, GlobalPixel]:
        """
        Collect two corners.

        Args:
            label: Human-readable step label passed to on_state_change

        Returns:
            (first, second) global pixels in click order, not normalized

        Raises:
            CaptureCancelled: cancel() was called while waiting
            ReadoutTimeout: the readout did not update after a click
            SessionClosed: the session was already used
        """
        if self._state is not SessionState.IDLE:
            raise SessionClosed(self._state.value)
        self.label = label

        try:
            first = await self._pick(SessionState.AWAITING_FIRST_CLICK, SessionState.AWAITING_FIRST_READOUT)
            second = await self._pick(SessionState.AWAITING_SECOND_CLICK, SessionState.AWAITING_SECOND_READOUT)
        except (CaptureError, asyncio.CancelledError):
            self._set_state(SessionState.CANCELLED)
            raise
        finally:
            self._click = None

        self._set_state(SessionState.DONE)
        return first, second

    async def _pick(self, click_state: SessionState, readout_state: SessionState) -> GlobalPixel:
        self._set_state(click_state)
        self._click = asyncio.get_running_loop().create_future()
        baseline = await self._unless_cancelled(self._click)
        self._click = None

        self._set_state(readout_state)
        coords = await self._unless_cancelled(self._wait_for_readout(baseline))
        point = coords_to_global(coords, self.tile_size)
        logger.debug("Corner picked at %s -> (%d,%d)", coords, point.gx, point.gy)
        return point

    async def _wait_for_readout(self, baseline: Optional[str]) -> TileCoords:
        try:
            return await asyncio.wait_for(self._poll_readout(baseline), self.readout_timeout)
        except asyncio.TimeoutError:
            logger.warning("Readout did not change within %.1fs", self.readout_timeout)
            raise ReadoutTimeout(self.readout_timeout) from None

    async def _poll_readout(self, baseline: Optional[str]) -> TileCoords:
        while True:
            text = self.read_readout()
            if text != baseline:
                coords = parse_readout(text, self.tile_size)
                if coords is not None:
                    return coords
            await asyncio.sleep(self.poll_interval)

    async def _unless_cancelled(self, awaitable: Awaitable):
        """Await something, bailing out with CaptureCancelled if cancel() fires first."""
        work = asyncio.ensure_future(awaitable)
        cancelled = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({work, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            pending = [t for t in (work, cancelled) if not t.done()]
            for t in pending:
                t.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if self._cancel_event.is_set():
            raise CaptureCancelled()
        return work.result()

    def _set_state(self, state: SessionState) -> None:
        if self._state is state:
            return
        self._state = state
        logger.debug("Pick session '%s' -> %s", self.label, state.value)
        if self.on_state_change:
            self.on_state_change(state, self.label)
