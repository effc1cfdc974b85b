"""
bridge/runtime_bridge.py
------------------------
Control channel between the host and one embedded 3D document.

The document runs in an isolated context that cannot notify the host, so
readiness is detected by polling for the primary hook (updateParams):

  UNLOADED → POLLING → READY → ACTIVE
                     ↘ ABANDONED  (hook never appeared)

Once ready, control snapshots are pushed through whichever hooks exist and
measurements / exports are pulled back. Every hook call is fail-soft: a
missing or broken hook degrades that feature and nothing else.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from common.io_utils import log
from .state import ControlState, Measurements, as_measurement
from .surface import (
    ControlSurface,
    UPDATE_PARAMS,
    SET_LIGHTING,
    UPDATE_FOG,
    GET_SURFACE_AREA,
    GET_FLOOR_AREA,
    GET_OBJ,
    GET_SCREENSHOT,
)

POLL_INTERVAL = 0.1   # seconds between readiness checks
MAX_ATTEMPTS = 300    # ~30 s
GRACE_DELAY = 0.2     # lets the graphics context finish initializing


class BridgeState(str, Enum):
    UNLOADED = "unloaded"
    POLLING = "polling"
    READY = "ready"
    ACTIVE = "active"
    ABANDONED = "abandoned"


class EmbeddedRuntimeBridge:
    """
    Drives one embedded document at a time.

    attach() is called on the context's load event; detach() (or a new
    attach) discards the handle, and any poll still running for it stops.
    """

    def __init__(
        self,
        poll_interval: float = POLL_INTERVAL,
        max_attempts: int = MAX_ATTEMPTS,
        grace_delay: float = GRACE_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_measurements: Optional[Callable[[Measurements], None]] = None,
    ):
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.grace_delay = grace_delay
        self._sleep = sleep
        self.on_measurements = on_measurements

        self.snapshot = ControlState()
        self._epoch = 0
        self.detach()

    # ----------------------------
    # Lifecycle
    # ----------------------------
    @property
    def is_live(self) -> bool:
        return self.state in (BridgeState.READY, BridgeState.ACTIVE)

    def detach(self) -> None:
        """Invalidate the current handle and return to UNLOADED."""
        self._epoch += 1
        self.surface: Optional[ControlSurface] = None
        self.state = BridgeState.UNLOADED
        self.attempts = 0
        self.measurements = Measurements()

    async def attach(self, handle: Any, snapshot: Optional[ControlState] = None) -> BridgeState:
        """
        Poll the freshly loaded context until updateParams appears, then wait
        the grace delay once and push the full control state.
        """
        self.detach()
        epoch = self._epoch
        self.surface = ControlSurface(handle)
        if snapshot is not None:
            self.snapshot = snapshot
        self.state = BridgeState.POLLING

        while True:
            self.attempts += 1
            if self.surface.has(UPDATE_PARAMS):
                break
            if self.attempts >= self.max_attempts:
                self.state = BridgeState.ABANDONED
                log("⚠️ Embedded document connection timed out. The model may still be "
                    "loading or encountered an error.", "WARNING")
                return self.state
            await self._sleep(self.poll_interval)
            if epoch != self._epoch:
                return self.state

        await self._sleep(self.grace_delay)
        if epoch != self._epoch:
            return self.state

        self.state = BridgeState.READY
        log(f"🔗 Embedded document ready after {self.attempts} check(s): "
            f"{sorted(self.surface.capabilities())}", "INFO")
        self.push_all()
        return self.state

    # ----------------------------
    # Push
    # ----------------------------
    def apply(self, snapshot: ControlState) -> None:
        """
        Record the latest control state and push the groups that changed.
        Before the document is ready only the snapshot is stored.
        """
        previous, self.snapshot = self.snapshot, snapshot
        if not self.is_live:
            return
        if snapshot.params != previous.params:
            self.push_params()
        if snapshot.lighting != previous.lighting:
            self.push_lighting()
        if snapshot.fog != previous.fog:
            self.push_fog()
        self.state = BridgeState.ACTIVE

    def push_all(self) -> None:
        self.push_params()
        self.push_lighting()
        self.push_fog()

    def push_params(self) -> bool:
        if not self.is_live:
            return False
        result = self.surface.invoke(UPDATE_PARAMS, *self.snapshot.params.as_args())
        self.measure()
        return result.ok

    def push_lighting(self) -> bool:
        if not self.is_live:
            return False
        return self.surface.invoke(SET_LIGHTING, self.snapshot.lighting).ok

    def push_fog(self) -> bool:
        if not self.is_live:
            return False
        return self.surface.invoke(UPDATE_FOG, *self.snapshot.fog.as_args()).ok

    # ----------------------------
    # Pull
    # ----------------------------
    def _can_pull(self) -> bool:
        return self.surface is not None and self.state != BridgeState.ABANDONED

    def measure(self) -> Measurements:
        """Refresh surface / floor area; values that can't be read are left as they were."""
        if not self._can_pull():
            return self.measurements
        current = self.measurements
        surface = as_measurement(self.surface.invoke(GET_SURFACE_AREA).value)
        floor = as_measurement(self.surface.invoke(GET_FLOOR_AREA).value)
        self.measurements = Measurements(
            surface_area=surface if surface is not None else current.surface_area,
            floor_area=floor if floor is not None else current.floor_area,
        )
        if self.measurements != current and self.on_measurements:
            self.on_measurements(self.measurements)
        return self.measurements

    async def _pull_text(self, hook: str) -> Optional[str]:
        if not self._can_pull():
            return None
        result = await self.surface.invoke_async(hook)
        if not result.ok:
            log(f"'{hook}' not available in this model", "INFO")
            return None
        if not isinstance(result.value, str) or not result.value:
            log(f"'{hook}' returned no data", "WARNING")
            return None
        return result.value

    async def export_geometry(self) -> Optional[str]:
        """OBJ text of the current scene, or None."""
        return await self._pull_text(GET_OBJ)

    async def export_snapshot(self) -> Optional[str]:
        """Viewport screenshot as a data URI, or None."""
        return await self._pull_text(GET_SCREENSHOT)
