"""
bridge/surface.py
-----------------
Optional control hooks exposed by an embedded document.

The runtime handle is whatever object stands for the document's global
scope: an object whose attributes are the hooks, or a mapping from hook
name to callable. Any hook may be missing, and a present hook may raise;
both are reported as a HookResult and never propagate to the host.
"""

import inspect
from collections.abc import Mapping
from typing import Any, FrozenSet, NamedTuple

from common.io_utils import log

UPDATE_PARAMS = "updateParams"
SET_LIGHTING = "setLightingPreset"
UPDATE_FOG = "updateFog"
GET_SURFACE_AREA = "getSurfaceArea"
GET_FLOOR_AREA = "getFloorArea"
GET_OBJ = "getOBJ"
GET_SCREENSHOT = "getScreenshot"

HOOKS = (
    UPDATE_PARAMS,
    SET_LIGHTING,
    UPDATE_FOG,
    GET_SURFACE_AREA,
    GET_FLOOR_AREA,
    GET_OBJ,
    GET_SCREENSHOT,
)

OK = "ok"
MISSING = "missing"
FAULT = "fault"


class HookResult(NamedTuple):
    status: str
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status == OK


class ControlSurface:
    """Probe-then-call access to one runtime handle."""

    def __init__(self, handle: Any):
        self.handle = handle

    def _lookup(self, name: str):
        if self.handle is None:
            return None
        if isinstance(self.handle, Mapping):
            hook = self.handle.get(name)
        else:
            try:
                hook = getattr(self.handle, name, None)
            except Exception as e:
                # Property access on a torn-down context can itself fail.
                log(f"Hook lookup '{name}' failed: {e}", "DEBUG")
                return None
        return hook if callable(hook) else None

    def has(self, name: str) -> bool:
        return self._lookup(name) is not None

    def capabilities(self) -> FrozenSet[str]:
        return frozenset(name for name in HOOKS if self.has(name))

    def invoke(self, name: str, *args: Any) -> HookResult:
        hook = self._lookup(name)
        if hook is None:
            return HookResult(MISSING)
        try:
            return HookResult(OK, hook(*args))
        except Exception as e:
            log(f"⚠️ Embedded hook '{name}' raised: {e}", "WARNING")
            return HookResult(FAULT)

    async def invoke_async(self, name: str, *args: Any) -> HookResult:
        """Like invoke, but awaits hooks that return an awaitable."""
        result = self.invoke(name, *args)
        if not result.ok or not inspect.isawaitable(result.value):
            return result
        try:
            return HookResult(OK, await result.value)
        except Exception as e:
            log(f"⚠️ Embedded hook '{name}' raised: {e}", "WARNING")
            return HookResult(FAULT)
