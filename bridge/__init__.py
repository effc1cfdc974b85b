"""
Runtime bridge for embedded parametric documents.
Handles readiness polling, control pushes, measurement and export pulls.
"""
from .state import (
    LIGHTING_PRESETS,
    ParametricParams,
    FogSettings,
    ControlState,
    Measurements,
)
from .surface import ControlSurface, HookResult, HOOKS
from .runtime_bridge import EmbeddedRuntimeBridge, BridgeState
from .session import HostSession

__all__ = [
    "LIGHTING_PRESETS",
    "ParametricParams",
    "FogSettings",
    "ControlState",
    "Measurements",
    "ControlSurface",
    "HookResult",
    "HOOKS",
    "EmbeddedRuntimeBridge",
    "BridgeState",
    "HostSession",
]
