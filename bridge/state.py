"""
bridge/state.py
---------------
Host-side control state, passed to the runtime bridge as immutable snapshots.

Classes:
  - ParametricParams : scale / height / levels sent to updateParams
  - FogSettings      : color / density sent to updateFog
  - ControlState     : everything the host pushes into the embedded document
  - Measurements     : values pulled back from the document
"""

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LIGHTING_PRESETS = ("Studio", "Daylight", "Sunset", "Night", "Golden Hour", "Stormy")
DEFAULT_LIGHTING = "Studio"


class ParametricParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    scale: float = Field(1.0, ge=0.2, le=5.0)
    height: float = Field(1.0, ge=0.2, le=10.0)
    levels: int = Field(20, ge=5, le=75)

    def as_args(self):
        return self.scale, self.height, self.levels


class FogSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: str = "#f0f0f0"
    density: float = Field(0.01, ge=0.0, le=0.1)

    def as_args(self):
        return self.color, self.density


class ControlState(BaseModel):
    model_config = ConfigDict(frozen=True)

    params: ParametricParams = ParametricParams()
    lighting: str = DEFAULT_LIGHTING
    fog: FogSettings = FogSettings()

    @field_validator("lighting")
    @classmethod
    def _known_preset(cls, v: str) -> str:
        if v not in LIGHTING_PRESETS:
            raise ValueError(f"Unknown lighting preset: {v}")
        return v

    def evolve(self, **changes: Any) -> "ControlState":
        """
        Return a new validated snapshot. Keys may be 'lighting', 'params',
        'fog', or any ParametricParams / FogSettings field name.
        """
        params = self.params.model_dump()
        fog = self.fog.model_dump()
        top = self.model_dump()
        for key, value in changes.items():
            if key in params:
                params[key] = value
            elif key in fog:
                fog[key] = value
            elif key in top:
                top[key] = value
            else:
                raise KeyError(key)
        if "params" not in changes:
            top["params"] = params
        if "fog" not in changes:
            top["fog"] = fog
        return ControlState.model_validate(top)


class Measurements(BaseModel):
    model_config = ConfigDict(frozen=True)

    surface_area: Optional[float] = None
    floor_area: Optional[float] = None


def as_measurement(value: Any) -> Optional[float]:
    """Accept only finite real numbers reported by the document."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)
