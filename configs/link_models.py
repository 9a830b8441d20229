"""
API payload models for mechanisms, target paths and optimization options.

The drawing UI speaks camelCase JSON; these models validate it and convert it
into the core dataclasses (MechanismConfig, TargetPath, OptimizationOptions).
"""
from __future__ import annotations

import math
from typing import Any
from typing import Literal
from typing import Optional

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator
from typing_extensions import Annotated

from configs.appconfig import MAX_OPTIMIZATION_SECONDS
from linkage_tools.mechanism import DEFAULT_ROD_LENGTH
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.optimization_types import OptimizationOptions
from linkage_tools.optimization_types import TargetPath

MechanismTypeName = Literal['crank', '4bar', 'piston', 'yoke', 'quick-return', '5bar']


class MechanismModel(BaseModel):
    """One mechanism as sent by the UI, with validation."""

    type: MechanismTypeName = Field(default='4bar', description='Mechanism variant tag')
    id: str = Field(default='mech-1', description='Identity token')
    visible: bool = True
    color: str = '#3b82f6'

    anchor_x: float = Field(default=0.0, alias='anchorX')
    anchor_y: float = Field(default=0.0, alias='anchorY')
    ground_angle: float = Field(default=0.0, alias='groundAngle', description='Degrees')

    crank_length: float = Field(default=50.0, alias='crankLength')
    ground_length: float = Field(default=180.0, alias='groundLength')
    coupler_length: float = Field(default=180.0, alias='couplerLength')
    rocker_length: float = Field(default=120.0, alias='rockerLength')
    slider_offset: float = Field(default=0.0, alias='sliderOffset')
    coupler_point_dist: float = Field(default=80.0, alias='couplerPointDist')
    coupler_point_angle: float = Field(default=45.0, alias='couplerPointAngle', description='Degrees')

    speed1: float = 1.0
    speed2: Optional[float] = None
    gear_ratio: float = Field(default=1.0, alias='gearRatio')
    rod_length: Optional[float] = Field(default=None, alias='rodLength')
    phase: float = Field(default=0.0, description='Radians')

    model_config = {
        'populate_by_name': True,  # Accept snake_case too
        'extra': 'ignore',         # UI sends presentation-only extras
    }

    @field_validator(
        'anchor_x', 'anchor_y', 'ground_angle', 'crank_length', 'ground_length',
        'coupler_length', 'rocker_length', 'slider_offset', 'coupler_point_dist',
        'coupler_point_angle', 'speed1', 'gear_ratio', 'phase',
    )
    @classmethod
    def validate_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError('value must be a finite number')
        return v

    def to_config(self) -> MechanismConfig:
        """Convert to the core configuration (defaults resolved once here)."""
        return MechanismConfig(
            mech_type=self.type,
            id=self.id,
            visible=self.visible,
            color=self.color,
            anchor_x=self.anchor_x,
            anchor_y=self.anchor_y,
            ground_angle=self.ground_angle,
            crank_length=self.crank_length,
            ground_length=self.ground_length,
            coupler_length=self.coupler_length,
            rocker_length=self.rocker_length,
            slider_offset=self.slider_offset,
            coupler_point_dist=self.coupler_point_dist,
            coupler_point_angle=self.coupler_point_angle,
            speed1=self.speed1,
            speed2=self.speed2,
            gear_ratio=self.gear_ratio,
            rod_length=self.rod_length or DEFAULT_ROD_LENGTH,
            phase=self.phase,
        )


def _parse_point(p: Any) -> tuple[float, float]:
    if isinstance(p, dict):
        return (float(p['x']), float(p['y']))
    if len(p) != 2:
        raise ValueError('points must have exactly 2 coordinates')
    return (float(p[0]), float(p[1]))


class TargetPathModel(BaseModel):
    """A drawn path; points may be [x, y] pairs or {'x': .., 'y': ..} objects."""

    points: list[tuple[float, float]] = Field(default_factory=list)

    @field_validator('points', mode='before')
    @classmethod
    def validate_points(cls, v):
        if v is None:
            return []
        return [_parse_point(p) for p in v]

    def to_target_path(self) -> TargetPath:
        return TargetPath(positions=list(self.points))


class OptimizationOptionsModel(BaseModel):
    """Optimization options as sent by the UI, with validation."""

    forced_type: Optional[MechanismTypeName] = Field(default=None, alias='forcedType')
    exclude_current: bool = Field(default=False, alias='excludeCurrent')
    seed_mechanism: Optional[MechanismModel] = Field(default=None, alias='seedMechanism')
    duration_seconds: Annotated[
        float,
        Field(ge=0, le=MAX_OPTIMIZATION_SECONDS, alias='durationSeconds', description='0 = fixed generation count'),
    ] = 0.0

    model_config = {
        'populate_by_name': True,
        'extra': 'ignore',
    }

    def to_options(self) -> OptimizationOptions:
        return OptimizationOptions(
            forced_type=self.forced_type,
            exclude_current=self.exclude_current,
            seed_mechanism=self.seed_mechanism.to_config() if self.seed_mechanism else None,
            duration_seconds=self.duration_seconds,
        )
