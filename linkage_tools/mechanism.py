"""
mechanism.py - Mechanism configuration and the six linkage variants.

Two layers live here:

  - MechanismConfig: the flat parameter record the optimizer mutates and the
    UI exchanges. It carries every parameter any variant might need, so a
    structural mutation (e.g. four-bar -> five-bar) keeps the values it does
    not use yet. Optional values are resolved once in __post_init__.

  - Linkage variants (CrankLinkage, FourBarLinkage, ...): immutable solver
    objects built from a config by build_linkage(). Each owns exactly the
    parameters its geometry uses, angles already in radians, and exposes
    solve(drive_angle) -> JointState and solve_many(angles) -> JointTrajectory.

Usage:

    config = MechanismConfig(mech_type='4bar', crank_length=50, ...)
    linkage = build_linkage(config)
    state = linkage.solve(math.pi / 4)
    frames = linkage.solve_many(np.linspace(0, 2 * np.pi, 60, endpoint=False))
"""
from __future__ import annotations

import dataclasses
import math
from abc import ABC
from abc import abstractmethod
from dataclasses import dataclass
from typing import Literal

import numpy as np

from link.tools import from_track_frame
from link.tools import intersect_circles_array
from link.tools import Point
from link.tools import polar_point
from link.tools import to_track_frame

MechanismType = Literal['crank', '4bar', 'piston', 'yoke', 'quick-return', '5bar']

MECHANISM_TYPES: tuple[MechanismType, ...] = ('crank', '4bar', 'piston', 'yoke', 'quick-return', '5bar')

# Link lengths that must stay physical (clamped after generation/mutation)
LENGTH_FIELDS = ('ground_length', 'crank_length', 'coupler_length', 'rocker_length', 'rod_length')

# Every length-valued field, scaled together by global scale changes
SCALED_FIELDS = LENGTH_FIELDS + ('slider_offset', 'coupler_point_dist')

DEFAULT_ROD_LENGTH = 100.0

# camelCase keys used by the drawing UI <-> dataclass field names
_UI_KEYS = {
    'id': 'id',
    'visible': 'visible',
    'color': 'color',
    'anchorX': 'anchor_x',
    'anchorY': 'anchor_y',
    'groundAngle': 'ground_angle',
    'crankLength': 'crank_length',
    'groundLength': 'ground_length',
    'couplerLength': 'coupler_length',
    'rockerLength': 'rocker_length',
    'sliderOffset': 'slider_offset',
    'couplerPointDist': 'coupler_point_dist',
    'couplerPointAngle': 'coupler_point_angle',
    'speed1': 'speed1',
    'speed2': 'speed2',
    'gearRatio': 'gear_ratio',
    'rodLength': 'rod_length',
    'phase': 'phase',
}


@dataclass
class MechanismConfig:
    """
    Parameters of one mechanism, shared by all variants.

    Length meanings are variant specific (see the linkage classes below).
    Angles ground_angle and coupler_point_angle are in degrees; phase is in
    radians. Defaults describe a crank-rocker four-bar.

    Attributes:
        mech_type: Variant tag
        crank_length: Primary crank radius
        ground_length: Distance to the secondary pivot / gear centre
        coupler_length: Coupler (four-bar, piston) or primary arm (five-bar)
        rocker_length: Rocker, slotted arm, or secondary crank radius
        slider_offset: Track offset (piston, yoke) or pivot offset (quick-return)
        coupler_point_dist: Effector distance from its reference joint
        coupler_point_angle: Effector angle relative to its reference link
        anchor_x, anchor_y: Primary pivot position
        ground_angle: Orientation of ground link / track
        speed1: Primary crank speed ratio (drive angle multiplier)
        speed2: Secondary five-bar crank speed ratio
        gear_ratio: Fallback for speed2 when it is not given
        rod_length: Secondary five-bar arm
        phase: Secondary five-bar crank phase offset
        id, visible, color: Presentation fields, opaque to the solver
    """
    mech_type: MechanismType = '4bar'
    crank_length: float = 50.0
    ground_length: float = 180.0
    coupler_length: float = 180.0
    rocker_length: float = 120.0
    slider_offset: float = 0.0
    coupler_point_dist: float = 80.0
    coupler_point_angle: float = 45.0
    anchor_x: float = 0.0
    anchor_y: float = 0.0
    ground_angle: float = 0.0
    speed1: float = 1.0
    speed2: float | None = None
    gear_ratio: float = 1.0
    rod_length: float = DEFAULT_ROD_LENGTH
    phase: float = 0.0
    id: str = 'mech-1'
    visible: bool = True
    color: str = '#3b82f6'

    def __post_init__(self):
        if self.mech_type not in MECHANISM_TYPES:
            raise ValueError(
                f'Unknown mechanism type: {self.mech_type!r}. Expected one of {MECHANISM_TYPES}',
            )
        if self.speed2 is None:
            self.speed2 = self.gear_ratio

    @property
    def anchor(self) -> Point:
        return Point(self.anchor_x, self.anchor_y)

    def copy(self, **changes) -> MechanismConfig:
        """Shallow copy with optional field overrides."""
        return dataclasses.replace(self, **changes)

    def scale(self, factor: float) -> MechanismConfig:
        """Multiply every length-valued field by `factor` in place."""
        for name in SCALED_FIELDS:
            setattr(self, name, getattr(self, name) * factor)
        return self

    def to_linkage(self) -> Linkage:
        return build_linkage(self)

    def to_dict(self) -> dict:
        """Serialize with the UI's camelCase keys."""
        data = {'type': self.mech_type}
        for ui_key, attr in _UI_KEYS.items():
            data[ui_key] = getattr(self, attr)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> MechanismConfig:
        """
        Create from a UI dictionary. Missing optional keys take the defaults;
        a zero or missing rodLength falls back to DEFAULT_ROD_LENGTH.
        """
        kwargs = {'mech_type': data.get('type', data.get('mech_type', '4bar'))}
        for ui_key, attr in _UI_KEYS.items():
            if ui_key in data and data[ui_key] is not None:
                kwargs[attr] = data[ui_key]
        if not kwargs.get('rod_length'):
            kwargs['rod_length'] = DEFAULT_ROD_LENGTH
        return cls(**kwargs)


# =============================================================================
# SOLVER OUTPUT
# =============================================================================


@dataclass(frozen=True)
class JointState:
    """
    Joint positions of one mechanism at one drive angle.

    p1: primary pivot (anchor); p2: secondary pivot / ground point;
    j1: crank tip; j2: coupling point; aux: five-bar secondary crank tip;
    effector: traced point. When is_valid is False, missing joints hold p1.
    """
    p1: Point
    p2: Point
    j1: Point
    j2: Point
    effector: Point
    is_valid: bool
    aux: Point | None = None

    def to_dict(self) -> dict:
        data = {
            'p1': list(self.p1),
            'p2': list(self.p2),
            'j1': list(self.j1),
            'j2': list(self.j2),
            'effector': list(self.effector),
            'isValid': self.is_valid,
        }
        if self.aux is not None:
            data['aux'] = list(self.aux)
        return data


@dataclass(frozen=True)
class JointTrajectory:
    """
    Joint positions over many drive angles, one row per angle.

    All point arrays have shape (n, 2); valid has shape (n,).
    """
    angles: np.ndarray
    p1: np.ndarray
    p2: np.ndarray
    j1: np.ndarray
    j2: np.ndarray
    effector: np.ndarray
    valid: np.ndarray
    aux: np.ndarray | None = None

    def __len__(self) -> int:
        return len(self.angles)

    def frame(self, i: int) -> JointState:
        def pt(arr):
            return Point(float(arr[i, 0]), float(arr[i, 1]))

        return JointState(
            p1=pt(self.p1),
            p2=pt(self.p2),
            j1=pt(self.j1),
            j2=pt(self.j2),
            effector=pt(self.effector),
            is_valid=bool(self.valid[i]),
            aux=pt(self.aux) if self.aux is not None else None,
        )


# =============================================================================
# LINKAGE VARIANTS
# =============================================================================


class Linkage(ABC):
    """
    Common behaviour of all variants.

    Subclasses provide solve_many(); solve() evaluates a single angle through
    the same code path.
    """
    anchor: Point
    crank_length: float
    speed1: float

    @abstractmethod
    def solve_many(self, angles: np.ndarray) -> JointTrajectory:
        """Solve the mechanism at every drive angle (radians)."""

    def solve(self, drive_angle: float) -> JointState:
        return self.solve_many(np.array([drive_angle], dtype=np.float64)).frame(0)

    def _anchor_rows(self, n: int) -> np.ndarray:
        return np.tile(np.asarray(self.anchor, dtype=np.float64), (n, 1))

    def _crank_tips(self, angles: np.ndarray) -> np.ndarray:
        theta = angles * self.speed1
        return np.column_stack((
            self.anchor[0] + self.crank_length * np.cos(theta),
            self.anchor[1] + self.crank_length * np.sin(theta),
        ))

    def _assemble(
        self,
        angles: np.ndarray,
        p2: np.ndarray,
        j1: np.ndarray,
        j2: np.ndarray,
        effector: np.ndarray,
        valid: np.ndarray,
        aux: np.ndarray | None = None,
    ) -> JointTrajectory:
        """Replace joints of unsolvable rows with the anchor."""
        p1 = self._anchor_rows(len(angles))
        invalid = ~valid
        if np.any(invalid):
            j2 = j2.copy()
            effector = effector.copy()
            j2[invalid] = p1[invalid]
            effector[invalid] = p1[invalid]
        return JointTrajectory(
            angles=angles, p1=p1, p2=p2, j1=j1, j2=j2,
            effector=effector, valid=valid, aux=aux,
        )


def _extend(origin: np.ndarray, angle: np.ndarray, dist: float) -> np.ndarray:
    return origin + dist * np.column_stack((np.cos(angle), np.sin(angle)))


@dataclass(frozen=True)
class CrankLinkage(Linkage):
    """Single rotating crank; the effector is the crank tip."""
    anchor: Point
    crank_length: float
    speed1: float = 1.0

    def solve_many(self, angles: np.ndarray) -> JointTrajectory:
        angles = np.asarray(angles, dtype=np.float64)
        j1 = self._crank_tips(angles)
        valid = np.ones(len(angles), dtype=bool)
        return self._assemble(angles, self._anchor_rows(len(angles)), j1, j1, j1, valid)


@dataclass(frozen=True)
class FourBarLinkage(Linkage):
    """
    Crank-coupler-rocker. The rocker pivots at P2 = P1 + ground at ground_angle;
    J2 closes the coupler and rocker circles. The effector is carried on the
    coupler, rotated coupler_point_angle from the J1->J2 line.
    """
    anchor: Point
    crank_length: float
    ground_length: float
    ground_angle: float
    coupler_length: float
    rocker_length: float
    coupler_point_dist: float
    coupler_point_angle: float
    speed1: float = 1.0

    def solve_many(self, angles: np.ndarray) -> JointTrajectory:
        angles = np.asarray(angles, dtype=np.float64)
        n = len(angles)
        j1 = self._crank_tips(angles)
        p2 = np.tile(polar_point(self.anchor, self.ground_length, self.ground_angle), (n, 1))
        j2, valid = intersect_circles_array(j1, self.coupler_length, p2, self.rocker_length)

        coupler_angle = np.arctan2(j2[:, 1] - j1[:, 1], j2[:, 0] - j1[:, 0])
        effector = _extend(j1, coupler_angle + self.coupler_point_angle, self.coupler_point_dist)
        return self._assemble(angles, p2, j1, j2, effector, valid)


@dataclass(frozen=True)
class PistonLinkage(Linkage):
    """
    Slider-crank. The slider J2 runs on a straight track through the anchor,
    rotated by track_angle and offset by slider_offset; the coupler J1-J2 has
    fixed length. Unreachable when the track is farther than the coupler.
    """
    anchor: Point
    crank_length: float
    track_angle: float
    slider_offset: float
    coupler_length: float
    coupler_point_dist: float
    coupler_point_angle: float
    speed1: float = 1.0

    def solve_many(self, angles: np.ndarray) -> JointTrajectory:
        angles = np.asarray(angles, dtype=np.float64)
        j1 = self._crank_tips(angles)
        local_j1 = to_track_frame(j1, self.anchor, self.track_angle)

        dy_link = self.slider_offset - local_j1[:, 1]
        valid = np.abs(dy_link) <= self.coupler_length
        dx_link = np.sqrt(np.maximum(0.0, self.coupler_length ** 2 - dy_link ** 2))

        # Invalid rows keep the projection of J1 onto the track as ground point
        local_j2 = np.column_stack((
            np.where(valid, local_j1[:, 0] + dx_link, local_j1[:, 0]),
            np.full(len(angles), self.slider_offset),
        ))
        j2 = from_track_frame(local_j2, self.anchor, self.track_angle)
        p2 = j2.copy()

        coupler_angle = np.arctan2(j2[:, 1] - j1[:, 1], j2[:, 0] - j1[:, 0])
        effector = _extend(j1, coupler_angle + self.coupler_point_angle, self.coupler_point_dist)
        return self._assemble(angles, p2, j1, j2, effector, valid)


@dataclass(frozen=True)
class YokeLinkage(Linkage):
    """
    Scotch yoke. J2 is the crank tip projected onto the track; the effector is
    a rigid offset from J2 at an absolute angle. Always assembles.
    """
    anchor: Point
    crank_length: float
    track_angle: float
    slider_offset: float
    coupler_point_dist: float
    coupler_point_angle: float
    speed1: float = 1.0

    def solve_many(self, angles: np.ndarray) -> JointTrajectory:
        angles = np.asarray(angles, dtype=np.float64)
        n = len(angles)
        j1 = self._crank_tips(angles)
        local_j1 = to_track_frame(j1, self.anchor, self.track_angle)
        local_j2 = np.column_stack((local_j1[:, 0], np.full(n, self.slider_offset)))
        j2 = from_track_frame(local_j2, self.anchor, self.track_angle)

        effector = _extend(j2, np.full(n, self.coupler_point_angle), self.coupler_point_dist)
        valid = np.ones(n, dtype=bool)
        return self._assemble(angles, j2.copy(), j1, j2, effector, valid)


@dataclass(frozen=True)
class QuickReturnLinkage(Linkage):
    """
    Slotted-crank quick return. The slotted arm pivots at P2 (ground_length
    along, slider_offset across the ground direction) and always points at the
    crank pin; J2 is the arm tip at rocker_length.
    """
    anchor: Point
    crank_length: float
    ground_length: float
    slider_offset: float
    ground_angle: float
    rocker_length: float
    coupler_point_dist: float
    coupler_point_angle: float
    speed1: float = 1.0

    def solve_many(self, angles: np.ndarray) -> JointTrajectory:
        angles = np.asarray(angles, dtype=np.float64)
        n = len(angles)
        j1 = self._crank_tips(angles)
        p2_local = np.array([[self.ground_length, self.slider_offset]])
        p2 = np.tile(from_track_frame(p2_local, self.anchor, self.ground_angle)[0], (n, 1))

        arm_angle = np.arctan2(j1[:, 1] - p2[:, 1], j1[:, 0] - p2[:, 0])
        j2 = _extend(p2, arm_angle, self.rocker_length)
        effector = _extend(j2, arm_angle + self.coupler_point_angle, self.coupler_point_dist)
        valid = np.ones(n, dtype=bool)
        return self._assemble(angles, p2, j1, j2, effector, valid)


@dataclass(frozen=True)
class FiveBarLinkage(Linkage):
    """
    Geared five-bar. A second crank of radius rocker_length turns about
    P2 at speed2 (plus phase); the primary arm (coupler_length from J1) and
    the rod (rod_length from the second crank tip) meet at J2. The effector
    extends the primary arm beyond J2.
    """
    anchor: Point
    crank_length: float
    ground_length: float
    ground_angle: float
    rocker_length: float
    coupler_length: float
    rod_length: float
    coupler_point_dist: float
    speed1: float
    speed2: float
    phase: float

    def solve_many(self, angles: np.ndarray) -> JointTrajectory:
        angles = np.asarray(angles, dtype=np.float64)
        n = len(angles)
        j1 = self._crank_tips(angles)
        p2 = np.tile(polar_point(self.anchor, self.ground_length, self.ground_angle), (n, 1))
        aux = _extend(p2, angles * self.speed2 + self.phase, self.rocker_length)

        j2, valid = intersect_circles_array(j1, self.coupler_length, aux, self.rod_length)
        arm_angle = np.arctan2(j2[:, 1] - j1[:, 1], j2[:, 0] - j1[:, 0])
        effector = _extend(j2, arm_angle, self.coupler_point_dist)
        return self._assemble(angles, p2, j1, j2, effector, valid, aux=aux)


def build_linkage(config: MechanismConfig) -> Linkage:
    """
    Build the solver variant for a configuration.

    Degrees are converted to radians here and nowhere else.
    """
    anchor = config.anchor
    ground_angle = math.radians(config.ground_angle)
    point_angle = math.radians(config.coupler_point_angle)
    mech_type = config.mech_type

    if mech_type == 'crank':
        return CrankLinkage(anchor=anchor, crank_length=config.crank_length, speed1=config.speed1)
    elif mech_type == '4bar':
        return FourBarLinkage(
            anchor=anchor,
            crank_length=config.crank_length,
            ground_length=config.ground_length,
            ground_angle=ground_angle,
            coupler_length=config.coupler_length,
            rocker_length=config.rocker_length,
            coupler_point_dist=config.coupler_point_dist,
            coupler_point_angle=point_angle,
            speed1=config.speed1,
        )
    elif mech_type == 'piston':
        return PistonLinkage(
            anchor=anchor,
            crank_length=config.crank_length,
            track_angle=ground_angle,
            slider_offset=config.slider_offset,
            coupler_length=config.coupler_length,
            coupler_point_dist=config.coupler_point_dist,
            coupler_point_angle=point_angle,
            speed1=config.speed1,
        )
    elif mech_type == 'yoke':
        return YokeLinkage(
            anchor=anchor,
            crank_length=config.crank_length,
            track_angle=ground_angle,
            slider_offset=config.slider_offset,
            coupler_point_dist=config.coupler_point_dist,
            coupler_point_angle=point_angle,
            speed1=config.speed1,
        )
    elif mech_type == 'quick-return':
        return QuickReturnLinkage(
            anchor=anchor,
            crank_length=config.crank_length,
            ground_length=config.ground_length,
            slider_offset=config.slider_offset,
            ground_angle=ground_angle,
            rocker_length=config.rocker_length,
            coupler_point_dist=config.coupler_point_dist,
            coupler_point_angle=point_angle,
            speed1=config.speed1,
        )
    elif mech_type == '5bar':
        return FiveBarLinkage(
            anchor=anchor,
            crank_length=config.crank_length,
            ground_length=config.ground_length,
            ground_angle=ground_angle,
            rocker_length=config.rocker_length,
            coupler_length=config.coupler_length,
            rod_length=config.rod_length,
            coupler_point_dist=config.coupler_point_dist,
            speed1=config.speed1,
            speed2=config.speed2,
            phase=config.phase,
        )
    raise ValueError(f'Unknown mechanism type: {mech_type!r}')
