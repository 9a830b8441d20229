"""
optimization_types.py - Data structures for path-fitting optimization.

Contains dataclasses used throughout the optimizer and the API:
  - TargetPath: The user-drawn curve a mechanism should retrace
  - ScoredCandidate: A configuration together with its fitness
  - OptimizationOptions: Caller-facing search options
  - GenerationReport: Incremental result emitted once per generation
  - OptimizationResult: Result of an optimization run

Design notes:
  - TargetPath caches its numpy array; fitness evaluation reads it every call
  - Configurations are stored as MechanismConfig objects, converted to dicts
    only at the API boundary (to_dict)
"""
from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import TYPE_CHECKING

import numpy as np

from linkage_tools.mechanism import MECHANISM_TYPES
from linkage_tools.mechanism import MechanismConfig

if TYPE_CHECKING:
    from linkage_tools.mechanism import MechanismType


@dataclass
class TargetPath:
    """
    Ordered sequence of points the effector should trace.

    Treated as read-only by the optimizer.

    Attributes:
        positions: List of (x, y) points in drawing order

    Example:
        target = TargetPath(positions=[(100, 120), (105, 125), ...])
        target = TargetPath.from_array(points_np)
        points = target.positions_array  # shape (n_points, 2), cached
    """
    positions: list[tuple[float, float]]

    # Cached numpy array (created on first access)
    _array: np.ndarray | None = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.positions and not isinstance(self.positions[0], tuple):
            self.positions = [(float(p[0]), float(p[1])) for p in self.positions]

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def n_points(self) -> int:
        return len(self.positions)

    @property
    def positions_array(self) -> np.ndarray:
        """
        Positions as numpy array of shape (n_points, 2).

        Cached for efficient repeated access in optimization loops.
        """
        if self._array is None:
            self._array = np.array(self.positions, dtype=np.float64).reshape(-1, 2)
        return self._array

    @classmethod
    def from_array(cls, positions: np.ndarray) -> TargetPath:
        """Create directly from an (n, 2) array, pre-caching it."""
        arr = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        instance = cls(positions=[(float(x), float(y)) for x, y in arr])
        instance._array = arr
        return instance

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON/API responses."""
        return {
            'positions': [list(p) for p in self.positions],
            'n_points': self.n_points,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TargetPath:
        """Create from dictionary (e.g., from JSON/API request)."""
        return cls(positions=data['positions'])


@dataclass
class ScoredCandidate:
    """One population member. Lower score is better."""
    config: MechanismConfig
    score: float


@dataclass
class OptimizationOptions:
    """
    Search options supplied by the caller.

    Attributes:
        forced_type: Restrict generation and mutation to this variant
        exclude_current: Never generate the current configuration's variant
        seed_mechanism: Template whose randomized placements seed the search
        duration_seconds: 0 runs a fixed generation count; > 0 is a
            wall-clock budget in seconds
    """
    forced_type: MechanismType | None = None
    exclude_current: bool = False
    seed_mechanism: MechanismConfig | None = None
    duration_seconds: float = 0.0

    def __post_init__(self):
        if self.forced_type is not None and self.forced_type not in MECHANISM_TYPES:
            raise ValueError(f'Unknown forced_type: {self.forced_type!r}')
        if self.duration_seconds < 0:
            raise ValueError(f'duration_seconds must be >= 0, got {self.duration_seconds}')

    @property
    def timed(self) -> bool:
        return self.duration_seconds > 0


@dataclass
class GenerationReport:
    """
    Incremental result for one generation (live preview).

    Attributes:
        generation: Zero-based generation index
        best_config: Best configuration of this generation
        best_score: Its fitness
        global_best_score: Best fitness seen so far in the run
        temperature: Mutation temperature used to breed the next generation
        elapsed_seconds: Time since the run started
    """
    generation: int
    best_config: MechanismConfig
    best_score: float
    global_best_score: float
    temperature: float
    elapsed_seconds: float

    def to_dict(self) -> dict:
        return {
            'generation': self.generation,
            'best_config': self.best_config.to_dict(),
            'best_score': self.best_score,
            'global_best_score': self.global_best_score,
            'temperature': self.temperature,
            'elapsed_seconds': self.elapsed_seconds,
        }


@dataclass
class OptimizationResult:
    """
    Result of an optimization run.

    Attributes:
        success: Whether optimization completed successfully
        best_config: Best-of-run configuration (None if failed)
        best_score: Fitness of best_config
        initial_score: Best fitness after seeding
        generations: Number of generations evaluated
        evaluations: Number of fitness evaluations performed
        elapsed_seconds: Wall-clock duration of the run
        convergence_history: Global best fitness after each generation
        cancelled: True if the caller stopped the run early
        error: Error message if success=False
    """
    success: bool
    best_config: MechanismConfig | None = None
    best_score: float = float('inf')
    initial_score: float = float('inf')
    generations: int = 0
    evaluations: int = 0
    elapsed_seconds: float = 0.0
    convergence_history: list[float] = field(default_factory=list)
    cancelled: bool = False
    error: str | None = None

    @property
    def improvement_pct(self) -> float:
        """Percentage improvement from the seeded best to the final best."""
        if not np.isfinite(self.initial_score) or self.initial_score <= 0:
            return 0.0
        return (1.0 - self.best_score / self.initial_score) * 100.0

    def to_dict(self) -> dict:
        """
        Serialize to dictionary for JSON/API responses.

        Converts MechanismConfig to dict only at the API boundary.
        """
        return {
            'success': self.success,
            'best_config': self.best_config.to_dict() if self.best_config else None,
            'best_score': self.best_score,
            'initial_score': self.initial_score,
            'improvement_pct': self.improvement_pct,
            'generations': self.generations,
            'evaluations': self.evaluations,
            'elapsed_seconds': self.elapsed_seconds,
            'convergence_history': self.convergence_history,
            'cancelled': self.cancelled,
            'error': self.error,
        }
