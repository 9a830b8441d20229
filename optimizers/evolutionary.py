"""
Evolutionary path-fitting optimizer.

Finds a mechanism type and dimensions whose effector retraces a target path.
The search is a best-effort anytime process with four states:

    IDLE -> SEEDING -> EVOLVING -> DONE

Seeding (Monte-Carlo pre-search):
    (a) randomized placements of a template mechanism (options.seed_mechanism)
    (b) the current mechanism plus light mutations of it, unless excluded or
        of a different type than a forced one
    (c) a large batch of freshly synthesized candidates
    Everything is scored; candidates below the invalid threshold are kept
    (all of them if none are), sorted, truncated to the population size and
    padded with fresh synthesis.

Evolving (one generation):
    score -> sort -> update global best -> report -> breed:
    elites carried over unchanged; the rest is fresh synthesis (small chance)
    or a mutation of a random survivor at an annealed temperature
    max(min_temperature, 1 - progress ** 0.5).

Termination is checked only at generation boundaries: a fixed generation
count, or a wall-clock budget when options.duration_seconds > 0. A caller
may cancel through should_stop(), which is polled right after each report.

Randomness comes only from the injected np.random.Generator.
"""
from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import field
from enum import Enum

import numpy as np

from candidate_gen.mutation import mutate_config
from candidate_gen.sampling import place_seed_variations
from candidate_gen.sampling import synthesize_config
from candidate_gen.variation_config import MutationConfig
from candidate_gen.variation_config import SeedPlacementConfig
from candidate_gen.variation_config import SynthesisConfig
from configs.logging_config import log_separator
from linkage_tools.mechanism import MechanismConfig
from linkage_tools.optimization_types import GenerationReport
from linkage_tools.optimization_types import OptimizationOptions
from linkage_tools.optimization_types import OptimizationResult
from linkage_tools.optimization_types import ScoredCandidate
from linkage_tools.optimization_types import TargetPath
from linkage_tools.trajectory_scoring import evaluate_fitness
from linkage_tools.trajectory_scoring import INVALID_THRESHOLD

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class EvolutionConfig:
    """
    Configuration for the evolutionary path optimizer.

    Attributes:
        population_size: Candidates per generation
        pre_compute_size: Freshly synthesized candidates scored during seeding
        current_mutations: Mutations of the current mechanism added to seeding
        current_mutation_temperature: Temperature of those mutations
        n_generations: Generation budget when no time budget is given
        elite_fraction: Share of each generation copied unchanged
        survivor_fraction: Share of each generation eligible as parents
        fresh_fraction: Chance that a new member is freshly synthesized
        min_temperature: Temperature floor of the annealing schedule
        temperature_exponent: Temperature is 1 - progress ** exponent
        invalid_threshold: Seeding keeps candidates scoring below this
        seed: Random seed for reproducibility (ignored if an rng is passed)
        n_workers: Threads used to score a population (1 = inline)
        log_every: Generations between INFO progress lines
        synthesis: Candidate synthesis parameters
        mutation: Mutation parameters
        placement: Template seeding parameters
    """
    population_size: int = 100
    pre_compute_size: int = 2000
    current_mutations: int = 20
    current_mutation_temperature: float = 0.5
    n_generations: int = 100
    elite_fraction: float = 0.15
    survivor_fraction: float = 0.5
    fresh_fraction: float = 0.1
    min_temperature: float = 0.05
    temperature_exponent: float = 0.5
    invalid_threshold: float = INVALID_THRESHOLD
    seed: int | None = None
    n_workers: int = 1
    log_every: int = 10
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    mutation: MutationConfig = field(default_factory=MutationConfig)
    placement: SeedPlacementConfig = field(default_factory=SeedPlacementConfig)

    def __post_init__(self):
        if self.population_size < 1:
            raise ValueError(f'population_size must be >= 1, got {self.population_size}')
        if self.n_workers < 1:
            raise ValueError(f'n_workers must be >= 1, got {self.n_workers}')

    @property
    def n_elites(self) -> int:
        return min(self.population_size, math.ceil(self.population_size * self.elite_fraction))

    @property
    def n_survivors(self) -> int:
        return max(1, int(self.population_size * self.survivor_fraction))


class OptimizerState(Enum):
    IDLE = 'idle'
    SEEDING = 'seeding'
    EVOLVING = 'evolving'
    DONE = 'done'


GenerationCallback = Callable[[GenerationReport], None]
StopCallback = Callable[[], bool]


# =============================================================================
# OPTIMIZER
# =============================================================================


class PathOptimizer:
    """
    Stateful driver for one optimization run.

    The caller-visible current best lives in best_config / best_score and is
    overwritten at most once per generation.

    Example:
        optimizer = PathOptimizer(
            target_path=TargetPath(positions=points),
            current=selected_config,
            options=OptimizationOptions(exclude_current=True),
            on_generation=lambda report: preview(report.best_config),
        )
        result = optimizer.run()
    """

    def __init__(
        self,
        target_path: TargetPath | Sequence,
        current: MechanismConfig | None = None,
        options: OptimizationOptions | None = None,
        config: EvolutionConfig | None = None,
        rng: np.random.Generator | None = None,
        on_generation: GenerationCallback | None = None,
        should_stop: StopCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not isinstance(target_path, TargetPath):
            target_path = TargetPath(positions=list(target_path))
        if len(target_path) == 0:
            raise ValueError('Target path must contain at least one point')

        self.target_path = target_path
        self.current = current
        self.options = options or OptimizationOptions()
        self.config = config or EvolutionConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.on_generation = on_generation
        self.should_stop = should_stop
        self._clock = clock

        self.state = OptimizerState.IDLE
        self.best_config: MechanismConfig | None = None
        self.best_score = float('inf')
        self.generation = 0
        self.evaluations = 0
        self.convergence_history: list[float] = []

        self.forced_type = self.options.forced_type
        self.excluded_type = None
        if self.options.exclude_current and current is not None:
            self.excluded_type = current.mech_type

    # -------------------------------------------------------------------------
    # Candidate sources
    # -------------------------------------------------------------------------

    def _synthesize(self) -> MechanismConfig:
        return synthesize_config(
            self.rng,
            self.target_path,
            forced_type=self.forced_type,
            excluded_type=self.excluded_type,
            synthesis_config=self.config.synthesis,
        )

    def _mutate(self, parent: MechanismConfig, temperature: float) -> MechanismConfig:
        return mutate_config(
            parent,
            temperature,
            self.rng,
            fixed_type=self.forced_type is not None,
            excluded_type=self.excluded_type,
            mutation_config=self.config.mutation,
        )

    def _use_current(self) -> bool:
        if self.current is None or self.options.exclude_current:
            return False
        return self.forced_type is None or self.forced_type == self.current.mech_type

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def _score(self, configs: list[MechanismConfig]) -> list[float]:
        """Fitness of every config, in order. Pure, so threads do not change results."""
        if self.config.n_workers > 1 and len(configs) > 1:
            with ThreadPoolExecutor(max_workers=self.config.n_workers) as pool:
                scores = list(pool.map(lambda c: evaluate_fitness(c, self.target_path), configs))
        else:
            scores = [evaluate_fitness(c, self.target_path) for c in configs]
        self.evaluations += len(configs)
        return scores

    @staticmethod
    def _rank(configs: list[MechanismConfig], scores: list[float]) -> list[ScoredCandidate]:
        # Stable sort keeps insertion order among equal scores
        order = np.argsort(np.asarray(scores, dtype=np.float64), kind='stable')
        return [ScoredCandidate(configs[i], float(scores[i])) for i in order]

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def seed_population(self) -> list[MechanismConfig]:
        """Build and score the initial candidate pool; returns the first population."""
        self.state = OptimizerState.SEEDING
        cfg = self.config
        candidates: list[MechanismConfig] = []

        if self.options.seed_mechanism is not None:
            candidates.extend(place_seed_variations(
                self.options.seed_mechanism, self.rng, self.target_path, cfg.placement,
            ))

        if self._use_current():
            candidates.append(self.current.copy())
            for _ in range(cfg.current_mutations):
                candidates.append(self._mutate(self.current, cfg.current_mutation_temperature))

        for _ in range(cfg.pre_compute_size):
            candidates.append(self._synthesize())

        scored = self._rank(candidates, self._score(candidates))
        valid = [c for c in scored if c.score < cfg.invalid_threshold]
        pool = valid if valid else scored

        population = [c.config for c in pool[:cfg.population_size]]
        n_padded = cfg.population_size - len(population)
        while len(population) < cfg.population_size:
            population.append(self._synthesize())

        if pool:
            self.best_config = pool[0].config
            self.best_score = pool[0].score

        logger.info(f'Seeding: {len(candidates)} candidates scored, {len(valid)} valid')
        logger.info(f'  Population: {cfg.population_size} ({n_padded} padded with synthesis)')
        logger.info(f'  Seed best score: {self.best_score:.4f}')
        return population

    def _progress(self, elapsed: float) -> float:
        if self.options.timed:
            return elapsed / self.options.duration_seconds
        return self.generation / self.config.n_generations

    def temperature(self, elapsed: float) -> float:
        """Annealed mutation temperature for the current generation."""
        progress = max(0.0, self._progress(elapsed))
        return max(self.config.min_temperature, 1.0 - progress ** self.config.temperature_exponent)

    def _budget_exhausted(self, elapsed: float) -> bool:
        if self.options.timed:
            return elapsed >= self.options.duration_seconds
        return self.generation >= self.config.n_generations

    def _breed(self, ranked: list[ScoredCandidate], temperature: float) -> list[MechanismConfig]:
        cfg = self.config
        next_gen = [c.config for c in ranked[:cfg.n_elites]]
        survivors = ranked[:cfg.n_survivors]
        while len(next_gen) < cfg.population_size:
            if self.rng.random() < cfg.fresh_fraction:
                next_gen.append(self._synthesize())
            else:
                parent = survivors[int(self.rng.integers(len(survivors)))].config
                next_gen.append(self._mutate(parent, temperature))
        return next_gen

    def _with_identity(self, config: MechanismConfig) -> MechanismConfig:
        """Results replace the current mechanism, so they keep its id and colour."""
        if self.current is None:
            return config
        return config.copy(id=self.current.id, color=self.current.color)

    def run(self) -> OptimizationResult:
        """
        Execute seeding and evolution until the budget runs out or the caller
        cancels.

        Returns:
            OptimizationResult with the best-of-run configuration
        """
        if self.state is not OptimizerState.IDLE:
            raise RuntimeError(f'Optimizer already ran (state={self.state.value})')

        start = self._clock()
        log_separator(logger, 'PATH OPTIMIZATION')
        logger.info(f'  Target points: {len(self.target_path)}')
        logger.info(f'  Forced type: {self.forced_type}, excluded type: {self.excluded_type}')
        if self.options.timed:
            logger.info(f'  Budget: {self.options.duration_seconds:.1f}s')
        else:
            logger.info(f'  Budget: {self.config.n_generations} generations')

        population = self.seed_population()
        initial_score = self.best_score
        cancelled = False

        self.state = OptimizerState.EVOLVING
        while True:
            elapsed = self._clock() - start
            if self._budget_exhausted(elapsed):
                break

            ranked = self._rank(population, self._score(population))
            gen_best = ranked[0]
            if gen_best.score < self.best_score:
                self.best_score = gen_best.score
                self.best_config = gen_best.config
            self.convergence_history.append(self.best_score)

            temperature = self.temperature(elapsed)
            report = GenerationReport(
                generation=self.generation,
                best_config=self._with_identity(gen_best.config),
                best_score=gen_best.score,
                global_best_score=self.best_score,
                temperature=temperature,
                elapsed_seconds=elapsed,
            )

            message = (
                f'  Generation {self.generation}: gen_best={gen_best.score:.4f} '
                f'({gen_best.config.mech_type}), global_best={self.best_score:.4f}, T={temperature:.3f}'
            )
            if self.config.log_every and self.generation % self.config.log_every == 0:
                logger.info(message)
            else:
                logger.debug(message)

            if self.on_generation is not None:
                self.on_generation(report)
            if self.should_stop is not None and self.should_stop():
                logger.info(f'Optimization cancelled after generation {self.generation}')
                cancelled = True
                self.generation += 1
                break

            population = self._breed(ranked, temperature)
            self.generation += 1

        self.state = OptimizerState.DONE
        elapsed = self._clock() - start
        best = self._with_identity(self.best_config) if self.best_config is not None else None

        logger.info('Optimization completed')
        logger.info(f'  Generations: {self.generation}')
        logger.info(f'  Evaluations: {self.evaluations}')
        logger.info(f'  Best score: {self.best_score:.4f} ({best.mech_type if best else None})')
        logger.info(f'  Elapsed: {elapsed:.2f}s')

        return OptimizationResult(
            success=best is not None,
            best_config=best,
            best_score=self.best_score,
            initial_score=initial_score,
            generations=self.generation,
            evaluations=self.evaluations,
            elapsed_seconds=elapsed,
            convergence_history=list(self.convergence_history),
            cancelled=cancelled,
            error=None if best is not None else 'No candidate was produced',
        )


def optimize_path(
    target_path: TargetPath | Sequence,
    current: MechanismConfig | None = None,
    options: OptimizationOptions | None = None,
    config: EvolutionConfig | None = None,
    rng: np.random.Generator | None = None,
    on_generation: GenerationCallback | None = None,
    should_stop: StopCallback | None = None,
) -> OptimizationResult:
    """
    Fit a mechanism to `target_path`.

    Args:
        target_path: Points to retrace (at least one)
        current: Currently selected mechanism, used as a seed and as the
            identity (id, colour) of the result
        options: Forced/excluded type, template seed and time budget
        config: Evolution parameters (defaults if not provided)
        rng: Random generator; built from config.seed when omitted
        on_generation: Called with a GenerationReport after every generation
        should_stop: Polled after every report; returning True cancels

    Returns:
        OptimizationResult
    """
    optimizer = PathOptimizer(
        target_path,
        current=current,
        options=options,
        config=config,
        rng=rng,
        on_generation=on_generation,
        should_stop=should_stop,
    )
    return optimizer.run()
