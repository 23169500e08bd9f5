"""Genetic search for indicator weights that predict the next day's trend."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Sequence

from stockcast.models import FLT_MAX

TRAIN_DAYS = 200
MAX_POPULATION = 50
MAX_GENERATION = 30
GENE_NUM = 5
MUTATE_RATE = 0.05
CROSS_RATE = 0.8
BLOCK_SIZE = 20
WEIGHT_LIMIT = 2.0
MUTATE_STEP = 0.3


class Trend(IntEnum):
    """Direction signalled by an indicator or taken by the price."""

    UP = 1
    DOWN = -1
    NONE = 0


@dataclass(frozen=True)
class Features:
    """Indicator signals of one day and the price move on the next day."""

    ma: Trend
    expma: Trend
    xuechi: Trend
    kdj: Trend
    macd: Trend
    trend: Trend

    def signals(self) -> tuple[int, ...]:
        return (self.ma, self.expma, self.xuechi, self.kdj, self.macd)


@dataclass(frozen=True)
class Individual:
    """A set of indicator weights and how well they predicted."""

    weights: tuple[float, ...]
    fitness: float = 0.0

    def __post_init__(self) -> None:
        if len(self.weights) != GENE_NUM:
            raise ValueError(f"an individual needs {GENE_NUM} weights, got {len(self.weights)}")
        object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))


@dataclass(frozen=True)
class GeneResult:
    """Best weights found, the last day's features and the rise probability."""

    best: Individual
    last: Features
    probability: float


def _rng(rng):
    return rng if rng is not None else random.Random()


def _symmetric(rng, limit: float) -> float:
    return rng.random() * 2 * limit - limit


def _check_lengths(*series: Sequence[float]) -> None:
    if len({len(s) for s in series}) > 1:
        raise ValueError("series must have the same length")


def cross_signals(fast: Sequence[float], slow: Sequence[float]) -> list[Trend]:
    """UP where the fast line crosses above the slow one, DOWN where it crosses below."""
    _check_lengths(fast, slow)
    result = [Trend.NONE] if fast else []
    for i in range(1, len(fast)):
        if fast[i] > slow[i] and fast[i - 1] <= slow[i - 1]:
            result.append(Trend.UP)
        elif fast[i] < slow[i] and fast[i - 1] >= slow[i - 1]:
            result.append(Trend.DOWN)
        else:
            result.append(Trend.NONE)
    return result


def zero_cross_signals(values: Sequence[float]) -> list[Trend]:
    """UP where the series turns positive, DOWN where it turns negative."""
    return cross_signals(values, [0.0] * len(values))


def channel_signals(
    closes: Sequence[float], upper: Sequence[float], lower: Sequence[float]
) -> list[Trend]:
    """DOWN at or above the upper line, UP at or below the lower line."""
    _check_lengths(closes, upper, lower)
    result = []
    for close, up, down in zip(closes, upper, lower):
        if close >= up:
            result.append(Trend.DOWN)
        elif close <= down:
            result.append(Trend.UP)
        else:
            result.append(Trend.NONE)
    return result


def next_day_trends(closes: Sequence[float]) -> list[Trend]:
    """For each day but the last, whether the next close is at least as high."""
    return [
        Trend.UP if after >= before else Trend.DOWN
        for before, after in zip(closes, closes[1:])
    ]


def kdj_signals(k: Sequence[float], j: Sequence[float]) -> list[Trend]:
    """UP when K or J is overbought, DOWN when both are oversold."""
    _check_lengths(k, j)
    result = []
    for k_value, j_value in zip(k, j):
        if k_value > 80 or j_value > 100:
            result.append(Trend.UP)
        elif k_value < 20 and j_value < 0:
            result.append(Trend.DOWN)
        else:
            result.append(Trend.NONE)
    return result


def build_features(ma5, ma10, expma12, expma50, upper, lower, closes, k, j, macd_values) -> list[Features]:
    """Features of the last TRAIN_DAYS days.

    closes must hold one value past the last day, which gives that day's trend.
    """
    days = len(ma5)
    _check_lengths(ma5, ma10, expma12, expma50, upper, lower, k, j, macd_values)
    if days <= TRAIN_DAYS:
        raise ValueError(f"features need more than {TRAIN_DAYS} days of data, got {days}")
    if len(closes) < days + 1:
        raise ValueError("closes must hold one value past the last day")
    start = days - TRAIN_DAYS
    window = slice(start, days)
    columns = (
        cross_signals(ma5, ma10)[window],
        cross_signals(expma12, expma50)[window],
        channel_signals(closes[:days], upper, lower)[window],
        kdj_signals(k, j)[window],
        zero_cross_signals(macd_values)[window],
        next_day_trends(closes[: days + 1])[window],
    )
    return [Features(*row) for row in zip(*columns)]


def _sigmoid(x: float) -> float:
    if x < -700:
        return 0.0
    return 1.0 / (1.0 + math.exp(-x))


def predict(individual: Individual, feature: Features) -> float:
    """Probability of a rise from the weighted indicator signals."""
    score = sum(s * w for s, w in zip(feature.signals(), individual.weights))
    return _sigmoid(score)


def fitness(individual: Individual, features: Sequence[Features]) -> float:
    """Share of days whose next-day trend the individual predicts correctly."""
    if not features:
        raise ValueError("fitness needs at least one day of features")
    correct = sum(
        1
        for feature in features
        if (Trend.UP if predict(individual, feature) > 0.5 else Trend.DOWN) == feature.trend
    )
    return correct / len(features)


def initialize_population(rng=None) -> list[Individual]:
    """Random individuals with weights spread over [-2, 2]."""
    rng = _rng(rng)
    return [
        Individual(tuple(_symmetric(rng, WEIGHT_LIMIT) for _ in range(GENE_NUM)))
        for _ in range(MAX_POPULATION)
    ]


def roulette_selection(population: Sequence[Individual], rng=None) -> Individual:
    """Pick an individual with probability proportional to its fitness."""
    if not population:
        raise ValueError("cannot select from an empty population")
    rng = _rng(rng)
    total = sum(ind.fitness for ind in population)
    threshold = rng.random() * total
    running = 0.0
    for ind in population:
        running += ind.fitness
        if running >= threshold:
            return ind
    return population[-1]


def crossover(p1: Individual, p2: Individual, rng=None) -> Individual:
    """One-point crossover at the cross rate; otherwise a copy of the first parent."""
    rng = _rng(rng)
    if rng.random() < CROSS_RATE:
        point = rng.randrange(GENE_NUM)
        return Individual(p1.weights[:point] + p2.weights[point:])
    return p1


def mutate(individual: Individual, rng=None) -> Individual:
    """Nudge each weight at the mutation rate, keeping it within [-2, 2]."""
    rng = _rng(rng)
    weights = []
    for weight in individual.weights:
        if rng.random() < MUTATE_RATE:
            weight += _symmetric(rng, MUTATE_STEP)
            weight = min(max(weight, -WEIGHT_LIMIT), WEIGHT_LIMIT)
        weights.append(weight)
    return replace(individual, weights=tuple(weights))


def best_weights(features: Sequence[Features], rng=None) -> Individual:
    """Evolve a population and return the fittest individual seen."""
    rng = _rng(rng)
    population = initialize_population(rng)
    total_best = replace(population[0], fitness=-FLT_MAX)
    for _ in range(MAX_GENERATION):
        population = [replace(ind, fitness=fitness(ind, features)) for ind in population]
        current_best = population[0]
        for ind in population[1:]:
            if ind.fitness > current_best.fitness:
                current_best = ind
        children = [
            mutate(
                crossover(
                    roulette_selection(population, rng),
                    roulette_selection(population, rng),
                    rng,
                ),
                rng,
            )
            for _ in range(MAX_POPULATION)
        ]
        population = [current_best] + children[1:]
        if total_best.fitness < current_best.fitness:
            total_best = current_best
    return total_best