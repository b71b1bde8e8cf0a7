"""
Animation coefficients for the live compass display.

The renderer oscillates each direction's score around its computed value.
This module derives how fast (frequency) and how far (amplitude) each direction
moves, and defines the per-frame sampling formula. Scheduling the frames is the
renderer's job.
"""

from dataclasses import dataclass
from datetime import datetime
import math

from qimen.chart import DIRECTION_BY_NAME, ChartPlate
from qimen.scoring import (
    EXHAUSTION, OPPOSITE_RETURN, RETURN, STRONG_SEASON,
    SUPPRESSION, DirectionalScore,
)

BASE_FREQUENCY = 1.0
BASE_AMPLITUDE = 2.5
LOW_SCORE = 40


@dataclass(frozen=True)
class AnimationCoefficients:
    frequency: float  # renderer "jitter"
    amplitude: float  # renderer "power"

    def to_dict(self):
        return {"frequency": round(self.frequency, 4), "amplitude": round(self.amplitude, 4)}


def coefficients_for(is_clash: bool, favorable_gate: bool, punishment: bool,
                     score: DirectionalScore) -> AnimationCoefficients:
    frequency = BASE_FREQUENCY
    amplitude = BASE_AMPLITUDE

    if is_clash:
        frequency += 3.0
    if score.has(SUPPRESSION) or score.has(EXHAUSTION):
        frequency += 2.0
    if score.has(RETURN) or score.has(OPPOSITE_RETURN):
        frequency += 1.5
    if punishment:
        frequency += 2.5
    if favorable_gate:
        frequency -= 0.2
    if any(score.has(name) for name in STRONG_SEASON):
        amplitude += 1.5
        frequency -= 0.1
    if score.value < LOW_SCORE:
        amplitude -= 1.0

    return AnimationCoefficients(frequency=frequency, amplitude=amplitude)


def synthesize(plate: ChartPlate, scores: dict[str, DirectionalScore]) -> dict[str, AnimationCoefficients]:
    """Coefficients for every direction of a scored plate."""
    result = {}
    for palace in plate.palaces:
        pattern = palace.counted_pattern
        result[palace.direction.name] = coefficients_for(
            is_clash=palace.is_clash,
            favorable_gate=palace.gate.favorable,
            punishment=pattern is not None and pattern.kind == "punishment",
            score=scores[palace.direction.name],
        )
    return result


def phase(moment: datetime) -> float:
    """Position 0..1 within the current hour, second resolution."""
    return (moment.minute * 60 + moment.second) / 3600


def sample(base_score: float, coefficients: AnimationCoefficients,
           moment: datetime, seed: float) -> float:
    """
    Displayed score for one frame.

    perturbation = sin(phase · π · 8 · frequency + seed) · amplitude,
    result clamped to [0, 100]. `seed` is the direction index 0-7.
    """
    perturbation = math.sin(phase(moment) * math.pi * 8 * coefficients.frequency + seed) \
        * coefficients.amplitude
    return min(100.0, max(0.0, base_score + perturbation))


def sample_all(scores: dict[str, DirectionalScore],
               animation: dict[str, AnimationCoefficients],
               moment: datetime) -> dict[str, float]:
    """Displayed scores for every direction at `moment`."""
    return {
        name: sample(score.value, animation[name], moment, seed=DIRECTION_BY_NAME[name].index)
        for name, score in scores.items()
    }
