"""
Compute the full compass context for one input tick.

This is the single entry point the state/rendering layer calls. It runs the
components in dependency order and produces one immutable ChartOutput:

    solar time → calendar indices → plate → scores → settled plate
                                           → animation coefficients
                                           → personal overlay
               → facing score

Nothing is cached between calls; a new input recomputes everything.

Usage:
    from qimen.engine import compute_chart_context
    from qimen.models import ChartInput, Location
    output = compute_chart_context(ChartInput(time=now, location=Location(37.57, 126.98)))
"""

from dataclasses import dataclass
import logging

from qimen.animation import AnimationCoefficients, synthesize
from qimen.astro_calendar import (
    SolarTimeResult, calculate_solar_time, standard_utc_offset, uncorrected,
)
from qimen.chart import ChartPlate, generate_chart, settle_patterns
from qimen.facing import FacingResult, score_facing
from qimen.ganzhi import CalendarIndices, resolve_indices
from qimen.models import ChartInput, Settings
from qimen.personal import Subject, personal_scores, resolve_subject
from qimen.scoring import DirectionalScore, score_chart

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartOutput:
    solar: SolarTimeResult
    indices: CalendarIndices
    chart: ChartPlate
    scores: dict[str, DirectionalScore]
    animation: dict[str, AnimationCoefficients]
    facing: FacingResult
    subject: Subject
    personalization: dict[str, int]
    settings: Settings

    def to_dict(self):
        precision = self.settings.score_precision
        return {
            "solar_time": self.solar.to_dict(),
            "calendar": self.indices.to_dict(),
            "chart": self.chart.to_dict(),
            "scores": {name: s.to_dict(precision) for name, s in self.scores.items()},
            "animation": {name: a.to_dict() for name, a in self.animation.items()},
            "facing": self.facing.to_dict(),
            "subject": self.subject.to_dict(),
            "personalization": dict(self.personalization),
        }


def solar_time_for(inp: ChartInput) -> SolarTimeResult:
    settings = inp.settings
    if not settings.use_true_solar_time:
        return uncorrected(inp.time)

    offset = settings.timezone_offset
    if offset is None:
        offset = standard_utc_offset(inp.location.lat, inp.location.lng, inp.time)
        logger.debug("Resolved standard offset %+.1fh for (%s, %s)",
                     offset, inp.location.lat, inp.location.lng)
    return calculate_solar_time(inp.time, inp.location.lng, offset)


def compute_chart_context(inp: ChartInput) -> ChartOutput:
    """
    Derive the whole compass context for one input.

    Args:
        inp: time, location, optional user profile, settings and heading

    Returns:
        ChartOutput with plate, scores, animation coefficients, facing
        result and personal overlay

    Raises:
        ValueError: only when the timezone offset must be resolved from the
            location and no zone covers it
    """
    solar = solar_time_for(inp)
    moment = solar.true_solar_time

    indices = resolve_indices(moment)
    plate = generate_chart(indices, moment)
    scores = score_chart(plate, moment)
    plate = settle_patterns(plate, {name: s.value for name, s in scores.items()})
    animation = synthesize(plate, scores)

    subject = resolve_subject(inp.user, moment)
    personalization = personal_scores(subject.day_stem, plate.gates())

    facing = score_facing(inp.heading, indices.period, inp.settings.use_magnetic_north)

    logger.debug(
        "Chart at %s: day %d/%d, period %d, void %s, clash %d",
        moment.isoformat(), indices.day_stem, indices.day_branch,
        indices.period, indices.void_branches, indices.clash_branch,
    )

    return ChartOutput(
        solar=solar,
        indices=indices,
        chart=plate,
        scores=scores,
        animation=animation,
        facing=facing,
        subject=subject,
        personalization=personalization,
        settings=inp.settings,
    )
