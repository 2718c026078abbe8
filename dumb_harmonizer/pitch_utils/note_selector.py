"""Chooses the next pitch of a voice from a pool of candidates.

The choice balances closeness to a target pitch against the size of the
melodic motion from the voice's previous pitch.
"""
import logging
import typing as t
from dataclasses import dataclass

from dumb_harmonizer.pitch_utils.types import ChromaticInterval, Pitch, SettingsBase

LOGGER = logging.getLogger(__name__)

DEFAULT_LEAP_THRESHOLD = 7
STEP = 2


@dataclass
class NoteSelectorSettings(SettingsBase):
    """
    The motion factors multiply the distance between a candidate and the
    target. `sw` below is smoothness / 10.

    Args:
        unison_factor: factor for repeated notes is `unison_factor * (1 - 0.4 * sw)`.
        step_factor: factor for steps is `step_factor * (1 - 0.4 * sw)`.
        leap_base: factor for leaps up to the threshold is
            `leap_base + (interval / threshold) * leap_slope * (0.5 + sw)`.
        large_leap_base: factor for larger leaps is
            `large_leap_base + (interval / 12) * large_leap_slope * (0.5 + sw)`.
        no_previous_slope: when there is no previous pitch, the factor is
            `1 + |candidate - target| / 24 * no_previous_slope`.
        step_override_scale, step_override_slack: after scoring, a leap beyond
            the threshold is replaced by the best step if the step's distance
            to the target is no more than
            `leap_distance * (1 + step_override_scale * sw) + step_override_slack * sw`.

    >>> settings = NoteSelectorSettings()
    >>> settings.motion_factor(0, 7, 5) < settings.motion_factor(2, 7, 5)
    True
    >>> settings.motion_factor(2, 7, 5) < settings.motion_factor(5, 7, 5)
    True
    >>> settings.motion_factor(5, 7, 5) < settings.motion_factor(9, 7, 5)
    True

    Smoother settings make leaps more costly:
    >>> settings.motion_factor(5, 7, 0) < settings.motion_factor(5, 7, 10)
    True
    """

    unison_factor: float = 0.25
    step_factor: float = 0.5
    leap_base: float = 1.0
    leap_slope: float = 1.0
    large_leap_base: float = 2.0
    large_leap_slope: float = 2.0
    no_previous_slope: float = 0.2
    step_override_scale: float = 1.0
    step_override_slack: float = 2.0

    def motion_factor(
        self,
        interval: ChromaticInterval,
        leap_threshold: ChromaticInterval,
        smoothness: float,
    ) -> float:
        sw = smoothness / 10
        interval = abs(interval)
        if interval == 0:
            return self.unison_factor * (1 - 0.4 * sw)
        if interval <= STEP:
            return self.step_factor * (1 - 0.4 * sw)
        if interval <= leap_threshold:
            return self.leap_base + (interval / leap_threshold) * self.leap_slope * (
                0.5 + sw
            )
        return self.large_leap_base + (interval / 12) * self.large_leap_slope * (
            0.5 + sw
        )


DEFAULT_SETTINGS = NoteSelectorSettings()


def score_candidate(
    candidate: Pitch,
    target: float,
    previous: Pitch | None,
    smoothness: float,
    leap_threshold: ChromaticInterval = DEFAULT_LEAP_THRESHOLD,
    settings: NoteSelectorSettings = DEFAULT_SETTINGS,
) -> float:
    distance = abs(candidate - target)
    if previous is None:
        return distance * (1 + distance / 24 * settings.no_previous_slope)
    return distance * settings.motion_factor(
        candidate - previous, leap_threshold, smoothness
    )


def find_closest_note(
    target: float,
    candidates: t.Sequence[Pitch],
    previous: Pitch | None = None,
    smoothness: float = 5,
    leap_threshold: ChromaticInterval = DEFAULT_LEAP_THRESHOLD,
    settings: NoteSelectorSettings = DEFAULT_SETTINGS,
) -> Pitch | None:
    """
    >>> find_closest_note(60, []) is None
    True
    >>> find_closest_note(60, [79])
    79

    Without a previous pitch, the candidate nearest the target wins:
    >>> find_closest_note(62, [55, 60, 64, 67])
    60

    A previous pitch that can be held is preferred over moving toward the
    target:
    >>> find_closest_note(69, [60, 64, 67, 72], previous=67)
    67

    A leap that lands exactly on the target is kept:
    >>> find_closest_note(72, [60, 64, 72], previous=60)
    72

    When smoothness is high, a step is preferred over a leap that lands
    nearer the target:
    >>> find_closest_note(71, [59, 62, 67, 72], previous=60, smoothness=10)
    62
    >>> find_closest_note(71, [59, 62, 67, 72], previous=60, smoothness=0)
    72
    """
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    best = None
    best_score = float("inf")
    for candidate in candidates:
        score = score_candidate(
            candidate, target, previous, smoothness, leap_threshold, settings
        )
        if score < best_score:
            best, best_score = candidate, score
    assert best is not None

    if previous is None or abs(best - previous) <= leap_threshold:
        return best

    steps = [c for c in candidates if abs(c - previous) <= STEP]
    if not steps:
        return best
    closest_step = min(steps, key=lambda c: abs(c - target))
    sw = smoothness / 10
    tolerance = (
        abs(best - target) * (1 + settings.step_override_scale * sw)
        + settings.step_override_slack * sw
    )
    if abs(closest_step - target) <= tolerance:
        LOGGER.debug(
            f"Replacing leap {previous}->{best} with step {previous}->{closest_step}"
        )
        return closest_step
    return best
