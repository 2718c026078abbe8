"""Voice-leading checks between consecutive voicings.

The checks never alter the music; they only report what they find. Which
checks run depends on the strictness setting (0-10).
"""
import itertools as it
import logging
import typing as t

from dumb_harmonizer.pitch_utils.spacings import SpacingConstraints, spacing_violations
from dumb_harmonizer.pitch_utils.types import (
    AnyVoicing,
    MelodyAccompanimentVoicing,
    Pitch,
    SATBVoicing,
)
from dumb_harmonizer.shared_classes import Diagnostic, DiagnosticKind, Location

LOGGER = logging.getLogger(__name__)

SATB_VOICE_NAMES = ("soprano", "alto", "tenor", "bass")
# spacing_violations() indexes pitches from the bass up
SATB_VOICE_NAMES_FROM_BASS = tuple(reversed(SATB_VOICE_NAMES))

MAX_STRICTNESS_WITHOUT_CHECKS = 1
SATB_UPPER_SPACING_STRICTNESS = 4
SATB_TENOR_BASS_SPACING_STRICTNESS = 6
SATB_PARALLELS_STRICTNESS = 7
MA_SPACING_STRICTNESS = 5
MA_PARALLELS_STRICTNESS = 8


def parallel_perfect_kind(
    prev_upper: Pitch, prev_lower: Pitch, upper: Pitch, lower: Pitch
) -> DiagnosticKind | None:
    """
    >>> parallel_perfect_kind(67, 60, 69, 62).name
    'PARALLEL_FIFTHS'
    >>> parallel_perfect_kind(72, 60, 74, 62).name
    'PARALLEL_OCTAVES'

    Unisons count as octaves:
    >>> parallel_perfect_kind(60, 60, 62, 62).name
    'PARALLEL_OCTAVES'

    Both voices must move:
    >>> parallel_perfect_kind(67, 60, 67, 60) is None
    True
    >>> parallel_perfect_kind(64, 60, 65, 62) is None
    True
    """
    if upper == prev_upper or lower == prev_lower:
        return None
    interval = abs(upper - lower)
    if interval != abs(prev_upper - prev_lower):
        return None
    if interval % 12 == 0:
        return DiagnosticKind.PARALLEL_OCTAVES
    if interval % 12 == 7:
        return DiagnosticKind.PARALLEL_FIFTHS
    return None


def _check_satb(
    current: SATBVoicing,
    previous: SATBVoicing,
    strictness: float,
    location: Location,
    spacing: SpacingConstraints,
) -> t.List[Diagnostic]:
    out = []
    pitches = current.pitches
    for (upper_name, upper), (lower_name, lower) in zip(
        zip(SATB_VOICE_NAMES, pitches), zip(SATB_VOICE_NAMES[1:], pitches[1:])
    ):
        if upper is None or lower is None:
            continue
        if lower > upper:
            out.append(
                Diagnostic(
                    DiagnosticKind.VOICE_CROSSING,
                    location,
                    f"{lower_name} ({lower}) is above {upper_name} ({upper})",
                    (upper_name, lower_name),
                )
            )

    if strictness >= SATB_UPPER_SPACING_STRICTNESS:
        for lower_i, upper_i, interval, limit in spacing_violations(
            tuple(reversed(pitches)), spacing
        ):
            # the tenor-bass limit is only enforced at higher strictness
            if lower_i == 0 and strictness < SATB_TENOR_BASS_SPACING_STRICTNESS:
                continue
            upper_name = SATB_VOICE_NAMES_FROM_BASS[upper_i]
            lower_name = SATB_VOICE_NAMES_FROM_BASS[lower_i]
            out.append(
                Diagnostic(
                    DiagnosticKind.SPACING,
                    location,
                    f"{upper_name}-{lower_name} interval {interval} exceeds {limit}",
                    (upper_name, lower_name),
                )
            )

    if strictness >= SATB_PARALLELS_STRICTNESS:
        for i, j in it.combinations(range(4), 2):
            prev_upper, prev_lower = previous.pitches[i], previous.pitches[j]
            upper, lower = pitches[i], pitches[j]
            if None in (prev_upper, prev_lower, upper, lower):
                continue
            kind = parallel_perfect_kind(
                prev_upper, prev_lower, upper, lower  # type:ignore
            )
            if kind is not None:
                names = (SATB_VOICE_NAMES[i], SATB_VOICE_NAMES[j])
                out.append(
                    Diagnostic(
                        kind,
                        location,
                        f"{names[0]} {prev_upper}->{upper}, {names[1]} "
                        f"{prev_lower}->{lower}",
                        names,
                    )
                )
    return out


def _check_melody_accompaniment(
    current: MelodyAccompanimentVoicing,
    previous: MelodyAccompanimentVoicing,
    strictness: float,
    location: Location,
    spacing: SpacingConstraints,
) -> t.List[Diagnostic]:
    out = []
    melody = current.melody
    highest = current.highest_accompaniment
    if melody is None or highest is None:
        return out
    if highest >= melody:
        out.append(
            Diagnostic(
                DiagnosticKind.VOICE_CROSSING,
                location,
                f"accompaniment ({highest}) is not below melody ({melody})",
                ("melody", "accompaniment"),
            )
        )
    if (
        strictness >= MA_SPACING_STRICTNESS
        and melody - highest > spacing.melody_accompaniment
    ):
        out.append(
            Diagnostic(
                DiagnosticKind.SPACING,
                location,
                f"melody-accompaniment interval {melody - highest} exceeds "
                f"{spacing.melody_accompaniment}",
                ("melody", "accompaniment"),
            )
        )
    if strictness >= MA_PARALLELS_STRICTNESS:
        prev_melody = previous.melody
        prev_lowest = previous.lowest_accompaniment
        lowest = current.lowest_accompaniment
        if None not in (prev_melody, prev_lowest, lowest):
            kind = parallel_perfect_kind(
                prev_melody, prev_lowest, melody, lowest  # type:ignore
            )
            if kind is not None:
                out.append(
                    Diagnostic(
                        kind,
                        location,
                        f"melody {prev_melody}->{melody}, bass {prev_lowest}->{lowest}",
                        ("melody", "accompaniment"),
                    )
                )
    return out


def check_voice_leading(
    current: AnyVoicing,
    previous: AnyVoicing | None,
    strictness: float,
    location: Location,
    spacing: SpacingConstraints | None = None,
) -> t.List[Diagnostic]:
    """
    >>> diagnostics = check_voice_leading(
    ...     SATBVoicing(74, 69, 65, 50),
    ...     SATBVoicing(72, 67, 64, 48),
    ...     strictness=10,
    ...     location=Location(1, 0),
    ... )
    >>> [(d.kind.name, d.voices) for d in diagnostics]
    [('PARALLEL_OCTAVES', ('soprano', 'bass')), ('PARALLEL_FIFTHS', ('alto', 'bass'))]

    Nothing is checked at low strictness or without a previous voicing:
    >>> check_voice_leading(
    ...     SATBVoicing(60, 67, 59, 55), None, strictness=10, location=Location(0, 0)
    ... )
    []
    """
    if (
        strictness <= MAX_STRICTNESS_WITHOUT_CHECKS
        or previous is None
        or previous.is_empty
    ):
        return []
    if spacing is None:
        spacing = SpacingConstraints()
    if isinstance(current, SATBVoicing):
        assert isinstance(previous, SATBVoicing)
        out = _check_satb(current, previous, strictness, location, spacing)
    else:
        assert isinstance(previous, MelodyAccompanimentVoicing)
        out = _check_melody_accompaniment(
            current, previous, strictness, location, spacing
        )
    for diagnostic in out:
        LOGGER.debug(str(diagnostic))
    return out
