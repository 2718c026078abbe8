import pytest

from dumb_harmonizer.pitch_utils.types import MelodyAccompanimentVoicing, SATBVoicing
from dumb_harmonizer.rules import check_voice_leading, parallel_perfect_kind
from dumb_harmonizer.shared_classes import DiagnosticKind, Location

PREVIOUS = SATBVoicing(72, 67, 64, 48)
LOC = Location(1, 0)


def kinds_and_voices(diagnostics):
    return [(d.kind, d.voices) for d in diagnostics]


@pytest.mark.parametrize(
    "prev_upper,prev_lower,upper,lower,expected",
    [
        (67, 60, 69, 62, DiagnosticKind.PARALLEL_FIFTHS),
        (79, 60, 81, 62, DiagnosticKind.PARALLEL_FIFTHS),
        (72, 60, 71, 59, DiagnosticKind.PARALLEL_OCTAVES),
        (60, 60, 62, 62, DiagnosticKind.PARALLEL_OCTAVES),
        # contrary motion into a fifth of a different size
        (67, 60, 74, 55, None),
        # one voice holds
        (72, 60, 72, 65, None),
        # thirds
        (64, 60, 65, 62, None),
    ],
)
def test_parallel_perfect_kind(prev_upper, prev_lower, upper, lower, expected):
    assert parallel_perfect_kind(prev_upper, prev_lower, upper, lower) is expected


@pytest.mark.parametrize("strictness", [0, 1])
def test_low_strictness_checks_nothing(strictness):
    crossed = SATBVoicing(60, 67, 64, 48)
    assert check_voice_leading(crossed, PREVIOUS, strictness, LOC) == []


def test_voice_crossing():
    crossed = SATBVoicing(67, 72, 64, 48)
    diagnostics = check_voice_leading(crossed, PREVIOUS, 2, LOC)
    assert kinds_and_voices(diagnostics) == [
        (DiagnosticKind.VOICE_CROSSING, ("soprano", "alto"))
    ]
    assert diagnostics[0].location == LOC


def test_spacing_depends_on_strictness():
    wide = SATBVoicing(84, 67, 64, 40)
    assert check_voice_leading(wide, PREVIOUS, 3, LOC) == []
    assert kinds_and_voices(check_voice_leading(wide, PREVIOUS, 4, LOC)) == [
        (DiagnosticKind.SPACING, ("soprano", "alto"))
    ]
    assert kinds_and_voices(check_voice_leading(wide, PREVIOUS, 6, LOC)) == [
        (DiagnosticKind.SPACING, ("tenor", "bass")),
        (DiagnosticKind.SPACING, ("soprano", "alto")),
    ]


def test_parallels_depend_on_strictness():
    current = SATBVoicing(74, 69, 65, 50)
    assert check_voice_leading(current, PREVIOUS, 6, LOC) == []
    assert kinds_and_voices(check_voice_leading(current, PREVIOUS, 7, LOC)) == [
        (DiagnosticKind.PARALLEL_OCTAVES, ("soprano", "bass")),
        (DiagnosticKind.PARALLEL_FIFTHS, ("alto", "bass")),
    ]


def test_incomplete_voicings_are_checked_where_possible():
    current = SATBVoicing(74, None, 65, 50)
    diagnostics = check_voice_leading(current, PREVIOUS, 10, LOC)
    assert kinds_and_voices(diagnostics) == [
        (DiagnosticKind.PARALLEL_OCTAVES, ("soprano", "bass"))
    ]


def test_no_previous_voicing():
    assert check_voice_leading(PREVIOUS, SATBVoicing.empty(), 10, LOC) == []


def test_melody_accompaniment_crossing():
    previous = MelodyAccompanimentVoicing(67, (48, 55, 64))
    current = MelodyAccompanimentVoicing(60, (48, 55, 64))
    diagnostics = check_voice_leading(current, previous, 2, LOC)
    assert kinds_and_voices(diagnostics) == [
        (DiagnosticKind.VOICE_CROSSING, ("melody", "accompaniment"))
    ]


def test_melody_accompaniment_spacing():
    previous = MelodyAccompanimentVoicing(72, (48, 52, 55))
    current = MelodyAccompanimentVoicing(84, (41, 45, 53))
    assert check_voice_leading(current, previous, 4, LOC) == []
    assert kinds_and_voices(check_voice_leading(current, previous, 5, LOC)) == [
        (DiagnosticKind.SPACING, ("melody", "accompaniment"))
    ]


def test_melody_accompaniment_parallels():
    previous = MelodyAccompanimentVoicing(67, (48, 52, 55))
    current = MelodyAccompanimentVoicing(69, (50, 53, 57))
    assert check_voice_leading(current, previous, 7, LOC) == []
    assert kinds_and_voices(check_voice_leading(current, previous, 8, LOC)) == [
        (DiagnosticKind.PARALLEL_FIFTHS, ("melody", "accompaniment"))
    ]
