"""Turns a roman-numeral progression into a `HarmonizedPiece`.

Each measure gets one chord. The chord is resolved, a rhythm is chosen for
the measure, and the chord is voiced once per rhythmic slot, with each
voicing led from the one before.
"""
import logging
import random
import textwrap
import typing as t
from dataclasses import dataclass
from enum import Enum

from dumb_harmonizer.errors import InvalidInputError, MusicTheoryError
from dumb_harmonizer.melody_accompanist import (
    MelodyAccompanist,
    MelodyAccompanistSettings,
)
from dumb_harmonizer.pitch_utils.chords import ChordResolver
from dumb_harmonizer.pitch_utils.music21_handler import Music21Backend, TheoryBackend
from dumb_harmonizer.pitch_utils.put_in_range import build_pitch_pool
from dumb_harmonizer.pitch_utils.scale import Key
from dumb_harmonizer.pitch_utils.types import (
    AnyVoicing,
    GenerationStyle,
    MelodyAccompanimentVoicing,
    Pitch,
    RNToken,
    SATBVoicing,
    Ticks,
)
from dumb_harmonizer.rhythmist import RhythmStrategy, get_rhythmist, validate_complexity
from dumb_harmonizer.rules import check_voice_leading
from dumb_harmonizer.satb_voicer import SATBVoicer
from dumb_harmonizer.shared_classes import (
    Diagnostic,
    DiagnosticKind,
    HarmonizedPiece,
    Location,
    Measure,
    MusicalEvent,
)
from dumb_harmonizer.time import Meter, whole_notes_to_ticks

LOGGER = logging.getLogger(__name__)

# Used for measures beyond the end of the progression
DEFAULT_TOKEN = "I"

# (staff, voice)
UPPER_LINE = (1, 1)
LOWER_LINE = (2, 2)

E = t.TypeVar("E", bound=Enum)


def enum_from_string(enum_cls: t.Type[E], value: E | str) -> E:
    """Accepts an enum member, or the name or value of one.

    >>> enum_from_string(GenerationStyle, "MelodyAccompaniment")
    <GenerationStyle.MELODY_ACCOMPANIMENT: 'MelodyAccompaniment'>
    >>> enum_from_string(GenerationStyle, "satb")
    <GenerationStyle.SATB: 'SATB'>
    >>> enum_from_string(RhythmStrategy, "beat_subdivision")
    <RhythmStrategy.BEAT_SUBDIVISION: 'beat_subdivision'>
    >>> enum_from_string(GenerationStyle, "fugue")
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: 'fugue' is not a valid GenerationStyle
    """
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value in (member.value, member.name) or (
            isinstance(value, str) and value.upper() == member.name
        ):
            return member
    raise InvalidInputError(f"{value!r} is not a valid {enum_cls.__name__}")


def _validate_0_to_10(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, not {value!r}")
    if not 0 <= value <= 10:
        raise InvalidInputError(f"{name} must be between 0 and 10, not {value}")


@dataclass
class HarmonizerSettings(MelodyAccompanistSettings):
    """
    Args:
        dissonance_strictness: 0-10. Controls which voice-leading checks are
            run (see `rules.check_voice_leading`).
        rhythmic_complexity: integer 0-10.
        harmonic_complexity: 0-10. Only used when a progression is drafted.

    Enums can be given by name or value, as when read from yaml:
    >>> settings = HarmonizerSettings(generation_style="MELODY_ACCOMPANIMENT")
    >>> settings.generation_style
    <GenerationStyle.MELODY_ACCOMPANIMENT: 'MelodyAccompaniment'>
    >>> HarmonizerSettings(rhythmic_complexity=2.5)
    Traceback (most recent call last):
    dumb_harmonizer.errors.InvalidInputError: Rhythmic complexity must be an integer from 0 to 10, not 2.5
    """

    generation_style: GenerationStyle = GenerationStyle.SATB
    dissonance_strictness: float = 5.0
    rhythmic_complexity: int = 3
    rhythm_strategy: RhythmStrategy = RhythmStrategy.NOTE_VALUES
    harmonic_complexity: int = 5

    def __post_init__(self):
        super().__post_init__()
        self.generation_style = enum_from_string(
            GenerationStyle, self.generation_style
        )
        self.rhythm_strategy = enum_from_string(RhythmStrategy, self.rhythm_strategy)
        validate_complexity(self.rhythmic_complexity)
        _validate_0_to_10("melodic_smoothness", self.melodic_smoothness)
        _validate_0_to_10("dissonance_strictness", self.dissonance_strictness)
        _validate_0_to_10("harmonic_complexity", self.harmonic_complexity)


def chord_events(
    pitches: t.Sequence[Pitch | None], duration: Ticks, staff: int, voice: int
) -> t.List[MusicalEvent]:
    """Sounding pitches as a chord (all but the first are continuations), or a
    rest if none are sounding.

    >>> [(e.pitch, e.is_chord_continuation) for e in chord_events((72, 64), 8, 1, 1)]
    [(72, False), (64, True)]
    >>> [e.is_rest for e in chord_events((None, None), 8, 1, 1)]
    [True]
    """
    sounding = [p for p in pitches if p is not None]
    if not sounding:
        return [MusicalEvent(duration, staff, voice)]
    return [
        MusicalEvent(duration, staff, voice, p, is_chord_continuation=i > 0)
        for i, p in enumerate(sounding)
    ]


def arpeggio_events(
    pitches: t.Sequence[Pitch], duration: Ticks, staff: int, voice: int
) -> t.List[MusicalEvent]:
    """Spreads pitches over `duration`. The last note takes any remainder.

    >>> [(e.pitch, e.duration) for e in arpeggio_events((48, 55, 64), 8, 2, 2)]
    [(48, 2), (55, 2), (64, 4)]

    There are never more notes than ticks:
    >>> [(e.pitch, e.duration) for e in arpeggio_events((48, 55, 64), 2, 2, 2)]
    [(48, 1), (55, 1)]
    """
    n = min(len(pitches), duration)
    base = duration // n
    durations = [base] * (n - 1) + [duration - base * (n - 1)]
    return [
        MusicalEvent(dur, staff, voice, pitch)
        for pitch, dur in zip(pitches[:n], durations)
    ]


def rest_events(duration: Ticks) -> t.List[MusicalEvent]:
    return [MusicalEvent(duration, *UPPER_LINE), MusicalEvent(duration, *LOWER_LINE)]


class Harmonizer:
    """
    >>> harmonizer = Harmonizer(rng=random.Random(42))
    >>> piece = harmonizer(["I", "IV", "V7", "I"], "C", "4/4")
    >>> piece.progression
    ['I', 'IV', 'V7', 'I']
    >>> all(
    ...     durations == {(1, 1): 32, (2, 2): 32}
    ...     for durations in (m.durations_by_line() for m in piece.measures)
    ... )
    True

    Measures past the end of the progression are filled with "I":
    >>> harmonizer(["V"], "G", "3/4", n_measures=2).progression
    ['V', 'I']
    """

    def __init__(
        self,
        settings: HarmonizerSettings | None = None,
        backend: TheoryBackend | None = None,
        rng: random.Random | None = None,
    ):
        if settings is None:
            settings = HarmonizerSettings()
        self.settings = settings
        self._backend = Music21Backend() if backend is None else backend
        self._rng = random.Random() if rng is None else rng
        self._resolver = ChordResolver(self._backend)
        self._rhythmist = get_rhythmist(settings.rhythm_strategy, self._rng)
        self._voicer: SATBVoicer | MelodyAccompanist
        if settings.generation_style is GenerationStyle.SATB:
            self._voicer = SATBVoicer(settings)
        else:
            self._voicer = MelodyAccompanist(settings)
        LOGGER.debug(
            textwrap.fill(f"settings: {self.settings}", subsequent_indent=" " * 4)
        )

    @property
    def style(self) -> GenerationStyle:
        return self.settings.generation_style

    def _slot_events(
        self, voicing: AnyVoicing, duration: Ticks, meter: Meter
    ) -> t.List[MusicalEvent]:
        if isinstance(voicing, SATBVoicing):
            return chord_events(
                (voicing.soprano, voicing.alto), duration, *UPPER_LINE
            ) + chord_events((voicing.tenor, voicing.bass), duration, *LOWER_LINE)
        assert isinstance(voicing, MelodyAccompanimentVoicing)
        out = [MusicalEvent(duration, *UPPER_LINE, voicing.melody)]
        accompaniment = voicing.sounding_accompaniment
        if duration < meter.beat_ticks and len(accompaniment) > 1:
            out.extend(arpeggio_events(accompaniment, duration, *LOWER_LINE))
        else:
            out.extend(chord_events(accompaniment, duration, *LOWER_LINE))
        return out

    def _measure(
        self,
        measure_i: int,
        token: RNToken,
        key: Key,
        meter: Meter,
        previous: AnyVoicing | None,
        diagnostics: t.List[Diagnostic],
    ) -> t.Tuple[Measure, AnyVoicing | None]:
        location = Location(measure_i)
        try:
            chord = self._resolver.resolve(token, key)
        except (InvalidInputError, MusicTheoryError) as exc:
            LOGGER.warning(f"{location}: writing rests, can't resolve {token!r}: {exc}")
            diagnostics.append(
                Diagnostic(DiagnosticKind.CHORD_UNRESOLVED, location, str(exc))
            )
            rests = tuple(rest_events(meter.bar_ticks))
            return Measure(measure_i + 1, token, rests), None

        pool = build_pitch_pool(chord.pitches)
        pattern = self._rhythmist(meter, self.settings.rhythmic_complexity)
        if not pattern.complete:
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.RHYTHM_INCOMPLETE,
                    location,
                    f"rhythm fills {pattern.total_dur} of {meter.bar_dur}",
                )
            )

        events = []
        elapsed = 0
        for event_i, value in enumerate(pattern.note_values):
            remaining = meter.bar_ticks - elapsed
            if remaining <= 0:
                break
            duration = min(whole_notes_to_ticks(value), remaining)
            slot = Location(measure_i, event_i)
            voicing, voicing_diagnostics = self._voicer(
                chord, pool, previous, slot  # type:ignore
            )
            diagnostics.extend(voicing_diagnostics)
            diagnostics.extend(
                check_voice_leading(
                    voicing,
                    previous,
                    self.settings.dissonance_strictness,
                    slot,
                    self.settings.spacing,
                )
            )
            LOGGER.debug(f"{slot} {token}: {voicing}")
            events.extend(self._slot_events(voicing, duration, meter))
            previous = voicing
            elapsed += duration

        if elapsed < meter.bar_ticks:
            events.extend(rest_events(meter.bar_ticks - elapsed))

        measure = Measure(
            measure_i + 1, token, tuple(events), chord, pattern.beat_factors
        )
        return measure, previous

    def __call__(
        self,
        progression: t.Sequence[RNToken],
        key: Key | str,
        meter: Meter | str,
        n_measures: int | None = None,
    ) -> HarmonizedPiece:
        """
        Raises InvalidInputError if the key or meter can't be parsed. Chords
        that can't be resolved don't raise; their measures are rests and a
        CHORD_UNRESOLVED diagnostic is recorded.
        """
        if not isinstance(key, Key):
            key = self._backend.parse_key(key)
        if not isinstance(meter, Meter):
            meter = Meter(meter)
        progression = list(progression)
        if n_measures is None:
            n_measures = len(progression)
        elif n_measures < 0:
            raise InvalidInputError(
                f"Number of measures can't be negative, not {n_measures}"
            )

        piece = HarmonizedPiece(key, meter, self.style, settings=self.settings)
        previous = None
        for measure_i in range(n_measures):
            if measure_i < len(progression):
                token = progression[measure_i]
            else:
                token = DEFAULT_TOKEN
            measure, previous = self._measure(
                measure_i, token, key, meter, previous, piece.diagnostics
            )
            piece.measures.append(measure)
        LOGGER.info(
            f"Harmonized {n_measures} measures in {key}, {meter}, with "
            f"{len(piece.diagnostics)} diagnostics"
        )
        return piece


def harmonize(
    progression: t.Sequence[RNToken],
    key: Key | str,
    meter: Meter | str,
    settings: HarmonizerSettings | None = None,
    rng: random.Random | None = None,
    n_measures: int | None = None,
) -> HarmonizedPiece:
    return Harmonizer(settings, rng=rng)(progression, key, meter, n_measures)
