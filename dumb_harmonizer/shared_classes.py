import typing as t
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto

import pandas as pd

from dumb_harmonizer.pitch_utils.chords import ResolvedChord
from dumb_harmonizer.pitch_utils.scale import Key
from dumb_harmonizer.pitch_utils.types import (
    TIME_TYPE,
    GenerationStyle,
    Pitch,
    RNToken,
    SettingsBase,
    Ticks,
)
from dumb_harmonizer.time import Meter, get_note_type, ticks_to_quarters


class DiagnosticKind(Enum):
    CHORD_UNRESOLVED = auto()
    RHYTHM_INCOMPLETE = auto()
    BASS_FALLBACK = auto()
    VOICING_INCOMPLETE = auto()
    VOICE_CROSSING = auto()
    SPACING = auto()
    PARALLEL_FIFTHS = auto()
    PARALLEL_OCTAVES = auto()


@dataclass(frozen=True)
class Location:
    """A measure and an event (rhythmic slot) within it, both 0-indexed.

    >>> str(Location(0, 2))
    'M1:B3'
    >>> str(Location(4))
    'M5'
    """

    measure: int
    event: int | None = None

    def __str__(self):
        if self.event is None:
            return f"M{self.measure + 1}"
        return f"M{self.measure + 1}:B{self.event + 1}"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    location: Location
    detail: str = ""
    voices: t.Tuple[str, ...] = ()

    def __str__(self):
        voices = f" ({', '.join(self.voices)})" if self.voices else ""
        return f"{self.location} {self.kind.name}{voices}: {self.detail}"


@dataclass(frozen=True)
class MusicalEvent:
    """A note or (if pitch is None) a rest.

    >>> event = MusicalEvent(duration=12, staff=1, voice=1, pitch=72)
    >>> event.note_type, event.dots
    ('quarter', 1)
    >>> event.is_rest
    False
    """

    duration: Ticks
    staff: int
    voice: int
    pitch: Pitch | None = None
    is_chord_continuation: bool = False
    note_type: str = field(init=False)
    dots: int = field(init=False)

    def __post_init__(self):
        note_type, dots = get_note_type(self.duration)
        object.__setattr__(self, "note_type", note_type)
        object.__setattr__(self, "dots", dots)

    @property
    def is_rest(self) -> bool:
        return self.pitch is None


@dataclass(frozen=True)
class Measure:
    number: int
    roman_numeral: RNToken
    events: t.Tuple[MusicalEvent, ...]
    chord: ResolvedChord | None = None
    beat_factors: t.Tuple[TIME_TYPE, ...] = ()

    @property
    def is_rest(self) -> bool:
        return all(e.is_rest for e in self.events)

    def durations_by_line(self) -> t.Dict[t.Tuple[int, int], Ticks]:
        """Total duration of each (staff, voice) line, not counting the
        extra notes of chords.

        >>> measure = Measure(
        ...     1,
        ...     "I",
        ...     (
        ...         MusicalEvent(8, 1, 1, 72),
        ...         MusicalEvent(8, 1, 1, 67, is_chord_continuation=True),
        ...         MusicalEvent(24, 1, 1, None),
        ...         MusicalEvent(32, 2, 2, None),
        ...     ),
        ... )
        >>> measure.durations_by_line()
        {(1, 1): 32, (2, 2): 32}
        """
        out = defaultdict(int)
        for event in self.events:
            if not event.is_chord_continuation:
                out[(event.staff, event.voice)] += event.duration
        return dict(out)


@dataclass
class HarmonizedPiece:
    key: Key
    meter: Meter
    style: GenerationStyle
    measures: t.List[Measure] = field(default_factory=list)
    diagnostics: t.List[Diagnostic] = field(default_factory=list)
    settings: SettingsBase | None = None

    @property
    def progression(self) -> t.List[RNToken]:
        return [m.roman_numeral for m in self.measures]

    def diagnostics_of_kind(self, *kinds: DiagnosticKind) -> t.List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind in kinds]

    def to_df(self) -> pd.DataFrame:
        """One row per sounding note, with onsets and releases in quarter
        notes from the start of the piece.
        """
        rows = []
        bar_ticks = self.meter.bar_ticks
        for measure_i, measure in enumerate(self.measures):
            # each (staff, voice) line keeps its own running onset
            line_onsets = defaultdict(int)
            last_onset = {}
            for event in measure.events:
                line = (event.staff, event.voice)
                if event.is_chord_continuation:
                    onset = last_onset[line]
                else:
                    onset = line_onsets[line]
                    last_onset[line] = onset
                    line_onsets[line] += event.duration
                if event.is_rest:
                    continue
                absolute_onset = measure_i * bar_ticks + onset
                rows.append(
                    {
                        "onset": ticks_to_quarters(absolute_onset),
                        "release": ticks_to_quarters(absolute_onset + event.duration),
                        "pitch": event.pitch,
                        "staff": event.staff,
                        "voice": event.voice,
                        "measure": measure.number,
                    }
                )
        return pd.DataFrame(
            rows, columns=["onset", "release", "pitch", "staff", "voice", "measure"]
        )


def print_diagnostics(piece: HarmonizedPiece, file=None):
    for diagnostic in piece.diagnostics:
        print(diagnostic, file=file)
