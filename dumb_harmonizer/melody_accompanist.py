import logging
import typing as t
from dataclasses import dataclass

from dumb_harmonizer.errors import InvalidInputError
from dumb_harmonizer.pitch_utils.chords import ResolvedChord
from dumb_harmonizer.pitch_utils.pcs import pitch_class_among_pitches, pitches_with_pcs
from dumb_harmonizer.pitch_utils.put_in_range import filter_in_range
from dumb_harmonizer.pitch_utils.types import (
    ChromaticInterval,
    MelodyAccompanimentVoicing,
    Pitch,
)
from dumb_harmonizer.satb_voicer import VoicerBase, VoicerSettings
from dumb_harmonizer.shared_classes import Diagnostic, DiagnosticKind, Location

LOGGER = logging.getLogger(__name__)


@dataclass
class MelodyAccompanistSettings(VoicerSettings):
    """
    Args:
        num_accompaniment_voices: number of pitches in each accompaniment chord.
        accompaniment_max_span: the upper accompaniment voices lie within this
            interval above the lowest accompaniment voice.
    """

    num_accompaniment_voices: int = 3
    accompaniment_max_span: ChromaticInterval = 12
    accompaniment_leap_threshold: ChromaticInterval = 6
    lowest_accompaniment_leap_threshold: ChromaticInterval = 9

    def __post_init__(self):
        super().__post_init__()
        n = self.num_accompaniment_voices
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise InvalidInputError(
                f"num_accompaniment_voices must be an integer of at least 1, not {n!r}"
            )


class MelodyAccompanist(VoicerBase):
    """Voices one chord as a melody note over an accompaniment chord.

    >>> from dumb_harmonizer.pitch_utils.chords import ChordResolver
    >>> from dumb_harmonizer.pitch_utils.put_in_range import build_pitch_pool
    >>> chord = ChordResolver().resolve("IV", "C")
    >>> accompanist = MelodyAccompanist()
    >>> voicing, _ = accompanist(chord, build_pitch_pool(chord.pitches))
    >>> len(voicing.accompaniment)
    3
    >>> voicing.lowest_accompaniment % 12
    5
    >>> voicing.highest_accompaniment < voicing.melody
    True
    """

    settings: MelodyAccompanistSettings

    def __init__(self, settings: MelodyAccompanistSettings | None = None):
        if settings is None:
            settings = MelodyAccompanistSettings()
        super().__init__(settings)

    def _available(
        self, pool: t.Sequence[Pitch], melody: Pitch | None
    ) -> t.List[Pitch]:
        candidates = filter_in_range(pool, self.settings.ranges.accompaniment)
        if melody is not None:
            ceiling = self.settings.spacing.melody_accompaniment
            candidates = [p for p in candidates if p < melody and melody - p <= ceiling]
        return candidates

    def _lowest(
        self,
        chord: ResolvedChord,
        available: t.Sequence[Pitch],
        previous: Pitch | None,
    ) -> Pitch | None:
        if not available:
            return None
        roots = pitches_with_pcs(available, {chord.root_pc})
        low_roots = [p for p in roots if p < min(available) + 12]
        candidates = low_roots or roots or list(available)
        target = chord.root - 12 if previous is None else previous
        return self._select(
            target,
            candidates,
            previous,
            self.settings.lowest_accompaniment_leap_threshold,
        )

    def _upper(
        self,
        chord: ResolvedChord,
        available: t.Sequence[Pitch],
        lowest: Pitch,
        previous: MelodyAccompanimentVoicing,
    ) -> t.List[Pitch | None]:
        k = self.settings.num_accompaniment_voices
        step = self.settings.accompaniment_max_span // max(k - 1, 1)
        chosen = [lowest]
        for i in range(1, k):
            below = chosen[-1]
            candidates = [
                p
                for p in available
                if below < p <= lowest + self.settings.accompaniment_max_span
            ]
            if not candidates:
                break
            uncovered = [
                pc for pc in chord.pcs if not pitch_class_among_pitches(pc, chosen)
            ]
            preferred = pitches_with_pcs(candidates, set(uncovered)) or candidates
            prev_pitch = previous.previous_accompaniment(i)
            target = below + step if prev_pitch is None else prev_pitch
            pitch = self._select(
                target,
                preferred,
                prev_pitch,
                self.settings.accompaniment_leap_threshold,
            )
            if pitch is None:
                break
            chosen.append(pitch)
        return chosen + [None] * (k - len(chosen))

    def __call__(
        self,
        chord: ResolvedChord,
        pool: t.Sequence[Pitch],
        previous: MelodyAccompanimentVoicing | None = None,
        location: Location = Location(0, 0),
    ) -> t.Tuple[MelodyAccompanimentVoicing, t.List[Diagnostic]]:
        if previous is None:
            previous = MelodyAccompanimentVoicing.empty()
        diagnostics = []
        melody = self._top_voice(pool, self.settings.ranges.melody, previous.melody)
        if melody is None:
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.VOICING_INCOMPLETE,
                    location,
                    f"no melody pitch for {chord.token}",
                    ("melody",),
                )
            )
        available = self._available(pool, melody)
        lowest = self._lowest(chord, available, previous.previous_accompaniment(0))
        if lowest is None:
            accompaniment = [None] * self.settings.num_accompaniment_voices
        else:
            accompaniment = self._upper(chord, available, lowest, previous)
        n_missing = accompaniment.count(None)
        if n_missing:
            LOGGER.debug(
                f"{location}: only {len(accompaniment) - n_missing} accompaniment "
                f"pitches available for {chord.token}"
            )
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.VOICING_INCOMPLETE,
                    location,
                    f"{n_missing} accompaniment voice(s) unfilled for {chord.token}",
                    ("accompaniment",),
                )
            )
        return MelodyAccompanimentVoicing(melody, tuple(accompaniment)), diagnostics
