import logging
import typing as t
from dataclasses import dataclass, field

from dumb_harmonizer.pitch_utils.aliases import Fifth, Root, Seventh, Third
from dumb_harmonizer.pitch_utils.chords import ResolvedChord
from dumb_harmonizer.pitch_utils.note_selector import (
    NoteSelectorSettings,
    find_closest_note,
)
from dumb_harmonizer.pitch_utils.pcs import (
    get_pc_complement,
    pitch_class_among_pitches,
    pitches_with_pcs,
)
from dumb_harmonizer.pitch_utils.put_in_range import filter_in_range
from dumb_harmonizer.pitch_utils.spacings import (
    PitchRange,
    SpacingConstraints,
    VoiceRanges,
)
from dumb_harmonizer.pitch_utils.types import (
    ChromaticInterval,
    Pitch,
    PitchClass,
    SATBVoicing,
    SettingsBase,
)
from dumb_harmonizer.shared_classes import Diagnostic, DiagnosticKind, Location

LOGGER = logging.getLogger(__name__)

# When both inner voices can't get a distinct missing chord tone, we prefer to
#   leave out the fifth
NEEDED_FACTOR_ORDER = (Third, Seventh, Root, Fifth)
DOUBLING_ORDER = (Root, Fifth, Third)


@dataclass
class VoicerSettings(SettingsBase):
    """
    Args:
        melodic_smoothness: 0-10. Higher values make leaps more costly.
        soprano_upward_bias: added to the previous soprano (or melody) pitch to
            get the target for the next one.

    Ranges and spacing can be given as mappings (e.g., when read from yaml):
    >>> settings = VoicerSettings(ranges={"bass": [36, 60]})
    >>> settings.ranges.bass, settings.ranges.tenor
    ((36, 60), (48, 69))
    """

    melodic_smoothness: float = 5.0
    ranges: VoiceRanges = field(default_factory=VoiceRanges)
    spacing: SpacingConstraints = field(default_factory=SpacingConstraints)
    note_selector: NoteSelectorSettings = field(default_factory=NoteSelectorSettings)
    soprano_upward_bias: ChromaticInterval = 2
    soprano_leap_threshold: ChromaticInterval = 7
    inner_leap_threshold: ChromaticInterval = 7
    bass_leap_threshold: ChromaticInterval = 9

    def __post_init__(self):
        if isinstance(self.ranges, t.Mapping):
            self.ranges = VoiceRanges(**self.ranges)
        if isinstance(self.spacing, t.Mapping):
            self.spacing = SpacingConstraints(**self.spacing)
        if isinstance(self.note_selector, t.Mapping):
            self.note_selector = NoteSelectorSettings(**self.note_selector)


def range_center(range_: PitchRange) -> float:
    return (range_[0] + range_[1]) / 2


class VoicerBase:
    def __init__(self, settings: VoicerSettings | None = None):
        if settings is None:
            settings = VoicerSettings()
        self.settings = settings

    def _select(
        self,
        target: float,
        candidates: t.Sequence[Pitch],
        previous: Pitch | None,
        leap_threshold: ChromaticInterval,
    ) -> Pitch | None:
        return find_closest_note(
            target,
            candidates,
            previous,
            smoothness=self.settings.melodic_smoothness,
            leap_threshold=leap_threshold,
            settings=self.settings.note_selector,
        )

    def _top_voice(
        self,
        pool: t.Sequence[Pitch],
        range_: PitchRange,
        previous: Pitch | None,
        above: Pitch | None = None,
    ) -> Pitch | None:
        """Chooses the soprano (or melody) pitch."""
        candidates = filter_in_range(pool, range_)
        if above is not None:
            candidates = [p for p in candidates if p > above]
        if previous is None:
            target = range_center(range_)
        else:
            target = previous + self.settings.soprano_upward_bias
        return self._select(
            target, candidates, previous, self.settings.soprano_leap_threshold
        )


class SATBVoicer(VoicerBase):
    """Voices one chord in four parts, given the previous four-part voicing.

    >>> from dumb_harmonizer.pitch_utils.chords import ChordResolver
    >>> from dumb_harmonizer.pitch_utils.put_in_range import build_pitch_pool
    >>> chord = ChordResolver().resolve("I", "C")
    >>> voicer = SATBVoicer()
    >>> voicing, diagnostics = voicer(chord, build_pitch_pool(chord.pitches))
    >>> voicing.bass % 12
    0
    >>> sorted({p % 12 for p in voicing.pitches})
    [0, 4, 7]
    >>> voicing.soprano > voicing.alto > voicing.tenor > voicing.bass
    True
    >>> diagnostics
    []
    """

    def _bass(
        self,
        chord: ResolvedChord,
        pool: t.Sequence[Pitch],
        previous: Pitch | None,
        location: Location,
        diagnostics: t.List[Diagnostic],
    ) -> Pitch | None:
        in_range = filter_in_range(pool, self.settings.ranges.bass)
        candidates = pitches_with_pcs(in_range, {chord.bass_pc})
        if not candidates:
            LOGGER.warning(
                f"{location}: no bass pitch with pc {chord.bass_pc} in range "
                f"{self.settings.ranges.bass}, falling back to any chord tone"
            )
            diagnostics.append(
                Diagnostic(
                    DiagnosticKind.BASS_FALLBACK,
                    location,
                    f"pitch-class {chord.bass_pc} not available in bass range",
                    ("bass",),
                )
            )
            candidates = in_range
        target = chord.root - 12 if previous is None else previous
        return self._select(
            target, candidates, previous, self.settings.bass_leap_threshold
        )

    @staticmethod
    def inner_voice_pcs(
        chord: ResolvedChord, bass: Pitch | None, soprano: Pitch | None
    ) -> t.List[PitchClass]:
        """Returns the pitch-classes that the alto and tenor should aim for.

        >>> from dumb_harmonizer.pitch_utils.chords import ChordResolver
        >>> resolver = ChordResolver()
        >>> SATBVoicer.inner_voice_pcs(resolver.resolve("I", "C"), 48, 72)
        [4, 7]
        >>> SATBVoicer.inner_voice_pcs(resolver.resolve("V7", "C"), 43, 77)
        [11, 2]

        When only one pitch-class is missing, the root is doubled:
        >>> SATBVoicer.inner_voice_pcs(resolver.resolve("I", "C"), 48, 76)
        [7, 0]

        ...unless it is the leading tone, in which case the fifth is doubled:
        >>> SATBVoicer.inner_voice_pcs(resolver.resolve("viio6", "C"), 50, 77)
        [11, 5]
        """
        covered = [p for p in (bass, soprano) if p is not None]
        missing = get_pc_complement(chord.pcs, covered, raise_exception=False)
        needed = [
            pc
            for factor in NEEDED_FACTOR_ORDER
            if (pc := chord.factor_pc(factor)) is not None and pc in missing
        ]
        if len(needed) < 2:
            leading_tone = chord.key.leading_tone_pc
            for factor in DOUBLING_ORDER:
                pc = chord.factor_pc(factor)
                if pc is None or pc == leading_tone or pc in needed:
                    continue
                needed.append(pc)
                if len(needed) == 2:
                    break
        while len(needed) < 2:
            # only possible when the chord's other members are all excluded
            needed.append(chord.root_pc)
        return needed[:2]

    @staticmethod
    def avoid_doubled_leading_tone(
        candidates: t.Sequence[Pitch],
        leading_tone: PitchClass,
        sounding: t.Iterable[Pitch | None],
    ) -> t.List[Pitch]:
        """
        >>> SATBVoicer.avoid_doubled_leading_tone([56, 59], 8, [71, 68, 40])
        [59]
        >>> SATBVoicer.avoid_doubled_leading_tone([56, 59], 8, [71, 64, 40])
        [56, 59]
        """
        if not pitch_class_among_pitches(leading_tone, sounding):
            return list(candidates)
        return [p for p in candidates if p % 12 != leading_tone] or list(candidates)

    def _tenor_candidates(
        self, pool: t.Sequence[Pitch], alto: Pitch, bass: Pitch | None
    ) -> t.List[Pitch]:
        spacing = self.settings.spacing
        candidates = [
            p
            for p in filter_in_range(pool, self.settings.ranges.tenor)
            if p < alto and alto - p <= spacing.alto_tenor
        ]
        if bass is not None:
            candidates = [
                p for p in candidates if p > bass and p - bass <= spacing.tenor_bass
            ]
        return candidates

    def _alto(
        self,
        pool: t.Sequence[Pitch],
        target_pc: PitchClass,
        leading_tone: PitchClass,
        soprano: Pitch | None,
        bass: Pitch | None,
        previous: Pitch | None,
    ) -> Pitch | None:
        candidates = filter_in_range(pool, self.settings.ranges.alto)
        if soprano is not None:
            candidates = [
                p
                for p in candidates
                if p < soprano and soprano - p <= self.settings.spacing.soprano_alto
            ]
        if bass is not None:
            candidates = [p for p in candidates if p > bass]
        # leave room for a tenor where possible
        candidates = [
            p for p in candidates if self._tenor_candidates(pool, p, bass)
        ] or candidates
        preferred = pitches_with_pcs(
            candidates, {target_pc}
        ) or self.avoid_doubled_leading_tone(candidates, leading_tone, (soprano, bass))
        if previous is not None:
            target = previous
        elif soprano is not None and bass is not None:
            target = (soprano + bass) / 2
        else:
            target = range_center(self.settings.ranges.alto)
        return self._select(
            target, preferred, previous, self.settings.inner_leap_threshold
        )

    def _tenor(
        self,
        pool: t.Sequence[Pitch],
        target_pc: PitchClass,
        leading_tone: PitchClass,
        soprano: Pitch | None,
        alto: Pitch,
        bass: Pitch | None,
        previous: Pitch | None,
    ) -> Pitch | None:
        candidates = self._tenor_candidates(pool, alto, bass)
        preferred = pitches_with_pcs(
            candidates, {target_pc}
        ) or self.avoid_doubled_leading_tone(
            candidates, leading_tone, (soprano, alto, bass)
        )
        if previous is not None:
            target = previous
        elif bass is not None:
            target = (alto + bass) / 2
        else:
            target = range_center(self.settings.ranges.tenor)
        return self._select(
            target, preferred, previous, self.settings.inner_leap_threshold
        )

    def __call__(
        self,
        chord: ResolvedChord,
        pool: t.Sequence[Pitch],
        previous: SATBVoicing | None = None,
        location: Location = Location(0, 0),
    ) -> t.Tuple[SATBVoicing, t.List[Diagnostic]]:
        if previous is None:
            previous = SATBVoicing.empty()
        diagnostics = []
        bass = self._bass(chord, pool, previous.bass, location, diagnostics)
        soprano = self._top_voice(
            pool, self.settings.ranges.soprano, previous.soprano, above=bass
        )
        alto_pc, tenor_pc = self.inner_voice_pcs(chord, bass, soprano)
        leading_tone = chord.key.leading_tone_pc
        alto = self._alto(pool, alto_pc, leading_tone, soprano, bass, previous.alto)
        tenor = None
        if alto is not None:
            tenor = self._tenor(
                pool, tenor_pc, leading_tone, soprano, alto, bass, previous.tenor
            )
        # the tenor candidates are all strictly below the alto
        assert tenor is None or alto is None or tenor < alto

        voicing = SATBVoicing(soprano=soprano, alto=alto, tenor=tenor, bass=bass)
        for name, pitch in zip(("soprano", "alto", "tenor", "bass"), voicing.pitches):
            if pitch is None:
                LOGGER.debug(f"{location}: couldn't place {name} for {chord.token}")
                diagnostics.append(
                    Diagnostic(
                        DiagnosticKind.VOICING_INCOMPLETE,
                        location,
                        f"no legal {name} pitch for {chord.token}",
                        (name,),
                    )
                )
        return voicing, diagnostics
