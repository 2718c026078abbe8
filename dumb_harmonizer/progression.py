import logging
import random
import re
import typing as t
from types import MappingProxyType

from dumb_harmonizer.errors import GenerationError
from dumb_harmonizer.pitch_utils.types import Mode, RNToken
from dumb_harmonizer.utils.math_ import clamp, softmax, weighted_choice

LOGGER = logging.getLogger(__name__)

PRIMARY_CHORDS = ("I", "ii", "IV", "V", "vi")
SECONDARY_CHORDS = ("iii", "vii°")
COMPLEX_CHORDS = ("I6", "ii6", "IV6", "V6", "V7")

SECONDARY_COMPLEXITY = 3
COMPLEX_COMPLEXITY = 6
DOMINANT_SEVENTH_COMPLEXITY = 4
LEADING_TONE_SEVENTH_COMPLEXITY = 8

TENDENCIES = MappingProxyType(
    {
        "I": frozenset({"IV", "V", "vi", "ii"}),
        "ii": frozenset({"V", "vii°"}),
        "iii": frozenset({"vi", "IV"}),
        "IV": frozenset({"V", "I", "ii"}),
        "V": frozenset({"I", "vi"}),
        "vi": frozenset({"ii", "IV"}),
        "vii°": frozenset({"I"}),
    }
)

# Preference score of chords that follow the previous chord's tendency; all
#   other chords score 0 before the softmax
TENDENCY_SCORE = 2.0

# (penultimate chord, weight)
CADENCES = (("V", 3.0), ("IV", 1.0))

# In minor keys, we respell numerals so they agree with the diatonic quality.
#   V and vii° are taken from harmonic minor and so keep their major-key
#   spelling.
MINOR_SPELLINGS = MappingProxyType(
    {"I": "i", "ii": "ii°", "iii": "III", "IV": "iv", "vi": "VI"}
)

BASE_RE = re.compile(r"^(?P<base>[IViv]+°?)")


def chord_function(token: RNToken) -> RNToken:
    """
    >>> chord_function("V7"), chord_function("vii°7"), chord_function("ii6")
    ('V', 'vii°', 'ii')
    """
    m = BASE_RE.match(token)
    assert m is not None
    return m.group("base")


def softmax_temperature(harmonic_complexity: float) -> float:
    """Higher complexity spreads probability more evenly over the candidates.

    >>> softmax_temperature(0), softmax_temperature(10)
    (0.5, 2.5)
    """
    return 0.5 + harmonic_complexity / 5


def allowed_chords(harmonic_complexity: float) -> t.List[RNToken]:
    """
    >>> allowed_chords(0)
    ['I', 'ii', 'IV', 'V', 'vi']
    >>> allowed_chords(7)
    ['I', 'ii', 'IV', 'V', 'vi', 'iii', 'vii°', 'I6', 'ii6', 'IV6', 'V6', 'V7']
    """
    out = list(PRIMARY_CHORDS)
    if harmonic_complexity >= SECONDARY_COMPLEXITY:
        out.extend(SECONDARY_CHORDS)
    if harmonic_complexity >= COMPLEX_COMPLEXITY:
        out.extend(COMPLEX_CHORDS)
    return out


def upgrade(token: RNToken, harmonic_complexity: float) -> RNToken:
    """
    >>> upgrade("V", 4), upgrade("V", 3), upgrade("vii°", 8), upgrade("V6", 10)
    ('V7', 'V', 'vii°7', 'V6')
    """
    if token == "V" and harmonic_complexity >= DOMINANT_SEVENTH_COMPLEXITY:
        return "V7"
    if token == "vii°" and harmonic_complexity >= LEADING_TONE_SEVENTH_COMPLEXITY:
        return "vii°7"
    return token


def respell_for_minor(token: RNToken) -> RNToken:
    """
    >>> [respell_for_minor(x) for x in ("I6", "ii", "V7", "vii°7", "vi")]
    ['i6', 'ii°', 'V7', 'vii°7', 'VI']
    """
    function = chord_function(token)
    if function not in MINOR_SPELLINGS:
        return token
    return MINOR_SPELLINGS[function] + token[len(function) :]


def _next_chord(
    previous: RNToken,
    allowed: t.Sequence[RNToken],
    temperature: float,
    rng: random.Random,
) -> RNToken:
    prev_function = chord_function(previous)
    candidates = [c for c in allowed if chord_function(c) != prev_function]
    if not candidates:
        candidates = list(allowed)
    preferred = TENDENCIES.get(prev_function, frozenset())
    scores = [
        TENDENCY_SCORE if chord_function(c) in preferred else 0.0 for c in candidates
    ]
    weights = softmax(scores, temperature=temperature)
    return weighted_choice(candidates, weights.tolist(), rng)


def _penultimate(before: RNToken | None, rng: random.Random) -> RNToken:
    options = [
        (chord, weight)
        for chord, weight in CADENCES
        if before is None or chord != chord_function(before)
    ]
    chords, weights = zip(*options)
    return weighted_choice(chords, weights, rng)


def draft_progression(
    n_measures: int,
    harmonic_complexity: float = 5,
    rng: random.Random | None = None,
    mode: Mode | str = Mode.MAJOR,
) -> t.List[RNToken]:
    """Drafts a progression with one chord per measure, starting on the tonic
    and ending with a cadence.

    >>> rng = random.Random(0)
    >>> progression = draft_progression(8, harmonic_complexity=5, rng=rng)
    >>> len(progression), progression[0], progression[-1]
    (8, 'I', 'I')
    >>> progression[-2] in ("V7", "IV")
    True
    >>> draft_progression(3, rng=rng, mode="minor")[::2]
    ['i', 'i']
    >>> draft_progression(1)
    ['I']
    >>> draft_progression(0)
    Traceback (most recent call last):
    dumb_harmonizer.errors.GenerationError: Can't draft a progression of 0 measures
    """
    if n_measures < 1:
        raise GenerationError(f"Can't draft a progression of {n_measures} measures")
    if rng is None:
        rng = random.Random()
    if isinstance(mode, str):
        mode = Mode(mode)
    harmonic_complexity = clamp(harmonic_complexity, 0, 10)
    allowed = allowed_chords(harmonic_complexity)
    temperature = softmax_temperature(harmonic_complexity)

    progression = ["I"]
    for _ in range(1, n_measures - 1):
        progression.append(_next_chord(progression[-1], allowed, temperature, rng))
    if n_measures > 1:
        # with two measures, the opening tonic gives way to the cadence
        before = progression[-2] if n_measures > 2 else None
        progression[-1] = _penultimate(before, rng)
        progression.append("I")

    progression = [upgrade(token, harmonic_complexity) for token in progression]
    if mode is Mode.MINOR:
        progression = [respell_for_minor(token) for token in progression]
    LOGGER.debug(f"Drafted progression: {' '.join(progression)}")
    return progression
