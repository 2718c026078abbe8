class InvalidInputError(ValueError):
    """Raised for malformed keys, meters, roman numerals, or settings."""


class MusicTheoryError(Exception):
    """Raised when a chord cannot be built from an otherwise well-formed token.

    For example, asking for the seventh in the bass of a triad.
    """


class GenerationError(Exception):
    pass
