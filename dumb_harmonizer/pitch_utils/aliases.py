from dumb_harmonizer.pitch_utils.types import ChordFactor

Root: ChordFactor = 0
Third: ChordFactor = 1
Fifth: ChordFactor = 2
Seventh: ChordFactor = 3
