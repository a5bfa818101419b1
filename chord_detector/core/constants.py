"""Global constants for Chord Detector."""

# Tuning reference (12-TET, A4 = 440 Hz)
A4_FREQUENCY = 440.0
A4_MIDI = 69
# Semitones from C0 to A4
A4_SEMITONES_FROM_C0 = 57

# Pitch names
SHARP_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_NAMES = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]
PITCH_NAMES = SHARP_NAMES

# Analysis band (guitar / voice fundamentals, E2 to roughly D6)
MIN_FREQUENCY = 80.0
MAX_FREQUENCY = 1200.0

# Capture defaults (browser analyser node)
DEFAULT_SR = 44100
DEFAULT_FFT_SIZE = 2048
DEFAULT_SMOOTHING = 0.8
DEFAULT_MIN_DECIBELS = -100.0
DEFAULT_MAX_DECIBELS = -30.0
BYTE_MAX = 255

# Detection defaults
DEFAULT_MAX_PEAKS = 6
SILENCE_THRESHOLD = 10.0
ACTIVITY_RMS_THRESHOLD = 0.005
