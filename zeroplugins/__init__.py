"""Chat-bot plugin logic: scores, sleep tracking, wordle, tarot, picture sets and reply helpers."""

__version__ = "0.1.0"