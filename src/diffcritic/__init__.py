"""diffcritic: heuristic review of git branch changes."""

__version__ = "0.1.0"
