"""BetterMe - progression and reward engine for a gamified habit tracker"""

__version__ = "0.1.0"
