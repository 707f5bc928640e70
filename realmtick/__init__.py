"""RealmTick: daily world-advancement engine for a persistent multiplayer realm."""

__version__ = "0.1.0"
