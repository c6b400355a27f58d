"""extplay - hand media server items off to an external player."""

__version__ = "0.4.0"
