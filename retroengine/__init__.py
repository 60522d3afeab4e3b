"""Sprite animation banks, game configuration parsing, and sound effect and music mixing for a retro 2D engine."""

__version__ = "0.1.0"

__all__ = ["animation", "gameconfig", "mixer", "audio"]