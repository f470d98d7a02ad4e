"""Crawler de catalogue de séries animées (saisons, épisodes, liens vidéo externes)."""

__version__ = "0.1.0"
