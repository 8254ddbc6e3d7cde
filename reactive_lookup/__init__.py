"""GitHub user lookup built from two reactive patterns: retry-with-delay and cascading latest-wins updates."""

__version__ = "0.1.0"
