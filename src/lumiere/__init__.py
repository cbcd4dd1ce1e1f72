"""Random movie and TV suggestions drawn from the TMDB catalog."""

__version__ = "0.1.0"

__all__ = ["__version__"]
