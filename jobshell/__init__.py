"""An interactive Unix shell with job control, command-line parsing and a job list."""

__version__ = "0.1.0"
__all__ = ["__version__"]