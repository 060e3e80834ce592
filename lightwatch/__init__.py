"""Poll a smart-light service over HTTP and report added, changed and removed lights."""

__version__ = "0.1.0"
__all__ = ["__version__"]