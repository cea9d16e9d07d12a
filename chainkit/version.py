"""chainkit version information."""

__version__ = "0.4.0"


def get_version() -> str:
    """Return the installed chainkit version string."""
    return __version__
