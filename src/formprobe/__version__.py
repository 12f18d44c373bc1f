"""Version information for formprobe."""

__version__ = "0.1.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Release information
__title__ = "formprobe"
__description__ = "Readiness gating and mailbox verification for website E2E tests"
__author__ = "formprobe contributors"
__license__ = "MIT"


def get_version() -> str:
    """Return the current version string."""
    return __version__
