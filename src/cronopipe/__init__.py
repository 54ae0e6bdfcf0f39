"""cronopipe public API."""

from .api import configure, preview, run
from .version import __version__

__all__ = [
    "configure",
    "run",
    "preview",
    "__version__",
]
