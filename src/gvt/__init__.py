"""gvt: generational versioning of a working directory."""

from .constants import GVT_VERSION as __version__

__all__ = ["__version__"]
