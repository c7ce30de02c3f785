"""Iamus metaverse server configuration package.

*Why this file is tiny:* importing ``iamus`` should never read the
environment or touch the network. Version metadata lives in
:mod:`iamus._initbase`; configuration resolution lives in :mod:`iamus.config`.
"""

from ._initbase import __version__  # re-export version string

__all__ = ["__version__"]
