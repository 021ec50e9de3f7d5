"""Reader container boot package.

Prepares the reader's book library before the web server starts: every
``*.epub`` in the books directory is run through the external processor
once, then control passes to the server process. Book parsing and serving
live in the external ``reader3.py`` / ``server.py`` programs.
"""

from .config import APP_VERSION as __version__

__all__ = ["__version__"]
