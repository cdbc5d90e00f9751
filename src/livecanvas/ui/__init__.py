"""Canvas session layer driving the core from user actions.

Modules
-------
session
    ``CanvasSession``: generation, variations, duplication, deletion, saving
    and grid arrangement as the canvas UI triggers them.
"""

from livecanvas.ui.session import CanvasSession

__all__ = ["CanvasSession"]
