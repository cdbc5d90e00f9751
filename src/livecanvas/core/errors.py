"""Exception taxonomy for Live Canvas.

Every error here is recoverable at the boundary where it occurs:

- :class:`GenerationError`: the image provider failed or returned no
  usable image reference.  The triggering user action is aborted.
- :class:`VariationError`: fewer than four valid variations could be
  obtained.  Subclasses :class:`GenerationError` so callers that only care
  about "generation failed" can catch the base.
- :class:`PersistenceError`: network or storage failure on save, delete or
  load.  Logged by the canvas store; never rolls back in-memory state.
"""

from __future__ import annotations


class LiveCanvasError(Exception):
    """Base class for all Live Canvas errors."""


class GenerationError(LiveCanvasError):
    """Upstream image generation failed or returned a malformed response."""


class VariationError(GenerationError):
    """Fewer than four valid variation results were obtainable."""


class PersistenceError(LiveCanvasError):
    """Durable storage could not be reached or rejected the operation."""
