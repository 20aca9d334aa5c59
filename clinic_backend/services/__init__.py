# Mark services as a package and expose the note-analysis entry points.

from .note_analysis import analyze as analyze  # noqa: F401
from .recommendations import draft_record as draft_record  # noqa: F401

__all__ = [
    "analyze",
    "draft_record",
]
