"""Alt-text pipeline: the generator and the dispatch coordinator that decides when it runs."""

from alttext.pipeline.dispatch import DispatchCoordinator
from alttext.pipeline.generator import AltTextGenerator, GenerationOutcome, GenerationStatus

__all__ = [
    "AltTextGenerator",
    "DispatchCoordinator",
    "GenerationOutcome",
    "GenerationStatus",
]
