# Story generation
from .narrative_generator import NarrativeGenerator, DspyNarrativeService
from .quality_evaluator import evaluate_narrative

# Cover acquisition
from .cover_acquirer import CoverAcquirer
from .cover_compositor import compose_cover, compute_placement
from .cover_refiner import CoverRefiner
from .cover_synthesizer import CoverSynthesizer

__all__ = [
    # Story generation
    "NarrativeGenerator",
    "DspyNarrativeService",
    "evaluate_narrative",
    # Cover acquisition
    "CoverAcquirer",
    "compose_cover",
    "compute_placement",
    "CoverRefiner",
    "CoverSynthesizer",
]
