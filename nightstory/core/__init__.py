# Night Story - Core Domain

# Re-export types for convenient access
from .types import (
    AnswerSet,
    Child,
    ImageAcquisitionResult,
    ImageOrigin,
    Narrative,
    NarrativeSection,
    StyleType,
    ThemeType,
    Verdict,
)

__all__ = [
    "AnswerSet",
    "Child",
    "ImageAcquisitionResult",
    "ImageOrigin",
    "Narrative",
    "NarrativeSection",
    "StyleType",
    "ThemeType",
    "Verdict",
]
