from .story_session import ImagePhase, NarrativePhase, StorySession

__all__ = ["ImagePhase", "NarrativePhase", "StorySession"]
