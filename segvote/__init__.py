"""
segvote - Segment Vote Engine

Vote resolution and score adjustment for a crowdsourced
video-segment-labeling service. Users upvote, downvote, report or
recategorize submitted segments; the engine weighs each vote by
privilege, keeps one effective vote per (segment, voter), and updates
segment scores, categories and moderation state.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
