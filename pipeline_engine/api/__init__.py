"""API route modules."""
from pipeline_engine.api import synthesize, actions, layout

__all__ = ["synthesize", "actions", "layout"]
