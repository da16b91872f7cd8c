from .summary import get_lifecycle_descriptions, summarize_execution

__all__ = ["get_lifecycle_descriptions", "summarize_execution"]
