from . import frontend, health

__all__ = ["frontend", "health"]
