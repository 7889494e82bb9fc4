"""Route blueprints exposed via Flask."""

from .health import health_bp
from .songs import songs_bp

__all__ = [
    "health_bp",
    "songs_bp",
]
