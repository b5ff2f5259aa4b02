"""REST API blueprints (reading tests, generation, metrics)."""

from __future__ import annotations

from .generation_bp import generation_bp
from .metrics_bp import metrics_bp
from .reading_bp import reading_bp

BLUEPRINTS = (
    (reading_bp, "/api/reading"),
    (generation_bp, "/api/generation"),
    (metrics_bp, ""),
)

__all__ = [
    "BLUEPRINTS",
    "generation_bp",
    "metrics_bp",
    "reading_bp",
]
