"""Backend HTTP routes."""

from .analysis import analysis_bp
from .proxy import proxy_bp

__all__ = ["analysis_bp", "proxy_bp"]
