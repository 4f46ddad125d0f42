"""
Collage Backend - Flask API around the analyzer

This app is deployed on a backend server. It:
1. Accepts images from the frontend and analyzes them
2. Logs accept/skip decisions and exports them as CSV
3. Proxies captioning, image-edit and diffusion services

Deployment:
    pip install collage-advisor
    flask --app collage_backend.app:create_app run
"""

from .app import create_app
from .config import Config

__all__ = ["create_app", "Config"]
