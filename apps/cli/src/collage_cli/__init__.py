"""
Command-line front end for the collage analyzer. It:
1. Loads an image file
2. Prints its features and the three recommendations
3. Optionally prints where a synthetic overlay would be placed

Deployment:
    pip install collage-advisor
    collage-analyze path/to/image.png --seed 7
"""

from .cli import cli, main

__all__ = ["cli", "main"]
