"""
Entry point for running the review stitcher as a module.

Usage:
    python -m frigate_reviews [-c config.yaml]
"""

from .cli import main

if __name__ == "__main__":
    main()
