"""Quiz grading and course progress tracking core."""

__version__ = "0.1.0"
