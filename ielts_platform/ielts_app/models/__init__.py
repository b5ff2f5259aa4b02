"""Database models package."""

from .reading import ReadingTest, ReadingTestAttempt

__all__ = [
    "ReadingTest",
    "ReadingTestAttempt",
]
