"""
OCR module for reading platform signs.

Provides the ``read_text(image) -> str`` collaborator used by signage
validation.
"""

from .text_reader import TextReader

__all__ = ['TextReader']
