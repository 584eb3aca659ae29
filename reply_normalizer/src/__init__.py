"""Primary source package for the reply normalizer.

This makes the 'src' directory a proper Python package so that test imports
like 'reply_normalizer.src.processing.response_classifier' succeed. All
intra-package imports should use relative form (e.g. 'from ..config import Config').
"""

__all__ = []
