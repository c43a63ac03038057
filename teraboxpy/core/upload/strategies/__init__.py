"""Upload strategies module."""
from .chunking import FixedSizeChunkingStrategy, ThresholdChunkingStrategy

__all__ = [
    'FixedSizeChunkingStrategy',
    'ThresholdChunkingStrategy',
]
