"""
Data Module
Normalization, signatures, distance engines and pairwise comparison
"""

from dupbench.data.data_dedup import LevenshteinDetector, MinHashDetector, detect_duplicates
from dupbench.data.data_io import DataFrameProcessor
from dupbench.data.data_normalize import TextProcessor

__all__ = [
    "DataFrameProcessor",
    "LevenshteinDetector",
    "MinHashDetector",
    "TextProcessor",
    "detect_duplicates",
]
