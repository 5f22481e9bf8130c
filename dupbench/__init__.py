"""
dupbench
MinHash / Levenshtein 기반 레코드 중복 탐지 벤치마크
"""

from dupbench.data.data_dedup import detect_duplicates
from dupbench.domain.data_enum import Strategy
from dupbench.service.detection import run_detection

__version__ = "0.1.0"

__all__ = ["detect_duplicates", "run_detection", "Strategy"]
