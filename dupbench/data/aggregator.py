import time
from typing import List, Optional
from dupbench.config.data_config import DetectionConfig
from dupbench.domain.models import Comparison, ProcessingResult

class ResultAggregator:
    """임계값을 넘은 쌍을 모아 ProcessingResult로 포장"""

    def __init__(self, algorithm_name: str, threshold: float,
                 result_limit: int = DetectionConfig.RESULT_LIMIT):
        self.algorithm_name = algorithm_name
        self.threshold = threshold
        self.result_limit = result_limit
        self._duplicates: List[Comparison] = []
        self._started: Optional[float] = None

    def start(self):
        """실행 시간 측정 시작 (초기화 + 비교 구간)"""
        self._started = time.perf_counter()

    def add(self, comparison: Comparison):
        self._duplicates.append(comparison)

    def __len__(self) -> int:
        return len(self._duplicates)

    def build(self, total_items: int, total_comparisons: int,
              cache_size: Optional[int] = None) -> ProcessingResult:
        """유사도 내림차순 정렬 (동점은 발견 순서 유지) 후 result_limit으로 자르기"""
        elapsed_ms = 0.0
        if self._started is not None:
            elapsed_ms = (time.perf_counter() - self._started) * 1000

        ranked = sorted(self._duplicates, key=lambda c: c.similarity, reverse=True)
        return ProcessingResult(
            algorithm_name=self.algorithm_name,
            threshold=self.threshold,
            total_items=total_items,
            duplicates_found=len(ranked),
            duplicates=ranked[:self.result_limit],
            total_comparisons=total_comparisons,
            execution_time_ms=elapsed_ms,
            cache_size=cache_size,
        )


def calculate_efficiency(result: ProcessingResult) -> int:
    """실행 시간 점수와 탐지율 점수의 평균 (0~100)"""
    if result is None or result.total_items == 0:
        return 0
    time_score = max(0.0, 100 - result.execution_time_ms / 100)
    accuracy_score = result.duplicates_found / result.total_items * 100
    return round((time_score + accuracy_score) / 2)
