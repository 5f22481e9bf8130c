import random
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Iterable, List, Optional, Sequence

import numpy as np

from dupbench.config.data_config import DetectionConfig
from dupbench.data.aggregator import ResultAggregator
from dupbench.data.data_normalize import TextProcessor
from dupbench.data.levenshtein import LevenshteinEngine
from dupbench.data.minhash import HashFamily, SignatureBuilder, jaccard_similarities
from dupbench.domain.data_enum import RunState, Strategy
from dupbench.domain.models import Comparison, NormalizedRecord, ProcessingResult, Record
from dupbench.utils.exception import BaseDetectionException, ComputationFault, InputError
from dupbench.utils.log import logger, log_performance

ProgressCallback = Callable[[int, str], None]


def validate_records(records: Any) -> List[Record]:
    """레코드 목록 검증 (list/tuple of mapping)"""
    if records is None or isinstance(records, (str, bytes, Mapping)):
        raise InputError(error="Invalid data format: records must be a list of mappings")
    try:
        records = list(records)
    except TypeError as e:
        raise InputError(error="Invalid data format: records must be iterable") from e

    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise InputError(error=f"Invalid data format: record {i} is {type(record).__name__}, expected mapping")
    return records


def validate_threshold(threshold: Optional[float]) -> Optional[float]:
    if threshold is None:
        return None
    try:
        value = float(threshold)
    except (TypeError, ValueError) as e:
        raise InputError(error=f"Threshold must be a number, got {threshold!r}") from e
    if not 0.0 <= value <= 1.0:
        raise InputError(error=f"Threshold must be between 0 and 1, got {value}")
    return value


class ProgressReporter:
    """진행률 콜백 래퍼 (0~100 범위, 감소하지 않음)"""

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self.callback = callback
        self.last = 0

    def emit(self, progress: float, status: str):
        value = max(self.last, min(100, int(round(progress))))
        self.last = value
        if self.callback is not None:
            self.callback(value, status)


class PairwiseComparator(ABC):
    """
    모든 i < j 쌍을 비교하는 공통 루프

    Idle → Initializing → ExtractingFeatures → Comparing → Complete | Failed
    실패 시 부분 결과 없이 예외를 올린다.
    """

    strategy: Strategy
    display_name: str
    algorithm_name: str
    default_threshold: float
    checkpoint: int
    compare_range: tuple

    def __init__(self, threshold: Optional[float] = None,
                 result_limit: int = DetectionConfig.RESULT_LIMIT,
                 on_progress: Optional[ProgressCallback] = None):
        self.threshold = self.default_threshold if threshold is None else threshold
        self.result_limit = result_limit
        self.progress = ProgressReporter(on_progress)
        self.text_processor = TextProcessor()
        self.state = RunState.IDLE

    def _transition(self, state: RunState):
        logger.debug(f"[{self.strategy.value}] {self.state.value} -> {state.value}")
        self.state = state

    @abstractmethod
    def extract_features(self, records: Sequence[NormalizedRecord]) -> Any:
        """비교 전 O(n) 단계 (정규화 이후)"""

    @abstractmethod
    def row_similarities(self, features: Any, i: int, n: int) -> Iterable[float]:
        """i번째 레코드와 j = i+1 .. n-1 레코드의 유사도"""

    def make_comparison(self, left: NormalizedRecord, right: NormalizedRecord,
                        similarity: float) -> Comparison:
        return Comparison(
            indices=(left.index, right.index),
            similarity=similarity,
            item1=left.original,
            item2=right.original,
        )

    def cache_size(self) -> Optional[int]:
        return None

    def describe_progress(self, completed: int, total: int) -> str:
        return f"Processed {completed}/{total} comparisons..."

    def on_initialize(self):
        self.progress.emit(0, f"Initializing {self.display_name} processor...")

    def on_complete(self):
        self.progress.emit(100, f"{self.display_name} processing complete!")

    @log_performance
    def run(self, records: Sequence[Record]) -> ProcessingResult:
        aggregator = ResultAggregator(self.algorithm_name, self.threshold, self.result_limit)
        self._transition(RunState.INITIALIZING)
        aggregator.start()
        try:
            self.on_initialize()
            n = len(records)
            total = n * (n - 1) // 2

            if n >= 2:
                self._transition(RunState.EXTRACTING_FEATURES)
                normalized = [self.text_processor.normalize_record(i, r) for i, r in enumerate(records)]
                features = self.extract_features(normalized)

                self._transition(RunState.COMPARING)
                self._compare_all(normalized, features, total, aggregator)
            else:
                logger.info(f"[{self.strategy.value}] {n} record(s), nothing to compare")

            result = aggregator.build(n, total, self.cache_size())
            self._transition(RunState.COMPLETE)
            self.on_complete()
        except BaseDetectionException:
            self._transition(RunState.FAILED)
            raise
        except Exception as e:
            self._transition(RunState.FAILED)
            raise ComputationFault(error=str(e)) from e

        logger.info(
            f"[{self.strategy.value}] {result.duplicates_found} duplicate pairs "
            f"in {result.total_comparisons:,} comparisons ({result.execution_time_ms:.1f}ms)"
        )
        return result

    def _compare_all(self, normalized: Sequence[NormalizedRecord], features: Any,
                     total: int, aggregator: ResultAggregator):
        start, end = self.compare_range
        n = len(normalized)
        completed = 0

        for i in range(n - 1):
            for offset, similarity in enumerate(self.row_similarities(features, i, n)):
                j = i + 1 + offset
                if similarity >= self.threshold:
                    aggregator.add(self.make_comparison(normalized[i], normalized[j], similarity))

                completed += 1
                if completed % self.checkpoint == 0:
                    self.progress.emit(
                        start + completed / total * (end - start),
                        self.describe_progress(completed, total),
                    )


class MinHashDetector(PairwiseComparator):
    """MinHash 시그니처 일치율로 Jaccard 유사도를 추정"""

    strategy = Strategy.MINHASH
    display_name = "MinHash"
    algorithm_name = DetectionConfig.MINHASH_NAME
    default_threshold = DetectionConfig.MINHASH_THRESHOLD
    checkpoint = DetectionConfig.MINHASH_COMPARE_CHECKPOINT
    compare_range = DetectionConfig.MINHASH_COMPARE_RANGE

    def __init__(self, threshold: Optional[float] = None,
                 num_hash_functions: int = DetectionConfig.NUM_HASH_FUNCTIONS,
                 shingle_size: int = DetectionConfig.SHINGLE_SIZE,
                 rng: Optional[random.Random] = None, **kwargs):
        super().__init__(threshold, **kwargs)
        self.num_hash_functions = num_hash_functions
        self.shingle_size = shingle_size
        self.rng = rng

    def describe_progress(self, completed: int, total: int) -> str:
        return f"Compared {completed}/{total} pairs..."

    def extract_features(self, records: Sequence[NormalizedRecord]) -> np.ndarray:
        # 해시 패밀리는 첫 시그니처 전에 한 번만 생성
        builder = SignatureBuilder(HashFamily.generate(self.num_hash_functions, self.rng))
        start, end = DetectionConfig.MINHASH_SIGNATURE_RANGE
        n = len(records)

        self.progress.emit(start, "Generating MinHash signatures...")
        signatures = np.empty((n, self.num_hash_functions), dtype=np.int64)
        for i, record in enumerate(records):
            shingles = self.text_processor.create_shingles(record.normalized, self.shingle_size)
            signatures[i] = builder.build(shingles)
            if i % DetectionConfig.MINHASH_SIGNATURE_CHECKPOINT == 0:
                self.progress.emit(start + i / n * (end - start), f"Generated {i}/{n} signatures...")

        self.progress.emit(end, "Comparing signatures for duplicates...")
        return signatures

    def row_similarities(self, features: np.ndarray, i: int, n: int) -> Iterable[float]:
        # i행을 나머지 행과 한 번에 비교, 방문 순서는 j 오름차순 그대로
        return jaccard_similarities(features[i], features[i + 1:n]).tolist()


class LevenshteinDetector(PairwiseComparator):
    """정규화된 텍스트 간 정확한 편집 거리"""

    strategy = Strategy.LEVENSHTEIN
    display_name = "Levenshtein"
    algorithm_name = DetectionConfig.LEVENSHTEIN_NAME
    default_threshold = DetectionConfig.LEVENSHTEIN_THRESHOLD
    checkpoint = DetectionConfig.LEVENSHTEIN_COMPARE_CHECKPOINT
    compare_range = DetectionConfig.LEVENSHTEIN_COMPARE_RANGE

    def __init__(self, threshold: Optional[float] = None,
                 max_cache_size: Optional[int] = None, **kwargs):
        super().__init__(threshold, **kwargs)
        self.engine = LevenshteinEngine(max_cache_size)

    def on_initialize(self):
        # 메모 캐시는 런 단위
        self.engine.clear()
        super().on_initialize()

    def extract_features(self, records: Sequence[NormalizedRecord]) -> List[str]:
        self.progress.emit(DetectionConfig.LEVENSHTEIN_PREPARE_PROGRESS,
                           "Preparing data for Levenshtein comparison...")
        texts = [record.normalized for record in records]
        self.progress.emit(self.compare_range[0], "Starting pairwise comparisons...")
        return texts

    def row_similarities(self, features: List[str], i: int, n: int) -> Iterable[float]:
        left = features[i]
        for j in range(i + 1, n):
            yield self.engine.similarity(left, features[j])

    def make_comparison(self, left: NormalizedRecord, right: NormalizedRecord,
                        similarity: float) -> Comparison:
        return Comparison(
            indices=(left.index, right.index),
            similarity=similarity,
            item1=left.original,
            item2=right.original,
            distance=self.engine.distance(left.normalized, right.normalized),
        )

    def cache_size(self) -> Optional[int]:
        return self.engine.cache_size


def create_detector(strategy: Strategy, threshold: Optional[float] = None,
                    on_progress: Optional[ProgressCallback] = None,
                    options: Optional[dict] = None) -> PairwiseComparator:
    """전략별 비교기 생성 (options는 설정값 override)"""
    options = options or {}
    common = {
        "on_progress": on_progress,
        "result_limit": options.get("result_limit", DetectionConfig.RESULT_LIMIT),
    }
    if strategy is Strategy.MINHASH:
        return MinHashDetector(
            threshold,
            num_hash_functions=options.get("num_hash_functions", DetectionConfig.NUM_HASH_FUNCTIONS),
            shingle_size=options.get("shingle_size", DetectionConfig.SHINGLE_SIZE),
            rng=options.get("rng"),
            **common,
        )
    if strategy is Strategy.LEVENSHTEIN:
        return LevenshteinDetector(
            threshold,
            max_cache_size=options.get("max_cache_size"),
            **common,
        )
    raise InputError(error=f"Unknown strategy: {strategy!r}")


def detect_duplicates(records: Any, strategy: Strategy, threshold: Optional[float] = None,
                      on_progress: Optional[ProgressCallback] = None,
                      options: Optional[dict] = None) -> ProcessingResult:
    """단일 전략을 현재 프로세스에서 동기 실행"""
    records = validate_records(records)
    threshold = validate_threshold(threshold)
    detector = create_detector(strategy, threshold, on_progress, options)
    return detector.run(records)
