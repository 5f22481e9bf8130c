from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

# 필드명 → 스칼라 값 (str / int / float / bool / None)
Record = Mapping[str, Any]


@dataclass(frozen=True)
class NormalizedRecord:
    """정규화된 레코드 (런 단위로 한 번만 생성)"""
    index: int
    original: Record
    normalized: str


@dataclass(frozen=True)
class Comparison:
    """임계값을 넘은 레코드 쌍"""
    indices: tuple[int, int]
    similarity: float
    item1: Record = field(default_factory=dict)
    item2: Record = field(default_factory=dict)
    distance: Optional[int] = None

    def to_dict(self) -> dict:
        """스트림/JSON 전송용 딕셔너리 (distance는 있을 때만)"""
        data = {
            "item1": dict(self.item1),
            "item2": dict(self.item2),
            "similarity": self.similarity,
            "indices": list(self.indices),
        }
        if self.distance is not None:
            data["distance"] = self.distance
        return data


@dataclass
class ProcessingResult:
    """알고리즘 한 번 실행의 결과 요약"""
    algorithm_name: str
    threshold: float
    total_items: int
    duplicates_found: int
    duplicates: list[Comparison]
    total_comparisons: int
    execution_time_ms: float = 0.0
    cache_size: Optional[int] = None

    def to_dict(self) -> dict:
        """스트림/JSON 전송용 camelCase 딕셔너리"""
        data = {
            "algorithmName": self.algorithm_name,
            "threshold": self.threshold,
            "totalItems": self.total_items,
            "duplicatesFound": self.duplicates_found,
            "duplicates": [d.to_dict() for d in self.duplicates],
            "totalComparisons": self.total_comparisons,
            "executionTimeMs": self.execution_time_ms,
        }
        if self.cache_size is not None:
            data["cacheSize"] = self.cache_size
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessingResult":
        """to_dict() 결과로부터 복원 (워커 → 부모 프로세스 전달용)"""
        duplicates = [
            Comparison(
                indices=tuple(d["indices"]),
                similarity=d["similarity"],
                item1=d.get("item1", {}),
                item2=d.get("item2", {}),
                distance=d.get("distance"),
            )
            for d in data.get("duplicates", [])
        ]
        return cls(
            algorithm_name=data["algorithmName"],
            threshold=data["threshold"],
            total_items=data["totalItems"],
            duplicates_found=data["duplicatesFound"],
            duplicates=duplicates,
            total_comparisons=data["totalComparisons"],
            execution_time_ms=data.get("executionTimeMs", 0.0),
            cache_size=data.get("cacheSize"),
        )


@dataclass(frozen=True)
class ProgressEvent:
    """알고리즘별 진행률 이벤트 (0~100, 비감소)"""
    algorithm: str
    progress: int
    status: str

    def to_dict(self) -> dict:
        """스트림 이벤트 딕셔너리"""
        return {"algorithm": self.algorithm, "progress": self.progress, "status": self.status}
