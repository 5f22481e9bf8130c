import re
from numbers import Number
from typing import Any, Set
from dupbench.config.data_config import DetectionConfig
from dupbench.domain.models import NormalizedRecord, Record
from dupbench.utils.exception import ComputationFault

class TextProcessor:
    """레코드 정규화 및 shingle 생성을 담당하는 클래스"""

    def __init__(self):
        self.non_alnum_re = re.compile(DetectionConfig.NON_ALNUM_PATTERN)
        self.whitespace_re = re.compile(DetectionConfig.WHITESPACE_PATTERN)

    @staticmethod
    def stringify(value: Any) -> str:
        """스칼라 필드값을 문자열로 변환"""
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (str, Number)):
            return str(value)
        raise ComputationFault(
            error=f"Unsupported field value type: {type(value).__name__}"
        )

    def normalize(self, text: str) -> str:
        """텍스트 정규화 (소문자, 구두점 제거, 공백 정리)"""
        if not text:
            return ""

        text = text.lower()
        text = self.non_alnum_re.sub("", text)
        text = self.whitespace_re.sub(" ", text)
        return text.strip()

    def normalize_record(self, index: int, record: Record) -> NormalizedRecord:
        """레코드의 모든 필드값을 순서대로 이어붙여 정규화"""
        joined = " ".join(self.stringify(value) for value in record.values())
        return NormalizedRecord(index=index, original=record, normalized=self.normalize(joined))

    def create_shingles(self, text: str, k: int = DetectionConfig.SHINGLE_SIZE) -> Set[str]:
        """문자 k-gram 집합 생성 (텍스트가 k보다 짧으면 빈 집합)"""
        if len(text) < k:
            return set()
        return {text[i:i + k] for i in range(len(text) - k + 1)}
