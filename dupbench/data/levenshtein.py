from collections import OrderedDict
from typing import Optional, Tuple

from rapidfuzz.distance import Levenshtein


class LevenshteinEngine:
    """
    편집 거리 계산기 (런 단위 메모이제이션)

    캐시 키는 (작은 문자열, 큰 문자열) 순서로 정렬해 (a, b)와 (b, a)가
    같은 항목을 쓴다. max_cache_size를 주면 LRU로 오래된 항목을 버린다.
    """

    def __init__(self, max_cache_size: Optional[int] = None):
        self.max_cache_size = max_cache_size
        self._memo: "OrderedDict[Tuple[str, str], int]" = OrderedDict()

    @property
    def cache_size(self) -> int:
        return len(self._memo)

    @staticmethod
    def _key(str1: str, str2: str) -> Tuple[str, str]:
        return (str1, str2) if str1 <= str2 else (str2, str1)

    @staticmethod
    def compute(str1: str, str2: str) -> int:
        """편집 거리 (삽입/삭제/치환 비용 1)"""
        return Levenshtein.distance(str1, str2)

    def distance(self, str1: str, str2: str) -> int:
        """메모이제이션된 편집 거리"""
        key = self._key(str1, str2)
        cached = self._memo.get(key)
        if cached is not None:
            if self.max_cache_size is not None:
                self._memo.move_to_end(key)
            return cached

        result = self.compute(*key)
        self._memo[key] = result
        if self.max_cache_size is not None and len(self._memo) > self.max_cache_size:
            self._memo.popitem(last=False)
        return result

    def similarity(self, str1: str, str2: str) -> float:
        """1 - 거리 / 최대 길이 (둘 다 빈 문자열이면 1.0)"""
        max_length = max(len(str1), len(str2))
        if max_length == 0:
            return 1.0
        return 1 - self.distance(str1, str2) / max_length

    def clear(self):
        """런 시작 시 캐시 초기화"""
        self._memo.clear()
