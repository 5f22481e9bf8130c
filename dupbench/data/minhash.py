"""
MinHash 시그니처 생성 및 Jaccard 유사도 추정

- HashFamily: 런 단위로 한 번 생성되는 h(x) = (a*x + b) mod P 함수 묶음
- SignatureBuilder: shingle 집합 → 고정 길이 최솟값 벡터
- jaccard_similarity: 두 시그니처에서 값이 일치하는 위치의 비율

서로 다른 HashFamily로 만든 시그니처끼리는 비교할 수 없다.
"""
import random
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

import numpy as np

from dupbench.config.data_config import DetectionConfig
from dupbench.utils.exception import ComputationFault

P = DetectionConfig.MERSENNE_PRIME


def base_hash(text: str) -> int:
    """32비트 다항식 롤링 해시 (h*31 + c, signed 32bit로 감싼 뒤 절댓값)"""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


@dataclass(frozen=True)
class HashFunction:
    a: int
    b: int

    def __call__(self, x: int) -> int:
        return (self.a * x + self.b) % P


@dataclass(frozen=True)
class HashFamily:
    """런 전체에서 공유되는 불변 해시 함수 목록"""
    functions: Tuple[HashFunction, ...]
    _a: np.ndarray = field(init=False, repr=False, compare=False)
    _b: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.functions:
            raise ValueError("HashFamily requires at least one hash function")
        object.__setattr__(self, "_a", np.array([f.a for f in self.functions], dtype=np.int64))
        object.__setattr__(self, "_b", np.array([f.b for f in self.functions], dtype=np.int64))

    @classmethod
    def generate(cls, size: int = DetectionConfig.NUM_HASH_FUNCTIONS,
                 rng: Optional[random.Random] = None) -> "HashFamily":
        """a ∈ [1, 10^6], b ∈ [0, 10^6) 를 size개 생성"""
        rng = rng if rng is not None else random.Random()
        functions = tuple(
            HashFunction(
                a=rng.randint(1, DetectionConfig.HASH_A_MAX),
                b=rng.randrange(DetectionConfig.HASH_B_MAX),
            )
            for _ in range(size)
        )
        return cls(functions)

    def __len__(self) -> int:
        return len(self.functions)

    @property
    def coefficients(self) -> Tuple[np.ndarray, np.ndarray]:
        return self._a, self._b


class SignatureBuilder:
    """shingle 집합으로부터 MinHash 시그니처 생성"""

    def __init__(self, hash_family: HashFamily):
        self.hash_family = hash_family

    def build(self, shingles: Iterable[str]) -> np.ndarray:
        """
        각 해시 함수별 최솟값 벡터를 반환

        빈 shingle 집합은 모든 위치가 SIGNATURE_SENTINEL인 시그니처가 되며,
        이런 시그니처끼리는 위치별 비교 결과 유사도 1.0으로 계산된다.
        """
        shingles = list(shingles)
        if not shingles:
            return np.full(len(self.hash_family), DetectionConfig.SIGNATURE_SENTINEL, dtype=np.int64)

        base = np.fromiter((base_hash(s) for s in shingles), dtype=np.int64, count=len(shingles))
        a, b = self.hash_family.coefficients
        # (num_hash, num_shingles) 행렬, a*x < 2^51 이라 int64 범위 안
        values = (a[:, None] * base[None, :] + b[:, None]) % P
        return values.min(axis=1)


def jaccard_similarity(sig1: np.ndarray, sig2: np.ndarray) -> float:
    """일치하는 위치 수 / 시그니처 길이"""
    if len(sig1) != len(sig2) or len(sig1) == 0:
        raise ComputationFault(
            error=f"Signature length mismatch: {len(sig1)} vs {len(sig2)}"
        )
    return int(np.count_nonzero(sig1 == sig2)) / len(sig1)


def jaccard_similarities(signature: np.ndarray, others: np.ndarray) -> np.ndarray:
    """시그니처 하나를 (m, n) 행렬의 각 행과 한 번에 비교"""
    if others.ndim != 2 or others.shape[1] != len(signature):
        raise ComputationFault(
            error=f"Signature matrix shape {others.shape} does not match length {len(signature)}"
        )
    return np.count_nonzero(others == signature, axis=1) / len(signature)
