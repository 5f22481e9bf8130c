"""해시 패밀리 / 시그니처 / Jaccard 추정 단위 테스트"""
import random
from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from dupbench.config.data_config import DetectionConfig
from dupbench.data.data_normalize import TextProcessor
from dupbench.data.minhash import (
    HashFamily,
    HashFunction,
    SignatureBuilder,
    base_hash,
    jaccard_similarities,
    jaccard_similarity,
)
from dupbench.utils.exception import ComputationFault


class TestBaseHash:
    """32비트 롤링 해시 테스트"""

    def test_known_values(self):
        """알려진 입력의 해시 값"""
        assert base_hash("") == 0
        assert base_hash("a") == 97
        assert base_hash("ab") == 97 * 31 + 98
        assert base_hash("hello") == 99162322

    def test_wraps_to_signed_32bit_and_takes_abs(self):
        """signed 32bit 최솟값으로 감싸지는 문자열은 2^31"""
        assert base_hash("polygenelubricants") == 2**31

    def test_deterministic(self):
        """같은 문자열은 같은 해시"""
        assert base_hash("near duplicate") == base_hash("near duplicate")


class TestHashFamily:
    """해시 패밀리 생성 테스트"""

    def test_generate_size_and_ranges(self):
        """계수 개수 및 범위"""
        family = HashFamily.generate(64, random.Random(42))

        assert len(family) == 64
        for f in family.functions:
            assert 1 <= f.a <= DetectionConfig.HASH_A_MAX
            assert 0 <= f.b < DetectionConfig.HASH_B_MAX

    def test_same_seed_same_family(self):
        """같은 시드는 같은 해시 패밀리"""
        assert HashFamily.generate(16, random.Random(7)) == HashFamily.generate(16, random.Random(7))

    def test_immutable(self):
        """해시 패밀리는 변경 불가"""
        family = HashFamily.generate(4, random.Random(1))
        with pytest.raises(FrozenInstanceError):
            family.functions = ()

    def test_empty_family_rejected(self):
        """빈 해시 패밀리는 생성 불가"""
        with pytest.raises(ValueError):
            HashFamily(())

    def test_hash_function_affine_map(self):
        """h(x) = (a*x + b) mod P"""
        f = HashFunction(a=3, b=5)
        assert f(10) == 35
        assert f(DetectionConfig.MERSENNE_PRIME) == 5


class TestSignatureBuilder:
    """MinHash 시그니처 생성 테스트"""

    def test_known_signature(self):
        """손으로 계산한 최솟값과 일치"""
        family = HashFamily((HashFunction(1, 0), HashFunction(2, 5)))
        signature = SignatureBuilder(family).build({"a", "ab"})

        assert signature.tolist() == [97, 199]

    def test_signature_length_matches_family(self):
        """시그니처 길이 = 해시 함수 개수"""
        family = HashFamily.generate(32, random.Random(0))
        signature = SignatureBuilder(family).build({"abc", "bcd"})

        assert len(signature) == 32
        assert (signature < DetectionConfig.MERSENNE_PRIME).all()

    def test_empty_shingles_signature_is_sentinel(self):
        """빈 shingle 집합은 모든 위치가 초기값"""
        family = HashFamily.generate(8, random.Random(0))
        signature = SignatureBuilder(family).build(set())

        assert signature.tolist() == [DetectionConfig.SIGNATURE_SENTINEL] * 8

    def test_same_shingles_same_signature(self):
        """같은 shingle 집합은 같은 시그니처"""
        builder = SignatureBuilder(HashFamily.generate(64, random.Random(3)))
        assert np.array_equal(builder.build({"foo", "oob"}), builder.build({"oob", "foo"}))


class TestJaccardSimilarity:
    """시그니처 일치율 테스트"""

    @pytest.fixture
    def processor(self):
        return TextProcessor()

    def test_identical_signature_is_one(self, processor):
        """같은 shingle 집합은 해시 패밀리와 무관하게 1.0"""
        shingles = processor.create_shingles("the quick brown fox")
        for seed in range(5):
            builder = SignatureBuilder(HashFamily.generate(64, random.Random(seed)))
            assert jaccard_similarity(builder.build(shingles), builder.build(shingles)) == 1.0

    def test_positional_match_ratio(self):
        """일치하는 위치의 비율"""
        assert jaccard_similarity(np.array([1, 2, 3, 4]), np.array([1, 0, 3, 0])) == 0.5

    def test_empty_signatures_degenerate(self):
        """빈 집합끼리는 위치별 비교로 1.0"""
        builder = SignatureBuilder(HashFamily.generate(8, random.Random(0)))
        assert jaccard_similarity(builder.build(set()), builder.build(set())) == 1.0

    def test_length_mismatch(self):
        """길이가 다른 시그니처는 ComputationFault"""
        with pytest.raises(ComputationFault):
            jaccard_similarity(np.array([1, 2]), np.array([1, 2, 3]))

    def test_row_comparison_matches_pairwise(self):
        """행 단위 비교 결과가 쌍별 비교와 동일"""
        rng = np.random.default_rng(0)
        matrix = rng.integers(0, 3, size=(6, 16))
        row = jaccard_similarities(matrix[0], matrix[1:])

        assert row.tolist() == [jaccard_similarity(matrix[0], m) for m in matrix[1:]]

    def test_row_comparison_shape_mismatch(self):
        """행렬 모양이 맞지 않으면 ComputationFault"""
        with pytest.raises(ComputationFault):
            jaccard_similarities(np.array([1, 2, 3]), np.zeros((2, 4), dtype=np.int64))

    def test_estimate_tracks_true_jaccard(self, processor):
        """유사한 문장은 높게, 다른 문장은 낮게 추정 (허용 오차)"""
        a = processor.create_shingles("the quick brown fox jumps over the lazy dog")
        b = processor.create_shingles("the quick brown fox jumped over the lazy dog")
        c = processor.create_shingles("totally different text")
        true_ab = len(a & b) / len(a | b)

        for seed in range(5):
            builder = SignatureBuilder(HashFamily.generate(128, random.Random(seed)))
            sa, sb, sc = builder.build(a), builder.build(b), builder.build(c)

            assert abs(jaccard_similarity(sa, sb) - true_ab) < 0.15
            assert jaccard_similarity(sa, sc) < 0.3
