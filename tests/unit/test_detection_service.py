"""run_detection 스트림 / 상태 저장소 단위 테스트 (워커는 가짜 구현)"""
import json
from unittest.mock import patch

import pytest

from dupbench.config.env_config import ProjectConfig
from dupbench.domain.models import ProcessingResult
from dupbench.service.detection import encode_event, error_event, run_detection
from dupbench.service.status import WorkerStatusStore, get_health
from dupbench.utils.exception import InputError, TimeoutFault

RECORDS = [{"text": "hello world"}, {"text": "helllo world"}]


class FakeWorker:
    """진행률 두 번 후 결과를 내보내는 워커"""

    created = []

    def __init__(self, strategy, records, threshold=None, timeout=None, options=None, start_method=None):
        self.strategy = strategy
        self.records = records
        self.threshold = threshold
        self.timeout = timeout
        self.options = options
        FakeWorker.created.append(self)

    async def events(self):
        name = self.strategy.value
        yield {"algorithm": name, "progress": 0, "status": "init"}
        yield {"algorithm": name, "progress": 100, "status": "done"}
        yield {
            "type": "result",
            "algorithm": name,
            "result": ProcessingResult(name, 0.8, len(self.records), 0, [], 1),
        }


class TimeoutWorker(FakeWorker):
    async def events(self):
        yield {"algorithm": self.strategy.value, "progress": 0, "status": "init"}
        raise TimeoutFault(error=f"Worker timeout ({self.strategy.value})")


class CrashingWorker(FakeWorker):
    async def events(self):
        raise RuntimeError("pipe broken")
        yield  # pragma: no cover


@pytest.fixture
def config():
    return ProjectConfig(MAX_RECORDS=5, WORKER_TIMEOUT_SECONDS=10)


@pytest.fixture
def store():
    return WorkerStatusStore()


async def _collect(stream):
    return [event async for event in stream]


class TestRunDetectionValidation:
    """워커 시작 전 입력 검증"""

    @pytest.mark.parametrize("records", ["not a list", None, [1, 2]])
    def test_invalid_records_raise_immediately(self, config, records):
        """잘못된 레코드는 스트림 생성 전 InputError"""
        with pytest.raises(InputError):
            run_detection(records, config=config)

    def test_unknown_algorithm(self, config):
        """알 수 없는 알고리즘은 InputError"""
        with pytest.raises(InputError, match="Unknown algorithm"):
            run_detection(RECORDS, "simhash", config=config)

    def test_dataset_cap(self, config):
        """레코드 상한 초과 시 InputError"""
        with pytest.raises(InputError, match="Dataset too large"):
            run_detection([{"a": i} for i in range(6)], config=config)

    def test_invalid_threshold(self, config):
        """범위 밖 임계값은 InputError"""
        with pytest.raises(InputError):
            run_detection(RECORDS, threshold=1.2, config=config)


class TestRunDetectionStream:
    """진행률 합류 및 종료 이벤트 테스트"""

    @pytest.mark.asyncio
    async def test_both_algorithms_complete(self, config, store):
        """두 알고리즘 진행률 합류 후 complete 하나로 종료"""
        FakeWorker.created = []
        with patch("dupbench.service.detection.DetectionWorker", FakeWorker):
            events = await _collect(run_detection(RECORDS, "both", config=config, store=store))

        assert events[0]["status"] == "Starting MinHash processing..."
        assert events[1]["status"] == "Starting Levenshtein processing..."

        final = events[-1]
        assert final["type"] == "complete"
        assert set(final["results"]) == {"minhash", "levenshtein"}
        assert final["results"]["minhash"]["totalItems"] == 2
        assert "timestamp" in final
        assert all("type" not in e for e in events[:-1])

        for name in ("minhash", "levenshtein"):
            progress = [e["progress"] for e in events if e.get("algorithm") == name]
            assert progress == sorted(progress)
            assert progress[-1] == 100
            assert store.snapshot()[name]["available"] is True

    @pytest.mark.asyncio
    async def test_worker_receives_config(self, config, store):
        """설정값과 options override가 워커에 전달"""
        FakeWorker.created = []
        with patch("dupbench.service.detection.DetectionWorker", FakeWorker):
            await _collect(run_detection(
                RECORDS, "levenshtein", threshold=0.9, config=config, store=store,
                options={"result_limit": 3},
            ))

        worker = FakeWorker.created[0]
        assert worker.threshold == 0.9
        assert worker.timeout == 10
        assert worker.options["result_limit"] == 3
        assert worker.options["num_hash_functions"] == config.NUM_HASH_FUNCTIONS

    @pytest.mark.asyncio
    async def test_explicit_timeout_none(self, config, store):
        """timeout=None이면 데드라인 없음"""
        FakeWorker.created = []
        with patch("dupbench.service.detection.DetectionWorker", FakeWorker):
            await _collect(run_detection(RECORDS, "minhash", timeout=None, config=config, store=store))
        assert FakeWorker.created[0].timeout is None

    @pytest.mark.asyncio
    async def test_timeout_becomes_error_event(self, config, store):
        """타임아웃은 code가 다른 error 이벤트, 부분 결과 없음"""
        with patch("dupbench.service.detection.DetectionWorker", TimeoutWorker):
            events = await _collect(run_detection(RECORDS, "minhash", config=config, store=store))

        final = events[-1]
        assert final["type"] == "error"
        assert final["code"] == "TIMEOUT_FAULT"
        assert not any(e.get("type") == "complete" for e in events)
        assert store.snapshot()["minhash"]["available"] is False

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_abnormal_termination(self, config, store):
        """예상 못한 워커 예외는 ABNORMAL_TERMINATION"""
        with patch("dupbench.service.detection.DetectionWorker", CrashingWorker):
            events = await _collect(run_detection(RECORDS, "levenshtein", config=config, store=store))

        assert events[-1]["type"] == "error"
        assert events[-1]["code"] == "ABNORMAL_TERMINATION"
        assert "pipe broken" in events[-1]["error"]


class TestEventHelpers:
    """SSE 인코딩 / error 이벤트 테스트"""

    def test_encode_event(self):
        """SSE data 프레임 형식"""
        frame = encode_event({"algorithm": "minhash", "progress": 40, "status": "Comparing"})
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):]) == {"algorithm": "minhash", "progress": 40, "status": "Comparing"}

    def test_error_event_plain_exception(self):
        """일반 예외는 code 없이 메시지만"""
        assert error_event(ValueError("bad")) == {"type": "error", "error": "bad"}

    def test_error_event_detection_exception(self):
        """탐지 예외는 code 포함"""
        event = error_event(TimeoutFault(error="too slow"))
        assert event == {"type": "error", "error": "too slow", "code": "TIMEOUT_FAULT"}


class TestWorkerStatusStore:
    """워커 상태 저장소 / 헬스체크 테스트"""

    def test_initial_state(self, store):
        """처음에는 모든 워커 사용 가능"""
        snapshot = store.snapshot()
        assert set(snapshot) == {"minhash", "levenshtein"}
        assert all(s["available"] for s in snapshot.values())

    def test_mark_unavailable_then_available(self, store):
        """실패/복구 상태 갱신"""
        store.mark_unavailable("minhash", "crashed")
        assert store.snapshot()["minhash"] == {
            "available": False, "lastCheck": store.snapshot()["minhash"]["lastCheck"], "lastError": "crashed"
        }
        store.mark_available("minhash")
        assert store.snapshot()["minhash"]["available"] is True
        assert store.snapshot()["minhash"]["lastError"] is None

    def test_get_health(self, store):
        """헬스체크 응답 필드"""
        health = get_health(store)
        assert health["status"] == "healthy"
        assert set(health["workers"]) == {"minhash", "levenshtein"}
        assert health["uptime"] >= 0
        assert "timestamp" in health
