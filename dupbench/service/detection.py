"""
중복 탐지 실행 오케스트레이션

run_detection()은 입력을 즉시 검증한 뒤 (실패 시 InputError, 워커 시작 전),
전략별 워커를 동시에 띄우고 진행률 이벤트를 하나의 비동기 스트림으로 합친다.
스트림은 항상 complete 또는 error 이벤트 하나로 끝난다.
"""
import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncIterator, List, Optional, Union

from dupbench.config.env_config import ProjectConfig, get_config
from dupbench.data.data_dedup import validate_records, validate_threshold
from dupbench.domain.data_enum import EventType, Strategy
from dupbench.domain.models import ProgressEvent
from dupbench.service.status import WorkerStatusStore, status_store
from dupbench.service.worker import DetectionWorker
from dupbench.utils.exception import AbnormalTermination, BaseDetectionException, InputError
from dupbench.utils.log import logger

_UNSET = object()

DISPLAY_NAMES = {
    Strategy.MINHASH: "MinHash",
    Strategy.LEVENSHTEIN: "Levenshtein",
}


def detector_options(config: ProjectConfig) -> dict:
    """설정값 → 비교기 옵션"""
    return {
        "num_hash_functions": config.NUM_HASH_FUNCTIONS,
        "shingle_size": config.SHINGLE_SIZE,
        "result_limit": config.RESULT_LIMIT,
        "max_cache_size": config.LEVENSHTEIN_CACHE_SIZE,
    }


def encode_event(event: dict) -> str:
    """Server-Sent-Events 프레임 ("data: <json>\\n\\n")"""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


def error_event(error: Union[str, Exception]) -> dict:
    """error 이벤트 (code로 타임아웃/계산 오류 구분)"""
    if isinstance(error, BaseDetectionException):
        return {"type": EventType.ERROR.value, "error": error.error or str(error), "code": error.code.value}
    return {"type": EventType.ERROR.value, "error": str(error)}


def run_detection(records: Any, algorithm: Union[str, Strategy] = "both",
                  threshold: Optional[float] = None, timeout=_UNSET,
                  config: Optional[ProjectConfig] = None,
                  options: Optional[dict] = None,
                  store: Optional[WorkerStatusStore] = None) -> AsyncIterator[dict]:
    """
    중복 탐지 실행

    Args:
        records: 필드명 → 스칼라 값 매핑의 목록
        algorithm: "both", "minhash", "levenshtein" 또는 Strategy
        threshold: 유사도 임계값 (None이면 전략별 기본값)
        timeout: 워커별 데드라인(초), None이면 무제한, 생략 시 설정값
        config: 설정 (생략 시 get_config())
        options: 비교기 옵션 override (테스트용 rng 등)
        store: 워커 상태 저장소 (생략 시 전역 저장소)

    Returns:
        진행률 이벤트 후 complete/error 이벤트 하나로 끝나는 비동기 이터레이터

    Raises:
        InputError: 입력이 잘못된 경우 (스트림 생성 전)
    """
    config = config or get_config()
    records = validate_records(records)
    threshold = validate_threshold(threshold)
    try:
        strategies = Strategy.parse(algorithm)
    except ValueError as e:
        raise InputError(error=f"Unknown algorithm: {algorithm!r}") from e

    if len(records) > config.MAX_RECORDS:
        raise InputError(
            error=f"Dataset too large: {len(records)} records (limit {config.MAX_RECORDS})"
        )

    merged_options = {**detector_options(config), **(options or {})}
    workers = [
        DetectionWorker(
            strategy,
            records,
            threshold,
            timeout=config.WORKER_TIMEOUT_SECONDS if timeout is _UNSET else timeout,
            options=merged_options,
            start_method=config.WORKER_START_METHOD,
        )
        for strategy in strategies
    ]
    logger.info(
        f"Starting detection: records={len(records)}, "
        f"algorithms={[s.value for s in strategies]}, threshold={threshold}"
    )
    return _stream(workers, store or status_store)


async def _pump(worker: DetectionWorker, channel: asyncio.Queue):
    """워커 메시지를 합류 큐로 전달 (예외는 error 메시지로 변환)"""
    try:
        async for message in worker.events():
            await channel.put((worker.strategy, message))
    except BaseDetectionException as e:
        await channel.put((worker.strategy, error_event(e)))
    except asyncio.CancelledError:
        raise
    except Exception as e:
        fault = AbnormalTermination(error=f"{worker.strategy.value} worker failed: {e}")
        await channel.put((worker.strategy, error_event(fault)))


async def _stream(workers: List[DetectionWorker], store: WorkerStatusStore) -> AsyncIterator[dict]:
    channel: asyncio.Queue = asyncio.Queue()
    for worker in workers:
        yield ProgressEvent(
            worker.strategy.value, 0, f"Starting {DISPLAY_NAMES[worker.strategy]} processing..."
        ).to_dict()

    tasks = [asyncio.create_task(_pump(worker, channel)) for worker in workers]
    results = {}
    try:
        pending = len(tasks)
        while pending:
            strategy, message = await channel.get()
            kind = message.get("type")

            if kind == EventType.RESULT.value:
                results[strategy.value] = message["result"].to_dict()
                store.mark_available(strategy.value)
                pending -= 1
            elif kind == EventType.ERROR.value:
                # 부분 결과 없이 중단
                logger.error(f"[{strategy.value}] detection failed: {message['error']}")
                store.mark_unavailable(strategy.value, message["error"])
                yield message
                return
            else:
                yield message

        yield {
            "type": EventType.COMPLETE.value,
            "results": results,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
