"""
알고리즘별 격리 워커

각 전략은 별도 프로세스에서 실행되고, 진행률/결과는 multiprocessing.Queue
한 방향으로만 전달된다. 데드라인이 지나면 프로세스를 강제 종료한다.
"""
import asyncio
import multiprocessing
import queue as queue_module
from typing import AsyncIterator, Optional

from dupbench.config.data_config import DetectionConfig
from dupbench.data.data_dedup import detect_duplicates
from dupbench.domain.data_enum import EventType, Strategy
from dupbench.domain.models import ProcessingResult, ProgressEvent
from dupbench.utils.exception import AbnormalTermination, BaseDetectionException, ComputationFault, TimeoutFault
from dupbench.utils.log import logger


def _worker_main(strategy_value: str, records: list, threshold: Optional[float],
                 options: dict, channel) -> None:
    """워커 프로세스 진입점 (모든 예외를 error 메시지로 변환)"""
    def on_progress(progress: int, status: str):
        channel.put({"type": EventType.PROGRESS.value, "progress": progress, "status": status})

    try:
        result = detect_duplicates(records, Strategy(strategy_value), threshold, on_progress, options)
        channel.put({"type": EventType.RESULT.value, "result": result.to_dict()})
    except BaseDetectionException as e:
        channel.put({"type": EventType.ERROR.value, "error": e.error or str(e)})
    except Exception as e:
        channel.put({"type": EventType.ERROR.value, "error": str(e)})


def _poll(channel, timeout: float) -> Optional[dict]:
    try:
        return channel.get(timeout=timeout)
    except (queue_module.Empty, EOFError, OSError, ValueError):
        return None


class DetectionWorker:
    """전략 하나를 자식 프로세스에서 실행하고 메시지를 비동기로 중계"""

    def __init__(self, strategy: Strategy, records: list, threshold: Optional[float] = None,
                 timeout: Optional[float] = DetectionConfig.WORKER_TIMEOUT_SECONDS,
                 options: Optional[dict] = None,
                 start_method: str = DetectionConfig.WORKER_START_METHOD,
                 poll_interval: float = DetectionConfig.QUEUE_POLL_SECONDS):
        self.strategy = strategy
        self.records = records
        self.threshold = threshold
        self.timeout = timeout
        self.options = options or {}
        self.start_method = start_method
        self.poll_interval = poll_interval
        self.process = None

    async def events(self) -> AsyncIterator[dict]:
        """
        ProgressEvent 딕셔너리들을 내보내고, 마지막에 result 메시지 하나로 끝난다.

        워커 오류는 ComputationFault, 데드라인 초과는 TimeoutFault,
        종료 이벤트 없이 프로세스가 끝나면 AbnormalTermination을 올린다.
        """
        context = multiprocessing.get_context(self.start_method)
        channel = context.Queue()
        self.process = context.Process(
            target=_worker_main,
            args=(self.strategy.value, self.records, self.threshold, self.options, channel),
            name=f"dupbench-{self.strategy.value}",
            daemon=True,
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout if self.timeout is not None else None
        self.process.start()
        logger.info(f"[{self.strategy.value}] worker started (pid={self.process.pid})")

        try:
            while True:
                wait = self.poll_interval
                if deadline is not None:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        raise TimeoutFault(error=f"Worker timeout after {self.timeout}s ({self.strategy.value})")
                    wait = min(wait, remaining)

                message = await asyncio.to_thread(_poll, channel, wait)
                if message is None:
                    if self.process.is_alive():
                        continue
                    # 종료 직전에 넣은 메시지가 남아 있을 수 있음
                    message = await asyncio.to_thread(_poll, channel, self.poll_interval)
                    if message is None:
                        raise AbnormalTermination(
                            error=f"Worker stopped with exit code {self.process.exitcode} ({self.strategy.value})"
                        )

                kind = message.get("type")
                if kind == EventType.PROGRESS.value:
                    yield ProgressEvent(self.strategy.value, message["progress"], message["status"]).to_dict()
                elif kind == EventType.RESULT.value:
                    # 정상 종료 대기 후 결과 전달
                    await asyncio.to_thread(self.process.join, self.poll_interval * 10)
                    yield {
                        "type": EventType.RESULT.value,
                        "algorithm": self.strategy.value,
                        "result": ProcessingResult.from_dict(message["result"]),
                    }
                    return
                elif kind == EventType.ERROR.value:
                    raise ComputationFault(error=message.get("error"))
                else:
                    raise AbnormalTermination(error=f"Unexpected worker message: {message!r}")
        finally:
            # join이 이벤트 루프를 막지 않도록 스레드에서 정리
            await asyncio.to_thread(self.terminate)
            channel.close()

    def terminate(self):
        """살아 있는 워커 프로세스 강제 종료"""
        if self.process is None:
            return
        if self.process.is_alive():
            logger.warning(f"[{self.strategy.value}] terminating worker (pid={self.process.pid})")
            self.process.terminate()
            self.process.join(timeout=1)
            if self.process.is_alive():
                self.process.kill()
        self.process.join(timeout=1)
