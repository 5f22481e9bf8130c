"""
CSV 중복 탐지 파이프라인 (CLI)
"""
import asyncio
from pathlib import Path
from typing import Dict, Optional

from tqdm import tqdm

from dupbench.config.data_config import DetectionConfig
from dupbench.config.env_config import ProjectConfig, get_config
from dupbench.data.aggregator import calculate_efficiency
from dupbench.data.data_io import DataFrameProcessor
from dupbench.domain.data_enum import EventType
from dupbench.domain.models import ProcessingResult
from dupbench.service.detection import run_detection
from dupbench.utils.exception import exception_from_event
from dupbench.utils.log import async_log_performance, logger, log_performance

_UNSET = object()


class DetectionPipeline:
    """CSV 로드 → 탐지 실행 → 결과 저장을 관리하는 클래스"""

    def __init__(self, input_csv_path: str, output_dir: str = DetectionConfig.DEFAULT_OUTPUT_DIR,
                 config: Optional[ProjectConfig] = None, show_progress: bool = True):
        self.input_csv_path = Path(input_csv_path)
        self.output_dir = Path(output_dir)
        self.config = config or get_config()
        self.show_progress = show_progress

    @log_performance
    def run(self, algorithm: str = "both", threshold: Optional[float] = None,
            timeout=_UNSET, save: bool = True) -> Dict[str, ProcessingResult]:
        """
        전체 파이프라인 실행

        Args:
            algorithm: both / minhash / levenshtein
            threshold: 유사도 임계값 (None이면 알고리즘별 기본값)
            timeout: 워커 데드라인(초), 생략 시 설정값
            save: 결과 parquet/JSON 저장 여부

        Returns:
            알고리즘 이름 → ProcessingResult
        """
        logger.info("Starting duplicate detection pipeline")
        records = DataFrameProcessor.load_records(str(self.input_csv_path), self.config.MAX_RECORDS)

        kwargs = {} if timeout is _UNSET else {"timeout": timeout}
        stream = run_detection(records, algorithm, threshold, config=self.config, **kwargs)
        final = asyncio.run(self._consume(stream))

        if final.get("type") != EventType.COMPLETE.value:
            raise exception_from_event(final)

        results = {
            name: ProcessingResult.from_dict(data) for name, data in final["results"].items()
        }
        self.log_summary(results)
        if save:
            DataFrameProcessor.save_results(results, str(self.output_dir))
        return results

    @async_log_performance
    async def _consume(self, stream) -> dict:
        """진행률 이벤트는 tqdm으로 표시하고 마지막 이벤트 반환"""
        bars = {}
        final = {}
        try:
            async for event in stream:
                if "type" in event:
                    final = event
                    continue
                algorithm = event["algorithm"]
                logger.debug(f"[{algorithm}] {event['progress']}% {event['status']}")
                if not self.show_progress:
                    continue
                if algorithm not in bars:
                    bars[algorithm] = tqdm(total=100, desc=algorithm, unit="%", position=len(bars))
                bar = bars[algorithm]
                bar.update(event["progress"] - bar.n)
                bar.set_postfix_str(event["status"])
        finally:
            for bar in bars.values():
                bar.close()
        return final

    @staticmethod
    def log_summary(results: Dict[str, ProcessingResult]):
        for name, result in results.items():
            rate = result.duplicates_found / result.total_items * 100 if result.total_items else 0
            cache = f"\n    Cache size: {result.cache_size:,}" if result.cache_size is not None else ""
            logger.info(f"""
{result.algorithm_name} Summary:
    Total items: {result.total_items:,}
    Comparisons: {result.total_comparisons:,}
    Duplicates found: {result.duplicates_found:,} ({rate:.1f}%)
    Execution time: {result.execution_time_ms:.1f}ms
    Efficiency score: {calculate_efficiency(result)}/100{cache}
            """.strip())


def main(argv=None):
    """CLI 실행 함수"""
    import argparse

    parser = argparse.ArgumentParser(
        description="CSV 레코드 중복 탐지 (MinHash / Levenshtein)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument("--input", required=True, help="입력 CSV 파일 경로")
    parser.add_argument("--out_dir", default=DetectionConfig.DEFAULT_OUTPUT_DIR, help="출력 디렉토리")
    parser.add_argument("--algorithm", default="both", choices=["both", "minhash", "levenshtein"],
                        help="실행할 알고리즘")
    parser.add_argument("--threshold", type=float, help="유사도 임계값 (0-1)")
    parser.add_argument("--timeout", type=float, help="워커 데드라인(초), 0이면 무제한")
    parser.add_argument("--no_save", action="store_true", help="결과 파일 저장 안 함")
    parser.add_argument("--quiet", action="store_true", help="진행률 표시 안 함")

    args = parser.parse_args(argv)

    # 파라미터 검증
    if args.threshold is not None and not 0 <= args.threshold <= 1:
        parser.error(f"threshold는 0-1 사이여야 합니다. (입력값: {args.threshold})")

    logger.info(f"""
Starting detection:
    Input: {args.input}
    Algorithm: {args.algorithm}
    Threshold: {args.threshold if args.threshold is not None else 'default'}
    """.strip())

    kwargs = {}
    if args.timeout is not None:
        kwargs["timeout"] = args.timeout or None

    pipeline = DetectionPipeline(args.input, args.out_dir, show_progress=not args.quiet)
    try:
        pipeline.run(args.algorithm, args.threshold, save=not args.no_save, **kwargs)
        logger.info("Detection completed successfully")
        return 0
    except Exception as e:
        logger.error(f"Detection failed: {e}")
        return 1


if __name__ == "__main__":
    import sys
    sys.exit(main())
