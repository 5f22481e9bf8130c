import json
from pathlib import Path
from typing import Dict, List, Optional
import polars as pl
from dupbench.config.data_config import DetectionConfig
from dupbench.domain.models import ProcessingResult
from dupbench.utils.exception import InputError
from dupbench.utils.log import logger

class DataFrameProcessor:
    """CSV 입력 및 결과 DataFrame 처리를 담당하는 클래스"""

    @staticmethod
    def load_records(input_path: str, max_records: Optional[int] = DetectionConfig.MAX_RECORDS) -> List[Dict]:
        """CSV 로드 후 모든 셀이 비어있는 행을 제외하고 레코드 목록으로 변환"""
        path = Path(input_path)
        if not path.exists():
            raise InputError(error=f"Input file not found: {input_path}")
        if path.suffix.lower() != ".csv":
            raise InputError(error=f"Please select a CSV file: {input_path}")

        logger.info(f"Reading CSV from {input_path}")
        try:
            df = pl.read_csv(path, infer_schema_length=1000)
        except pl.exceptions.PolarsError as e:
            raise InputError(error=f"Error parsing CSV: {e}") from e

        if df.width == 0:
            return []

        # 모든 셀이 null 이거나 공백인 행 제거
        non_empty = pl.any_horizontal(
            [pl.col(c).cast(pl.Utf8).str.strip_chars().fill_null("") != "" for c in df.columns]
        )
        filtered = df.filter(non_empty)
        dropped = df.height - filtered.height
        if dropped > 0:
            logger.warning(f"Dropped {dropped} empty rows")

        logger.info(f"Total records loaded: {filtered.height:,}")
        if max_records is not None and filtered.height > max_records:
            raise InputError(
                error=f"Dataset too large: {filtered.height} records (limit {max_records})"
            )
        return filtered.to_dicts()

    @staticmethod
    def create_result_dataframe(result: ProcessingResult) -> pl.DataFrame:
        """중복 쌍 목록 → DataFrame (index_1, index_2, similarity, distance, text_1, text_2)"""
        schema = {
            "index_1": pl.UInt32,
            "index_2": pl.UInt32,
            "similarity": pl.Float64,
            "distance": pl.Int64,
            "text_1": pl.Utf8,
            "text_2": pl.Utf8,
        }
        rows = [
            {
                "index_1": dup.indices[0],
                "index_2": dup.indices[1],
                "similarity": dup.similarity,
                "distance": dup.distance,
                "text_1": " ".join("" if v is None else str(v) for v in dup.item1.values()),
                "text_2": " ".join("" if v is None else str(v) for v in dup.item2.values()),
            }
            for dup in result.duplicates
        ]
        if not rows:
            logger.info(f"No duplicates found for {result.algorithm_name}")
        return pl.DataFrame(rows, schema=schema)

    @staticmethod
    def save_results(results: Dict[str, ProcessingResult], output_dir: str) -> Dict[str, Path]:
        """알고리즘별 parquet + 요약 JSON 저장"""
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        logger.info(f"Saving results to {out}")

        written = {}
        for name, result in results.items():
            path = out / DetectionConfig.DUPLICATES_FILE.format(algorithm=name)
            DataFrameProcessor.create_result_dataframe(result).write_parquet(
                path, compression=DetectionConfig.COMPRESSION
            )
            written[name] = path
            logger.debug(f"{name} duplicates saved to {path}")

        summary_path = out / DetectionConfig.SUMMARY_FILE
        summary = {name: result.to_dict() for name, result in results.items()}
        summary_path.write_text(json.dumps(summary, ensure_ascii=False, indent=2, default=str), encoding="utf-8")
        written["summary"] = summary_path
        return written
