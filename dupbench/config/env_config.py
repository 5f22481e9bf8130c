from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from dupbench.config.data_config import DetectionConfig
from dupbench.utils.log import logger, configure_logging

class ProjectConfig(BaseSettings):
    """프로젝트 환경변수 설정 (DUPBENCH_ 접두사, 모두 기본값 있음)"""
    # MinHash 설정
    NUM_HASH_FUNCTIONS: int = Field(default=DetectionConfig.NUM_HASH_FUNCTIONS, ge=1)
    SHINGLE_SIZE: int = Field(default=DetectionConfig.SHINGLE_SIZE, ge=1)

    # 결과 / 데이터셋 제한
    RESULT_LIMIT: int = Field(default=DetectionConfig.RESULT_LIMIT, ge=0)
    MAX_RECORDS: int = Field(default=DetectionConfig.MAX_RECORDS, ge=1)

    # Levenshtein 메모 캐시 상한 (None이면 무제한)
    LEVENSHTEIN_CACHE_SIZE: Optional[int] = None

    # 워커 설정
    WORKER_TIMEOUT_SECONDS: Optional[float] = DetectionConfig.WORKER_TIMEOUT_SECONDS
    WORKER_START_METHOD: str = DetectionConfig.WORKER_START_METHOD

    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_prefix="DUPBENCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

@lru_cache
def get_config():
    """환경설정 싱글톤 반환"""
    try:
        config = ProjectConfig()
        configure_logging(config.LOG_LEVEL)
        return config
    except Exception as e:
        logger.error(f"Failed to load environment variables: {e}")
        raise e
