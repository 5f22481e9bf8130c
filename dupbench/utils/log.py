import logging
import sys
import functools
from datetime import datetime

# 로거 설정
logger = logging.getLogger('dupbench')
logger.setLevel(logging.DEBUG) # 기본 로그레벨, configure_logging()으로 변경
logger.propagate = False # 중복로그 방지

# 핸들러가 없는 경우에만 추가
if not logger.hasHandlers():
    handler = logging.StreamHandler(sys.stdout) # 콘솔에서 로그 출력
    handler.setLevel(logging.DEBUG)

    # 로거이름 %(name)s, 로그 시간 %(asctime)s, 로그 레벨 %(levelname)s
    # 로그가 찍힌 모듈 %(module)s, 로그 찍은 함수 %(funcName)s
    formatter = logging.Formatter(
        " %(name)s::%(asctime)s::%(levelname)s::[%(module)s.%(funcName)s]::\n%(message)s"
        , datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_logging(level: str = "INFO"):
    '''설정값(LOG_LEVEL)에 맞춰 로그레벨 변경'''
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        logger.warning(f"Unknown log level '{level}', falling back to INFO")
        resolved = logging.INFO
    logger.setLevel(resolved)
    for h in logger.handlers:
        h.setLevel(resolved)


def _short(value, limit: int = 200) -> str:
    '''레코드 목록 같은 큰 인자가 로그를 덮지 않도록 자르기'''
    text = repr(value)
    return text if len(text) <= limit else f"{text[:limit]}...<{len(text)} chars>"

# 데코레이터 패턴 적용
def decorator_log(level=logging.DEBUG):
    '''데코레이터 패턴 적용'''
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger.log(level, f"CALL {func.__name__}() args={_short(args)}, kwargs={_short(kwargs)}")
            try:
                result = func(*args, **kwargs)
                logger.log(level, f"RETURN {func.__name__} -> {_short(result)}")
                return result
            except Exception as e:
                logger.log(level, f"EXCEPTION {func.__name__} -> {e}")
                raise e
        return wrapper
    return decorator

# 성능 측정 데코레이터
def log_performance(func):
    """함수 실행 시간 측정 데코레이터"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = datetime.now()
        try:
            result = func(*args, **kwargs)
            end_time = datetime.now()
            execution_time = (end_time - start_time).total_seconds()
            logger.info(f"PERFORMANCE {func.__name__} executed in {execution_time:.4f}s")
            return result
        except Exception as e:
            end_time = datetime.now()
            execution_time = (end_time - start_time).total_seconds()
            logger.error(f"PERFORMANCE {func.__name__} failed after {execution_time:.4f}s")
            raise
    return wrapper

# 비동기 성능 측정 데코레이터
def async_log_performance(func):
    """비동기 함수 실행 시간 측정 데코레이터"""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start_time = datetime.now()
        try:
            result = await func(*args, **kwargs)
            end_time = datetime.now()
            execution_time = (end_time - start_time).total_seconds()
            logger.info(f"PERFORMANCE {func.__name__} executed in {execution_time:.4f}s")
            return result
        except Exception as e:
            end_time = datetime.now()
            execution_time = (end_time - start_time).total_seconds()
            logger.error(f"PERFORMANCE {func.__name__} failed after {execution_time:.4f}s")
            raise
    return wrapper
