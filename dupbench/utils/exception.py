from enum import Enum

class DetectionErrorCode(Enum):
    """중복 탐지 에러 코드"""
    INPUT_ERROR = "INPUT_ERROR"
    COMPUTATION_FAULT = "COMPUTATION_FAULT"
    TIMEOUT_FAULT = "TIMEOUT_FAULT"
    ABNORMAL_TERMINATION = "ABNORMAL_TERMINATION"

class BaseDetectionException(Exception):
    """중복 탐지 공통 예외"""
    code: DetectionErrorCode = None

    def __init__(self, error: str = None, status_code: int = 500):
        self.error = error
        self.status_code = status_code
        super().__init__(f"[{self.code.value}] {error}" if error else f"[{self.code.value}]")


class InputError(BaseDetectionException):
    """입력 레코드 예외 (워커 시작 전 발생, 재시도 없음)"""
    code = DetectionErrorCode.INPUT_ERROR

    def __init__(self, error: str = None, status_code: int = 400):
        super().__init__(error, status_code=status_code)


class ComputationFault(BaseDetectionException):
    """정규화/해싱/비교 도중 발생한 예외"""
    code = DetectionErrorCode.COMPUTATION_FAULT

    def __init__(self, error: str = None, status_code: int = 500):
        super().__init__(error, status_code=status_code)


class TimeoutFault(BaseDetectionException):
    """호출자 데드라인 초과로 워커가 강제 종료된 경우"""
    code = DetectionErrorCode.TIMEOUT_FAULT

    def __init__(self, error: str = None, status_code: int = 504):
        super().__init__(error, status_code=status_code)


class AbnormalTermination(BaseDetectionException):
    """워커가 종료 이벤트 없이 끝난 경우"""
    code = DetectionErrorCode.ABNORMAL_TERMINATION

    def __init__(self, error: str = None, status_code: int = 500):
        super().__init__(error, status_code=status_code)


def exception_from_event(event: dict) -> BaseDetectionException:
    """error 이벤트의 code를 예외 클래스로 복원"""
    classes = {
        cls.code.value: cls
        for cls in (InputError, ComputationFault, TimeoutFault, AbnormalTermination)
    }
    cls = classes.get(event.get("code"), ComputationFault)
    return cls(error=event.get("error"))
