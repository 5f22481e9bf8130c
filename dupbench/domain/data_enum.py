from enum import Enum

# 탐지 알고리즘 enum
class Strategy(Enum):
    MINHASH = "minhash"
    LEVENSHTEIN = "levenshtein"

    @classmethod
    def parse(cls, value) -> list["Strategy"]:
        """'both' / 'minhash' / 'levenshtein' / Strategy → 실행할 전략 목록"""
        if isinstance(value, Strategy):
            return [value]
        name = str(value).strip().lower()
        if name == "both":
            return [cls.MINHASH, cls.LEVENSHTEIN]
        return [cls(name)]

# 비교기 상태 enum
class RunState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    EXTRACTING_FEATURES = "extracting_features"
    COMPARING = "comparing"
    COMPLETE = "complete"
    FAILED = "failed"

# 스트림 이벤트 종류
class EventType(Enum):
    PROGRESS = "progress"
    RESULT = "result"
    COMPLETE = "complete"
    ERROR = "error"
