# saenggibu/utils/ids.py
import threading
import time


class TimestampIdGenerator:
    """
    밀리초 타임스탬프 기반의 단조 증가 ID 생성기.
    같은 밀리초 안에서 여러 번 호출되면 직전 값에 1을 더해 충돌을 피합니다.
    """

    def __init__(self, clock=None):
        self._clock = clock or (lambda: time.time_ns() // 1_000_000)
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            candidate = int(self._clock())
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


# 프로세스 전역에서 공유하는 기본 생성기
generate_id = TimestampIdGenerator()
