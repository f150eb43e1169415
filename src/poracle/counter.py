import threading


class GuessCounter:
    """Thread-safe count of oracle queries. Diagnostics only."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __int__(self) -> int:
        return self.value

    def __repr__(self) -> str:
        return f"GuessCounter({self.value})"


# Process-wide default. Cumulative across decrypt() calls; reset it yourself
# or pass an explicit counter to decrypt() for per-call numbers.
guesses = GuessCounter()
