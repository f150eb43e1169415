from abc import ABC, abstractmethod
from typing import Callable, Optional

from poracle.ordering import HintLike

SubmitGuessFn = Callable[[bytes, bytes], bool]


class Oracle(ABC):
    """A padding oracle for one CBC ciphertext.

    Implementations answer a single question: does this buffer decrypt, under
    the hidden key, to data with valid padding? They must return a bool and
    raise OracleError (never return False) when they cannot find out.
    """

    name: str = "oracle"

    @property
    @abstractmethod
    def block_size(self) -> int:
        """Cipher block size in bytes, constant for the whole attack."""

    @abstractmethod
    def attempt_decrypt(self, buffer: bytes) -> bool:
        """Report padding validity for `buffer` (crafted previous block + attacked block)."""

    def character_set(self) -> Optional[HintLike]:
        """Likely plaintext bytes, most probable first. None means no hint."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} block_size={self.block_size}>"


class FunctionOracle(Oracle):
    """Adapt a plain `submit_guess(prev_block, target_block) -> bool` callable."""

    def __init__(
        self,
        submit_guess: SubmitGuessFn,
        block_size: int = 16,
        character_set: Optional[HintLike] = None,
        name: Optional[str] = None,
    ):
        if block_size < 1:
            raise ValueError("Block size must be positive")
        self._submit_guess = submit_guess
        self._block_size = block_size
        self._character_set = character_set
        self.name = name or getattr(submit_guess, "__name__", "function")

    @property
    def block_size(self) -> int:
        return self._block_size

    def attempt_decrypt(self, buffer: bytes) -> bool:
        prev_block, target_block = buffer[:-self._block_size], buffer[-self._block_size:]
        return bool(self._submit_guess(prev_block, target_block))

    def character_set(self) -> Optional[HintLike]:
        return self._character_set
