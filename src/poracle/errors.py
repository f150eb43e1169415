from typing import Optional


class PoracleError(Exception):
    pass


class ExhaustedGuessesError(PoracleError):
    """No byte in the guess ordering produced confirmed valid padding."""

    def __init__(self, position: int, block_index: Optional[int] = None):
        self.position = position
        self.block_index = block_index
        super().__init__(self._message())

    def _message(self) -> str:
        where = f"byte {self.position}"
        if self.block_index is not None:
            where = f"block {self.block_index}, {where}"
        return f"Couldn't find a valid encoding for {where}; is the character set exhaustive and the oracle reliable?"

    def at_block(self, block_index: int) -> "ExhaustedGuessesError":
        self.block_index = block_index
        self.args = (self._message(),)
        return self


class MalformedLengthError(PoracleError):
    """Ciphertext plus IV is not a multiple of the block size (strict mode only)."""


class BadPaddingError(PoracleError):
    """The recovered plaintext does not end in consistent PKCS#7 padding."""


class OracleError(PoracleError):
    """The oracle could not answer (transport failure, broken plugin)."""


class AttackCancelledError(PoracleError):
    """The caller asked the attack to stop before it finished."""

    def __init__(self, message: str = "Attack cancelled before all blocks were recovered"):
        super().__init__(message)
