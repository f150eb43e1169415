import threading
from dataclasses import dataclass
from typing import List, Tuple

from poracle.counter import GuessCounter
from poracle.state_queue import LatestValueQueue


@dataclass(frozen=True, slots=True)
class BlockProgress:
    """What is known about one plaintext block.

    Bytes before `byte_index` are still unknown; a fresh block has
    `byte_index == len(plaintext)`.
    """

    plaintext: bytes
    byte_index: int
    complete: bool = False

    @classmethod
    def empty(cls, block_size: int) -> "BlockProgress":
        return cls(plaintext=bytes(block_size), byte_index=block_size)

    @property
    def known_bytes(self) -> int:
        if self.complete:
            return len(self.plaintext)
        return len(self.plaintext) - self.byte_index


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Immutable view of the whole message, published after each recovered byte.

    `block_index` and `byte_index` name the byte that triggered the snapshot;
    `blocks[i]` is ciphertext block i + 1.
    """

    block_index: int
    byte_index: int
    block_size: int
    guesses: int
    blocks: Tuple[BlockProgress, ...]

    @property
    def block_count(self) -> int:
        return len(self.blocks)

    @property
    def current(self) -> BlockProgress:
        return self.blocks[self.block_index - 1]

    @property
    def complete(self) -> bool:
        return all(block.complete for block in self.blocks)


class ProgressBoard:
    """Per-block progress shared by every solver thread.

    Each update replaces one block and publishes a snapshot of all of them,
    so whatever the consumer reads last is the full picture.
    """

    def __init__(self, queue: LatestValueQueue[ProgressSnapshot], block_count: int, block_size: int,
                 counter: GuessCounter):
        self.queue = queue
        self.block_size = block_size
        self.counter = counter
        self._lock = threading.Lock()
        self._blocks: List[BlockProgress] = [BlockProgress.empty(block_size) for _ in range(block_count)]

    def update(self, block_index: int, byte_index: int, plaintext: bytes) -> ProgressSnapshot:
        with self._lock:
            self._blocks[block_index - 1] = BlockProgress(
                plaintext=bytes(plaintext),
                byte_index=byte_index,
                complete=byte_index == 0,
            )
            snapshot = ProgressSnapshot(
                block_index=block_index,
                byte_index=byte_index,
                block_size=self.block_size,
                guesses=self.counter.value,
                blocks=tuple(self._blocks),
            )
            # Published under the lock so snapshots reach the queue in update order
            self.queue.publish(snapshot)
        return snapshot
