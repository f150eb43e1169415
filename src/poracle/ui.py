from typing import Optional

from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from poracle.state_queue import LatestValueQueue
from poracle.state_snapshot import BlockProgress, ProgressSnapshot


COLORS = {
    "unsolved": "dim",
    "current": "bold yellow on black",
    "solved": "spring_green2",
}


def block_to_string(block: BlockProgress, current: bool = False) -> str:
    """Hex dump of a block, unknown bytes as '??' and the latest byte highlighted."""
    hex_bytes = []
    for i, b in enumerate(block.plaintext):
        if i < block.byte_index:
            style, text = COLORS["unsolved"], "??"
        elif i == block.byte_index and current and not block.complete:
            style, text = COLORS["current"], f"{b:02x}"
        else:
            style, text = COLORS["solved"], f"{b:02x}"
        hex_bytes.append(f"[{style}]{text}[/{style}]")
    return " ".join(hex_bytes)


def printable(block: BlockProgress) -> str:
    known = block.plaintext[len(block.plaintext) - block.known_bytes:]
    text = "".join(chr(b) if 0x20 <= b < 0x7f else "." for b in known)
    return text.replace("[", "\\[")


def render(snapshot: Optional[ProgressSnapshot]):
    """Render the latest snapshot, one row per ciphertext block."""
    if snapshot is None:
        return Panel("Waiting for first update…", title="Padding Oracle", border_style="dim")

    ui_table = Table(title=f"Block {snapshot.block_index} / {snapshot.block_count}  |  "
                           f"Byte {snapshot.byte_index + 1}  |  {snapshot.guesses} guesses")
    ui_table.add_column("Block", justify="right")
    ui_table.add_column("Plaintext Pₙ (hex)")
    ui_table.add_column("Text")

    for block_index, block in enumerate(snapshot.blocks, start=1):
        current = block_index == snapshot.block_index
        ui_table.add_row(str(block_index), block_to_string(block, current), printable(block))
    return ui_table


def ui_loop(state_queue: LatestValueQueue[ProgressSnapshot]) -> Optional[ProgressSnapshot]:
    """Redraw until the queue is closed. Returns the last snapshot drawn."""
    latest = None
    with Live(render(None), refresh_per_second=30, screen=False) as live:
        while True:
            state = state_queue.get()
            if state is None:
                break
            latest = state
            live.update(render(latest))
    return latest
