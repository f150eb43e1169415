import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import click

from poracle.counter import GuessCounter
from poracle.errors import PoracleError
from poracle.local_oracle import LocalOracle
from poracle.logs import configure_logging
from poracle.oracle import Oracle
from poracle.remote_oracle import RemoteOracle
from poracle.solver import decrypt
from poracle.state_queue import LatestValueQueue
from poracle.state_snapshot import ProgressSnapshot
from poracle.ui import ui_loop
from poracle.utils import CIPHERTEXT_FORMATS, CiphertextFormat, load_ciphertext, load_oracle_plugin


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug events (false positives, ...)")
@click.option("--json-logs", is_flag=True, help="Render log events as JSON")
def cli(verbose: bool, json_logs: bool):
    configure_logging(verbose=verbose, json=json_logs)


def solver(oracle: Oracle, ciphertext: bytes, iv: Optional[bytes] = None, *,
           workers: int = 1, strict: bool = False, show_ui: bool = True):
    """Run the attack, drawing progress in the terminal while it runs."""
    counter = GuessCounter()
    if not show_ui:
        return decrypt(oracle, ciphertext, iv, workers=workers, strict=strict, counter=counter), counter

    state_queue: LatestValueQueue[ProgressSnapshot] = LatestValueQueue()
    cancel = threading.Event()

    def run():
        try:
            return decrypt(oracle, ciphertext, iv, workers=workers, strict=strict,
                           counter=counter, progress=state_queue, cancel=cancel)
        finally:
            # Always close the queue so the UI can exit
            state_queue.close()

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(run)
        try:
            ui_loop(state_queue)
        except KeyboardInterrupt:
            cancel.set()
            state_queue.close()
            click.echo("Interrupted, stopping after the guess in flight...", err=True)
        return future.result(), counter


def report(plaintext: Optional[bytes], counter: GuessCounter) -> None:
    click.echo(f"Guesses: {counter.value}")
    if plaintext is None:
        raise click.ClickException("Recovered data has bad padding; the result can't be trusted")


@cli.command("decrypt")
@click.option("--ciphertext-path", "-c", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--ciphertext-format", "-f", type=click.Choice(CIPHERTEXT_FORMATS), default="b64")
@click.option("--iv", help="IV as hex. Defaults to all zeroes")
@click.option("--iv-prefixed", is_flag=True, help="The first block of the file is the IV")
@click.option("--url", envvar="PORACLE_URL", help="Validate endpoint of a remote padding oracle")
@click.option("--guess-fn", "-g", type=click.Path(exists=True, dir_okay=False),
              help="Python file defining submit_guess(prev_block, target_block) -> bool")
@click.option("--block-size", envvar="PORACLE_BLOCK_SIZE", type=click.IntRange(min=1), default=16, show_default=True)
@click.option("--workers", "-w", envvar="PORACLE_WORKERS", type=click.IntRange(min=1), default=1, show_default=True,
              help="Blocks attacked in parallel")
@click.option("--charset", help="Likely plaintext characters, most probable first")
@click.option("--strict", is_flag=True, help="Fail if the ciphertext isn't a whole number of blocks")
@click.option("--no-ui", is_flag=True, help="Don't draw the live progress table")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Defaults to CIPHERTEXT_PATH.plaintext")
def decrypt_command(ciphertext_path: str, ciphertext_format: CiphertextFormat, iv: Optional[str], iv_prefixed: bool,
                    url: Optional[str], guess_fn: Optional[str], block_size: int, workers: int,
                    charset: Optional[str], strict: bool, no_ui: bool, output: Optional[str]):
    """Decrypt a ciphertext file through a padding oracle."""
    if bool(url) == bool(guess_fn):
        raise click.UsageError("Give exactly one of --url or --guess-fn")

    try:
        ciphertext = load_ciphertext(ciphertext_path, ciphertext_format)
    except ValueError as e:
        raise click.BadParameter(f"Not valid {ciphertext_format}: {e}", param_hint="--ciphertext-path")
    try:
        iv_bytes = bytes.fromhex(iv) if iv else None
    except ValueError:
        raise click.BadParameter("IV must be hex", param_hint="--iv")
    if iv_prefixed:
        if iv_bytes is not None:
            raise click.UsageError("--iv and --iv-prefixed are mutually exclusive")
        iv_bytes, ciphertext = ciphertext[:block_size], ciphertext[block_size:]

    if url:
        oracle = RemoteOracle(url, block_size=block_size, character_set=charset)
    else:
        oracle = load_oracle_plugin(guess_fn, block_size=block_size, character_set=charset)

    try:
        plaintext, counter = solver(oracle, ciphertext, iv_bytes, workers=workers, strict=strict, show_ui=not no_ui)
    except PoracleError as e:
        raise click.ClickException(str(e))
    report(plaintext, counter)

    plaintext_path = output or f"{ciphertext_path}.plaintext"
    with open(plaintext_path, "wb") as f:
        f.write(plaintext)
    click.echo(f"Plaintext written to {plaintext_path}")


@cli.command()
@click.option("--text", default="Hello, padding oracle! This text is decrypted one guess at a time.",
              show_default=True)
@click.option("--workers", "-w", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--no-ui", is_flag=True)
def demo(text: str, workers: int, no_ui: bool):
    """Encrypt TEXT under a random key and recover it with a local oracle."""
    oracle = LocalOracle(key=os.urandom(16), iv=os.urandom(16))
    ciphertext = oracle.encrypt(text.encode("utf-8"))
    click.echo(f"IV: {oracle.iv.hex()}")
    click.echo(f"Ciphertext: {ciphertext.hex()}")

    try:
        plaintext, counter = solver(oracle, ciphertext, oracle.iv, workers=workers, show_ui=not no_ui)
    except PoracleError as e:
        raise click.ClickException(str(e))
    report(plaintext, counter)
    click.echo(f"Plaintext: {plaintext!r}")


@cli.command("demo-api")
@click.option("--host", default="127.0.0.1", help="Host to bind the server to")
@click.option("--port", default=8000, help="Port to bind the server to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def demo_api(host: str, port: int, reload: bool):
    """Start the demo API server for testing padding oracle attacks."""
    import uvicorn

    click.echo(f"Starting demo API server on http://{host}:{port}")
    click.echo("Available endpoints:")
    click.echo("  - GET  /api/demo1  - Single block demo")
    click.echo("  - GET  /api/demo2  - Multi-block demo")
    click.echo("  - GET  /api/demo3  - Long text demo")
    click.echo("  - POST /api/encrypt - Encrypt plaintext")
    click.echo("  - POST /api/validate - Validate ciphertext (padding oracle)")
    click.echo("\nPress Ctrl+C to stop the server")

    if reload:
        # Use import string for reload mode
        uvicorn.run("demo_api.main:app", host=host, port=port, reload=True)
    else:
        from demo_api.main import app
        uvicorn.run(app, host=host, port=port, reload=False)


if __name__ == "__main__":
    cli()
