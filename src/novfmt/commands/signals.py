"""Ctrl+C and termination handling shared by long-running commands."""

import signal
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.console import Console

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@contextmanager
def interrupt_guard(console: Console) -> Iterator[Callable[[], bool]]:
    """Trap SIGINT and SIGTERM for the duration of the block.

    Yields a callable reporting whether a cancellation signal arrived, so the
    engines can stop at the next safe point and clean up their temporary files.
    """
    interrupted = False
    original_handlers = {signum: signal.getsignal(signum) for signum in CANCEL_SIGNALS}

    def handle_interrupt(signum: int, frame: object) -> None:
        nonlocal interrupted
        interrupted = True
        console.print("\n[yellow]Interrupt received. Cleaning up...[/]")

    for signum in CANCEL_SIGNALS:
        signal.signal(signum, handle_interrupt)
    try:
        yield lambda: interrupted
    finally:
        # Restore original signal handlers
        for signum, handler in original_handlers.items():
            signal.signal(signum, handler)
