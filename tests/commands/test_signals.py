"""Tests for cancellation signal handling."""

import io
import signal

import pytest
from rich.console import Console

from novfmt.commands.signals import interrupt_guard


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO())


class TestInterruptGuard:
    """Tests for interrupt_guard."""

    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
    def test_signal_sets_flag(self, quiet_console, signum):
        with interrupt_guard(quiet_console) as check_interrupt:
            assert not check_interrupt()
            signal.raise_signal(signum)
            assert check_interrupt()

        assert "Interrupt received" in quiet_console.file.getvalue()

    def test_handlers_restored(self, quiet_console):
        before = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}

        with interrupt_guard(quiet_console):
            assert signal.getsignal(signal.SIGTERM) is not before[signal.SIGTERM]

        for signum, handler in before.items():
            assert signal.getsignal(signum) == handler
