"""Runs main.py on a pseudo-terminal and checks how the prompt ends."""
import os
import select
import signal
import subprocess
import sys
import time
from pathlib import Path

import pytest

pty = pytest.importorskip("pty")

ROOT = Path(__file__).resolve().parent.parent


def read_until(fd: int, marker: str, timeout: float) -> str:
    """Collect pty output until ``marker`` shows up, the child hangs up, or time runs out."""
    seen = b""
    deadline = time.monotonic() + timeout
    while marker.encode() not in seen and time.monotonic() < deadline:
        ready, _, _ = select.select([fd], [], [], 0.2)
        if not ready:
            continue
        try:
            chunk = os.read(fd, 4096)
        except OSError:
            break
        if not chunk:
            break
        seen += chunk
    return seen.decode(errors="replace")


@pytest.fixture
def router_on_pty():
    primary, secondary = pty.openpty()
    env = dict(os.environ, OPENROUTER_API_KEY="test-key", PYTHONUNBUFFERED="1", PYTHONPATH=str(ROOT))
    env.pop("MCP_SERVER_CANDIDATES", None)
    proc = subprocess.Popen(
        [sys.executable, "-c", "import sys, main; sys.exit(main.main(['/srv/weather/build/index.js']))"],
        cwd=ROOT,
        env=env,
        stdin=secondary,
        stdout=secondary,
        stderr=secondary,
        close_fds=True,
    )
    os.close(secondary)
    try:
        yield proc, primary
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        os.close(primary)


class TestPromptSignals:
    def test_ctrl_c_at_prompt_exits(self, router_on_pty):
        proc, fd = router_on_pty
        assert "Query:" in read_until(fd, "Query:", timeout=60)

        proc.send_signal(signal.SIGINT)
        tail = read_until(fd, "Goodbye!", timeout=10)
        try:
            proc.wait(timeout=10)
        except subprocess.TimeoutExpired:
            pytest.fail("router still running 10s after Ctrl-C at the Query prompt")
        assert "Goodbye!" in tail

    def test_empty_line_exits(self, router_on_pty):
        proc, fd = router_on_pty
        assert "Query:" in read_until(fd, "Query:", timeout=60)

        os.write(fd, b"\n")
        tail = read_until(fd, "Goodbye!", timeout=10)
        assert proc.wait(timeout=10) == 0
        assert "Goodbye!" in tail
