"""Pytest configuration and fixtures for curless tests.

This file provides:
- RecordingTransport: In-memory Transport that records what it was asked to send
- make_transport_result: Builds raw transport output from header blocks and a body
- PortReservation: Race-free port allocation for test servers
- MockServer: Subprocess management for the mock API server
"""

from __future__ import annotations

import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Generator

import pytest

from curless.models import PreparedRequest, TransportResult

# Project root for fixture paths
PROJECT_ROOT = Path(__file__).parent.parent
MOCK_SERVER_MODULE = "tests.integration.mock_server"


def make_transport_result(
    header_section: str = "HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n",
    body: bytes = b"{}",
    status: int | None = 200,
    info: dict[str, Any] | None = None,
) -> TransportResult:
    """Create a TransportResult for testing result normalization.

    Prefer this over constructing TransportResult directly - it computes
    header_size from the header section so tests only describe the wire text.
    """
    header_bytes = header_section.encode("latin-1")
    return TransportResult(
        raw=header_bytes + body,
        header_size=len(header_bytes),
        status=status,
        info=info if info is not None else {"http_code": status},
    )


class RecordingTransport:
    """Transport double that records prepared requests and replays a canned result.

    Usage:
        transport = RecordingTransport()
        RequestBuilder(transport).set_method("GET").set_url("http://x.test/").execute()
        assert transport.requests[0].url == "http://x.test/"
    """

    def __init__(self, result: TransportResult | None = None) -> None:
        self.result = result or make_transport_result()
        self.requests: list[PreparedRequest] = []

    @property
    def last_request(self) -> PreparedRequest:
        return self.requests[-1]

    def perform(self, request: PreparedRequest) -> TransportResult:
        self.requests.append(request)
        return self.result


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    WHY this exists: find_free_port() has a race window - another process can
    grab the port between when we find it and when our server binds. This class
    keeps the socket open until just before the server starts, eliminating the race.
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))  # Port 0 = OS assigns ephemeral port
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port for server use.

        Safe to call multiple times - subsequent calls are no-ops.
        """
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port

    def __enter__(self) -> PortReservation:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


def find_free_port() -> int:
    """Find an available port on localhost.

    Nothing listens on the returned port, which makes it useful for
    connection-refused tests.
    """
    with PortReservation() as reservation:
        return reservation.port


def wait_for_server_ready(host: str, port: int, timeout: float = 10.0) -> bool:
    """Block until server accepts TCP connections, or timeout expires."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1.0):
                return True
        except (ConnectionRefusedError, socket.timeout, OSError):
            time.sleep(0.1)
    return False


class MockServer:
    """Manages the mock server subprocess for integration tests.

    Runs tests/integration/mock_server.py as a subprocess.
    """

    def __init__(self, port: int | PortReservation) -> None:
        if isinstance(port, PortReservation):
            self._reservation = port
            self.port = port.port
        else:
            self._reservation = None
            self.port = port
        self.host = "127.0.0.1"
        self.base_url = f"http://{self.host}:{self.port}"
        self._process: subprocess.Popen | None = None

    def start(self) -> None:
        """Start the mock server subprocess.

        Raises:
            RuntimeError: If server fails to start within 10 seconds.
        """
        if self._reservation:
            self._reservation.release()

        self._process = subprocess.Popen(
            [
                sys.executable, "-m", MOCK_SERVER_MODULE,
                "--host", self.host,
                "--port", str(self.port),
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=PROJECT_ROOT,
        )

        if not wait_for_server_ready(self.host, self.port):
            stderr = ""
            if self._process and self._process.stderr:
                stderr = self._process.stderr.read().decode(errors="replace")
            self.stop()
            raise RuntimeError(
                f"MockServer failed to start on port {self.port}. "
                f"stderr: {stderr or '(empty)'}"
            )

    def stop(self) -> None:
        """Stop the mock server subprocess with graceful shutdown.

        Uses SIGTERM first, then SIGKILL after 5s if process doesn't exit.
        Safe to call multiple times or if server was never started.
        """
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                try:
                    self._process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    pass  # Process is unkillable (zombie?), nothing more we can do
            self._process = None

    def __enter__(self) -> MockServer:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


@pytest.fixture(scope="session")
def mock_server() -> Generator[MockServer, None, None]:
    """Start the mock server once per test session."""
    with MockServer(PortReservation()) as server:
        yield server


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Automatically apply markers based on test location.

    Enables running subsets via:
        pytest -m integration  # only integration tests
        pytest -m unit         # only unit tests
    """
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
