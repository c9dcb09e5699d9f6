from __future__ import annotations

import logging
import socket
import socketserver
import threading
from typing import Callable, Dict, Iterable, Iterator, List, Sequence, Tuple, Union

import pytest

from abx_client.config.models import ClientConfig, ExportConfig, RecoveryConfig, ServerConfig, TelemetryConfig
from abx_client.core.types import AssetCode, Price, Quantity, SequenceNumber
from abx_client.protocol.codec import COMMAND_SIZE, MarketMessage, encode_frame
from abx_client.protocol.connection import Connection


def make_message(
    sequence: int,
    *,
    asset_code: str = "AAPL",
    direction: str = "B",
    size: int = 100,
    cost: int = 5_000,
) -> MarketMessage:
    return MarketMessage(
        asset_code=AssetCode(asset_code),
        order_direction=direction,
        size=Quantity(size),
        cost=Price(cost),
        sequence_num=SequenceNumber(sequence),
    )


def make_frame(sequence: int, **fields: object) -> bytes:
    return encode_frame(make_message(sequence, **fields))  # type: ignore[arg-type]


class FakeExchange:
    """In-process ABX server bound to an ephemeral localhost port.

    Opcode 1 streams ``stream`` frames then closes; opcode 2 answers with the
    frame registered for the requested sequence, or closes without a reply.
    """

    def __init__(self, stream: Sequence[bytes], recoverable: Dict[int, bytes]) -> None:
        self.stream = list(stream)
        self.recoverable = dict(recoverable)
        self.requests: List[Tuple[int, int]] = []
        self._lock = threading.Lock()
        self._server = _ExchangeServer(("127.0.0.1", 0), _ExchangeHandler)
        self._server.exchange = self
        self._thread = threading.Thread(target=self._server.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)

    @property
    def host(self) -> str:
        return "127.0.0.1"

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    @property
    def recovery_requests(self) -> List[int]:
        with self._lock:
            return [param for opcode, param in self.requests if opcode == 2]

    def record(self, opcode: int, param: int) -> None:
        with self._lock:
            self.requests.append((opcode, param))

    def start(self) -> "FakeExchange":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=5)


class _ExchangeServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True
    exchange: FakeExchange


class _ExchangeHandler(socketserver.BaseRequestHandler):
    def handle(self) -> None:
        command = b""
        while len(command) < COMMAND_SIZE:
            chunk = self.request.recv(COMMAND_SIZE - len(command))
            if not chunk:
                return
            command += chunk
        opcode, param = command[0], command[1]
        exchange = self.server.exchange  # type: ignore[attr-defined]
        exchange.record(opcode, param)
        if opcode == 1:
            for frame in exchange.stream:
                self.request.sendall(frame)
        elif opcode == 2:
            frame = exchange.recoverable.get(param)
            if frame is not None:
                self.request.sendall(frame)


@pytest.fixture
def exchange_factory() -> Iterator[Callable[..., FakeExchange]]:
    started: List[FakeExchange] = []

    def _factory(
        stream_sequences: Iterable[int] = (),
        recoverable: Iterable[int] = (),
        *,
        stream_frames: Sequence[bytes] | None = None,
        recovery_frames: Dict[int, bytes] | None = None,
    ) -> FakeExchange:
        frames = list(stream_frames) if stream_frames is not None else [make_frame(seq) for seq in stream_sequences]
        replies = dict(recovery_frames or {})
        for seq in recoverable:
            replies.setdefault(seq, make_frame(seq, asset_code="RCVR"))
        exchange = FakeExchange(frames, replies).start()
        started.append(exchange)
        return exchange

    yield _factory
    for exchange in started:
        exchange.stop()


@pytest.fixture
def unused_port() -> int:
    """A localhost port with nothing listening (connects are refused)."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


def client_config(host: str, port: int, **recovery: object) -> ClientConfig:
    return ClientConfig(
        server=ServerConfig(host=host, port=port, connect_timeout_sec=5.0),
        recovery=RecoveryConfig(delay_ms=0, **recovery),  # type: ignore[arg-type]
        export=ExportConfig(reports_dir=None),
        telemetry=TelemetryConfig(progress=False, logs_dir=None),
    )


SocketScript = List[Union[bytes, BaseException]]


class FakeSocket:
    """Socket stand-in replaying scripted ``recv`` results.

    Each script entry is returned (or raised) by one ``recv`` call; an empty
    script behaves like a closed peer.
    """

    def __init__(self, script: SocketScript | None = None, *, send_error: OSError | None = None) -> None:
        self._script: SocketScript = list(script or [])
        self._send_error = send_error
        self.sent: List[bytes] = []
        self.closed = False
        self.recv_calls = 0

    def recv(self, bufsize: int) -> bytes:
        self.recv_calls += 1
        if not self._script:
            return b""
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if len(item) > bufsize:
            self._script.insert(0, item[bufsize:])
            item = item[:bufsize]
        return item

    def send(self, data: bytes) -> int:
        if self._send_error is not None:
            raise self._send_error
        self.sent.append(bytes(data))
        return len(data)

    def close(self) -> None:
        self.closed = True


class ScriptedConnector:
    """Connector returning one scripted outcome per connect call."""

    def __init__(self, outcomes: Sequence[Union[FakeSocket, BaseException]]) -> None:
        self._outcomes = list(outcomes)
        self.calls: List[Tuple[str, int]] = []
        self.sockets: List[FakeSocket] = []

    def __call__(self, host: str, port: int, timeout: float | None = None) -> Connection:
        self.calls.append((host, port))
        if not self._outcomes:
            raise AssertionError("Unexpected connection attempt")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        self.sockets.append(outcome)
        return Connection(outcome, peer=f"{host}:{port}")  # type: ignore[arg-type]


@pytest.fixture
def message_factory() -> Callable[..., MarketMessage]:
    return make_message


@pytest.fixture
def frame_factory() -> Callable[..., bytes]:
    return make_frame


@pytest.fixture
def fake_socket_factory() -> Callable[..., FakeSocket]:
    return FakeSocket


@pytest.fixture
def connector_factory() -> Callable[..., ScriptedConnector]:
    return ScriptedConnector


@pytest.fixture
def config_factory() -> Callable[..., ClientConfig]:
    return client_config


@pytest.fixture(autouse=True)
def reset_client_logger() -> Iterator[None]:
    """Undo handlers installed by ``configure_logging`` in CLI tests."""

    yield
    logger = logging.getLogger("abx_client")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
