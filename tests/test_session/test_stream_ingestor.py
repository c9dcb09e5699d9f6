from __future__ import annotations

import errno

import pytest

from abx_client.config.models import ServerConfig
from abx_client.core.enums import IngestorState
from abx_client.core.errors import ConnectError, ReceiveError
from abx_client.session.ingestor import StreamIngestor
from abx_client.session.state import SessionState


def test_ingestor_should_collect_stream_until_peer_closes(exchange_factory) -> None:
    exchange = exchange_factory(stream_sequences=[1, 2, 4, 5])
    ingestor = StreamIngestor(ServerConfig(host=exchange.host, port=exchange.port, connect_timeout_sec=5.0))
    session = SessionState()

    result = ingestor.run(session)

    assert result.completed is True
    assert result.error is None
    assert result.frames_received == 4
    assert result.max_sequence == 5
    assert session.stream_max_sequence == 5
    assert session.seen_sequences == {1, 2, 4, 5}
    assert ingestor.state is IngestorState.DISCONNECTED
    assert exchange.requests == [(1, 0)]


def test_ingestor_should_handle_empty_stream(exchange_factory) -> None:
    exchange = exchange_factory(stream_sequences=[])
    session = SessionState()
    result = StreamIngestor(ServerConfig(host=exchange.host, port=exchange.port)).run(session)
    assert result.completed is True
    assert result.max_sequence == 0
    assert len(session) == 0


def test_ingestor_should_propagate_initial_connect_failure(unused_port) -> None:
    session = SessionState()
    ingestor = StreamIngestor(ServerConfig(host="127.0.0.1", port=unused_port, connect_timeout_sec=5.0))
    with pytest.raises(ConnectError):
        ingestor.run(session)
    assert len(session) == 0
    assert ingestor.state is IngestorState.DISCONNECTED


def test_ingestor_should_keep_frames_received_before_a_receive_error(
    fake_socket_factory, connector_factory, frame_factory
) -> None:
    first, second, third = frame_factory(1), frame_factory(2, asset_code="MSFT"), frame_factory(3)
    sock = fake_socket_factory(
        [first, second, third[:8], ConnectionResetError(errno.ECONNRESET, "reset by peer")]
    )
    connector = connector_factory([sock])
    session = SessionState()

    result = StreamIngestor(ServerConfig(), connector=connector).run(session)

    assert result.completed is False
    assert isinstance(result.error, ReceiveError)
    assert result.error.errno == errno.ECONNRESET
    assert [msg.sequence_num for msg in session.message_log] == [1, 2]
    assert session.message_log[1].asset_code == "MSFT"
    assert session.stream_max_sequence == 2
    assert sock.closed is True
    assert sock.sent == [b"\x01\x00"]


def test_ingestor_should_close_connection_when_send_fails(fake_socket_factory, connector_factory) -> None:
    sock = fake_socket_factory(send_error=BrokenPipeError(errno.EPIPE, "broken pipe"))
    session = SessionState()
    result = StreamIngestor(ServerConfig(), connector=connector_factory([sock])).run(session)
    assert result.completed is False
    assert result.frames_received == 0
    assert sock.closed is True
