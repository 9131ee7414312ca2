import pytest

from lightpack import (
    AuthenticationRequiredError,
    BusyError,
    Command,
    CommandChannel,
    CommandError,
    ConnectionLostError,
    FramingError,
    NotConnectedError,
    NotLockedError,
    ResponseType,
    UnknownCommandError,
    parse_response,
)
from lightpack.io import ClientConst

from .conftest import FakeTransport


# ============================
# parse_response
# ============================

@pytest.mark.parametrize("line, error", [
    (b"authorization required", AuthenticationRequiredError),
    (b"unknown command", UnknownCommandError),
    (b"not locked", NotLockedError),
    (b"busy", BusyError),
    (b"error", CommandError),
])
def test_error_tokens(line, error):
    resp = parse_response(line)
    assert resp.response_type == ResponseType.ERROR
    assert resp.error is error


def test_ok_is_success_not_symbol():
    resp = parse_response(b"ok", Command("setstatus", "on"))
    assert resp.response_type == ResponseType.OK
    assert resp.result is True
    assert resp.is_success()


def test_keyed_value_keeps_everything_after_first_colon():
    resp = parse_response(b"profile:Lightpack:Evening:2")
    assert resp.response_type == ResponseType.VALUE
    assert resp.key == "profile"
    assert resp.value == "Lightpack:Evening:2"


def test_keyed_value_with_empty_payload():
    resp = parse_response(b"getprofiles:")
    assert resp.response_type == ResponseType.VALUE
    assert resp.value == ""


def test_symbol_spaces_become_underscores():
    resp = parse_response(b"device error")
    assert resp.response_type == ResponseType.SYMBOL
    assert resp.value == "device_error"
    assert not resp.is_success()


@pytest.mark.parametrize("raw", [b"", b"\xff\xfe", b"x" * (ClientConst.MAX_FRAME + 1)])
def test_unclassifiable_lines_are_invalid(raw):
    resp = parse_response(raw)
    assert resp.response_type == ResponseType.INVALID
    assert resp.reason


def test_echoed_success_only_counts_for_the_same_verb():
    assert parse_response(b"lock:success", Command("lock")).is_success()
    assert not parse_response(b"lock:success", Command("unlock")).is_success()
    assert not parse_response(b"lock:busy", Command("lock")).is_success()


# ============================
# Command
# ============================

def test_command_encoding():
    assert Command("getfps").encode() == "getfps"
    assert Command("setcolor", "1-255,0,0;2-0,255,0;").encode() == "setcolor:1-255,0,0;2-0,255,0;"
    assert Command.parse("apikey:a:b") == Command("apikey", "a:b")
    assert Command.parse("lock") == Command("lock")


@pytest.mark.parametrize("verb, argument", [("", None), ("set:status", None), ("lock\n", None), ("setmode", "a\nb")])
def test_command_rejects_bad_input(verb, argument):
    with pytest.raises(ValueError):
        Command(verb, argument)


# ============================
# CommandChannel
# ============================

@pytest.mark.asyncio
async def test_execute_returns_payload():
    transport = FakeTransport(b"fps:60.0")
    channel = CommandChannel(transport)
    resp = await channel.execute("getfps")
    assert transport.sent == ["getfps"]
    assert resp.value == "60.0"
    assert resp.result == "60.0"


@pytest.mark.asyncio
async def test_execute_raises_protocol_error():
    channel = CommandChannel(FakeTransport(b"not locked"))
    with pytest.raises(NotLockedError) as info:
        await channel.execute("setstatus:on")
    assert info.value.command == "setstatus:on"
    assert info.value.response == "not locked"
    # The connection survives a protocol error
    assert channel.is_connected()


@pytest.mark.asyncio
async def test_execute_raises_framing_error_on_empty_line():
    channel = CommandChannel(FakeTransport(b""))
    with pytest.raises(FramingError):
        await channel.execute("getstatus")


@pytest.mark.asyncio
async def test_execute_without_transport():
    channel = CommandChannel()
    with pytest.raises(NotConnectedError):
        await channel.execute("getstatus")


@pytest.mark.asyncio
async def test_lost_connection_notifies_owner_and_stops_io():
    lost = []
    transport = FakeTransport()
    channel = CommandChannel(transport, on_connection_lost=lambda: lost.append(True))

    with pytest.raises(ConnectionLostError):
        await channel.execute("getstatus")
    assert lost == [True]
    assert transport.closed
    assert channel.transport is None

    with pytest.raises(NotConnectedError) as info:
        await channel.execute("getstatus")
    assert not isinstance(info.value, ConnectionLostError)
    assert transport.sent == ["getstatus"]


@pytest.mark.asyncio
async def test_oversized_frame_drops_connection():
    class OverrunTransport(FakeTransport):
        async def read_line(self):
            raise FramingError("Response exceeds 8192 bytes")

    lost = []
    channel = CommandChannel(OverrunTransport(), on_connection_lost=lambda: lost.append(True))
    with pytest.raises(FramingError):
        await channel.execute("getleds")
    assert lost == [True]
    assert not channel.is_connected()


@pytest.mark.asyncio
async def test_read_welcome():
    channel = CommandChannel(FakeTransport(b"Lightpack API v1.4"))
    assert await channel.read_welcome() == "Lightpack API v1.4"


@pytest.mark.asyncio
async def test_print_traffic(capsys):
    channel = CommandChannel(FakeTransport(b"status:on"), print_traffic=True)
    await channel.execute("getstatus")
    out = capsys.readouterr().out
    assert "REQUEST: getstatus" in out
    assert "RESPONSE: status:on" in out
