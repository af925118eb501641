"""Tests for CommandDispatcher."""

import pytest

from nopebot.bot.commands import (
    GREETING,
    CommandDispatcher,
    format_threshold,
    parse_command,
    parse_threshold,
)
from nopebot.tracking.models import DecodeError, EmptyDataError, MetricReading, TransportError


@pytest.fixture
def dispatcher(manager, universe) -> CommandDispatcher:
    return CommandDispatcher(manager, universe)


class TestParseCommand:
    def test_with_args(self):
        assert parse_command("/track GME 30") == ("track", "GME 30")

    def test_without_args(self):
        assert parse_command("/now") == ("now", "")

    def test_bot_suffix(self):
        assert parse_command("/track@nope_bot GME 30") == ("track", "GME 30")

    def test_case_insensitive_name(self):
        assert parse_command("/NOW gme") == ("now", "gme")

    def test_surrounding_whitespace(self):
        assert parse_command("  /untrack   GME  ") == ("untrack", "GME")

    def test_newline_separates_args(self):
        assert parse_command("/now\nGME") == ("now", "GME")
        assert parse_command("/track\tGME 30") == ("track", "GME 30")

    def test_not_a_command(self):
        assert parse_command("hello") is None
        assert parse_command("/") is None


class TestParseThreshold:
    def test_number(self):
        assert parse_threshold("30") == 30.0
        assert parse_threshold("-2.5") == -2.5

    def test_garbage_is_nan(self):
        assert parse_threshold("abc") != parse_threshold("abc")  # NaN

    def test_missing_is_nan(self):
        assert parse_threshold("") != parse_threshold("")


class TestFormatThreshold:
    def test_whole_numbers_have_no_fraction(self):
        assert format_threshold(30.0) == "30"
        assert format_threshold(1234567.0) == "1234567"

    def test_fraction_kept(self):
        assert format_threshold(12.5) == "12.5"
        assert format_threshold(0.1) == "0.1"

    def test_huge_values(self):
        assert format_threshold(1e30) == "1e+30"


@pytest.mark.asyncio
class TestGreeting:
    async def test_hi_command(self, dispatcher, send):
        await dispatcher.dispatch("/hi", send)
        assert send.messages == [GREETING]

    async def test_plain_hi(self, dispatcher, send):
        await dispatcher.dispatch("Hi", send)
        assert send.messages == [GREETING]


@pytest.mark.asyncio
class TestNowCommand:
    async def test_formats_reading(self, dispatcher, stub, send):
        stub.push(MetricReading(value=12.345, price=6.7))

        await dispatcher.dispatch("/now GME", send)

        assert send.messages == ["GME NOPE: 12.35, price: 6.70"]

    async def test_huge_value_is_formatted(self, dispatcher, stub, send):
        stub.push(MetricReading(value=1e27, price=10.0))

        await dispatcher.dispatch("/now GME", send)

        assert send.messages == [f"GME NOPE: 1{'0' * 27}.00, price: 10.00"]

    async def test_lowercase_symbol(self, dispatcher, stub, send):
        stub.push(MetricReading(value=1.0, price=2.0))

        await dispatcher.dispatch("/now gme", send)

        assert send.messages == ["GME NOPE: 1.00, price: 2.00"]

    async def test_missing_symbol(self, dispatcher, stub, send):
        await dispatcher.dispatch("/now", send)

        assert send.messages == ["Wrong command format. Correct format is '/now GME'"]
        assert stub.calls == []

    async def test_unknown_symbol(self, dispatcher, manager, stub, send):
        await dispatcher.dispatch("/now XYZ", send)

        assert send.messages == ["Ticker XYZ not in the list"]
        assert stub.calls == []
        assert len(manager) == 0

    @pytest.mark.parametrize("error", [EmptyDataError(), DecodeError()])
    async def test_transient_error(self, dispatcher, stub, send, error):
        stub.push(error)

        await dispatcher.dispatch("/now GME", send)

        assert send.messages == ["Error requesting the NOPE now. Retry."]

    async def test_transport_error(self, dispatcher, stub, send):
        stub.push(TransportError("HTTP 502 Bad Gateway"))

        await dispatcher.dispatch("/now GME", send)

        assert send.messages == ["Error requesting the NOPE: HTTP 502 Bad Gateway"]

    async def test_does_not_track(self, dispatcher, manager, stub, send, gme):
        await dispatcher.dispatch("/now GME", send)
        assert not manager.is_tracked(gme)


@pytest.mark.asyncio
class TestTrackCommand:
    async def test_track_confirms_then_alerts(self, dispatcher, manager, stub, send, gme):
        stub.push(MetricReading(value=40.0, price=10.0))

        await dispatcher.dispatch("/track GME 30", send)
        await manager.wait_for_pending()

        assert send.messages == [
            "Tracking ticker GME with threshold 30",
            "GME NOPE: 40.00 (threshold 30.00), price: 10.00",
        ]
        assert manager.is_tracked(gme)

    async def test_negative_threshold_reported_as_magnitude(self, dispatcher, send):
        await dispatcher.dispatch("/track GME -12.5", send)
        assert send.messages[0] == "Tracking ticker GME with threshold 12.5"

    async def test_large_threshold_reported_in_full(self, dispatcher, send):
        await dispatcher.dispatch("/track GME 1234567", send)
        assert send.messages[0] == "Tracking ticker GME with threshold 1234567"

    async def test_with_bot_suffix(self, dispatcher, manager, send, gme):
        await dispatcher.dispatch("/track@nope_bot GME 30", send)
        assert manager.is_tracked(gme)

    async def test_already_tracked(self, dispatcher, manager, send):
        await dispatcher.dispatch("/track GME 30", send)
        await manager.wait_for_pending()

        await dispatcher.dispatch("/track GME 50", send)

        assert send.messages[-1] == "Ticker already being tracked"

    async def test_invalid_threshold(self, dispatcher, manager, send, gme):
        await dispatcher.dispatch("/track GME abc", send)

        assert send.messages == ["Invalid threshold abc. Correct format is '/track GME 30'"]
        assert not manager.is_tracked(gme)

    async def test_missing_threshold(self, dispatcher, manager, send, gme):
        await dispatcher.dispatch("/track GME", send)

        assert send.messages == ["Invalid threshold (missing). Correct format is '/track GME 30'"]
        assert not manager.is_tracked(gme)

    async def test_missing_symbol(self, dispatcher, send):
        await dispatcher.dispatch("/track", send)
        assert send.messages == ["Wrong command format. Correct format is '/track GME 30'"]

    async def test_unknown_symbol(self, dispatcher, manager, stub, send):
        await dispatcher.dispatch("/track XYZ 30", send)
        await manager.wait_for_pending()

        assert send.messages == ["Ticker XYZ not in the list"]
        assert len(manager) == 0
        assert stub.calls == []


@pytest.mark.asyncio
class TestUntrackCommand:
    async def test_untrack(self, dispatcher, manager, send, gme):
        await dispatcher.dispatch("/track GME 30", send)
        await dispatcher.dispatch("/untrack GME", send)

        assert send.messages[-1] == "GME untracked"
        assert not manager.is_tracked(gme)

    async def test_not_tracked(self, dispatcher, send):
        await dispatcher.dispatch("/untrack GME", send)
        assert send.messages == ["Ticker not tracked"]

    async def test_missing_symbol(self, dispatcher, send):
        await dispatcher.dispatch("/untrack", send)
        assert send.messages == ["Wrong command format. Correct format is '/untrack GME'"]

    async def test_unknown_symbol(self, dispatcher, manager, send):
        await dispatcher.dispatch("/untrack XYZ", send)

        assert send.messages == ["Ticker XYZ not in the list"]
        assert len(manager) == 0


@pytest.mark.asyncio
class TestDispatchBoundary:
    async def test_unknown_command_ignored(self, dispatcher, send):
        await dispatcher.dispatch("/foo GME", send)
        assert send.messages == []

    async def test_plain_text_ignored(self, dispatcher, send):
        await dispatcher.dispatch("what is GME doing", send)
        assert send.messages == []

    async def test_unexpected_error_is_reported(self, dispatcher, stub, send):
        stub.push(RuntimeError("kaput"))

        await dispatcher.dispatch("/now GME", send)

        assert send.messages == ["Unexpected error: kaput"]

    async def test_failing_send_does_not_escape(self, dispatcher, failing_send):
        await dispatcher.dispatch("/hi", failing_send)  # Should not raise

        # Greeting attempt, then the generic error report attempt
        assert len(failing_send.messages) == 2

    async def test_handle_update_replies_to_chat(self, dispatcher, send):
        chats = []

        def reply_to(chat_id):
            chats.append(chat_id)
            return send

        update = {"update_id": 1, "message": {"chat": {"id": 42}, "text": "/hi"}}
        await dispatcher.handle_update(update, reply_to)

        assert chats == [42]
        assert send.messages == [GREETING]

    async def test_handle_update_without_text(self, dispatcher, send):
        update = {"update_id": 1, "message": {"chat": {"id": 42}, "sticker": {}}}
        await dispatcher.handle_update(update, lambda chat_id: send)
        assert send.messages == []

    async def test_handle_update_with_non_integer_chat_id(self, dispatcher, send):
        update = {"update_id": 1, "message": {"chat": {"id": "abc"}, "text": "/hi"}}
        await dispatcher.handle_update(update, lambda chat_id: send)  # Should not raise
        assert send.messages == []

    async def test_handle_update_contains_reply_factory_errors(self, dispatcher):
        def reply_to(chat_id):
            raise RuntimeError("no such chat")

        update = {"update_id": 1, "message": {"chat": {"id": 42}, "text": "/hi"}}
        await dispatcher.handle_update(update, reply_to)  # Should not raise
