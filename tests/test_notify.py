"""Tests for operator channel notifications."""

from notapi.pipeline.notify import INLINE_LIMIT, NotificationSink, build_envelope

from conftest import FakeChannel, payload_of_length

CHANNEL_ID = 1234


class TestBuildEnvelope:
    def test_context_lines_are_labelled(self, context):
        envelope = build_envelope("morse", {"input": "SOS", "result": "... --- ..."}, context)
        assert envelope.context_lines[0] == "**IP:** `203.0.113.7`"
        assert "**COUNTRY:** `ID`" in envelope.context_lines
        # Missing geo fields are left out.
        assert not any(line.startswith("**REGION:**") for line in envelope.context_lines)

    def test_threshold(self, context):
        below = build_envelope("lyrics", payload_of_length(INLINE_LIMIT - 1), context)
        at = build_envelope("lyrics", payload_of_length(INLINE_LIMIT), context)
        assert len(below.serialized_result) == INLINE_LIMIT - 1
        assert len(at.serialized_result) == INLINE_LIMIT
        assert below.is_inline
        assert not at.is_inline

    def test_attachment_strips_markup(self, context):
        envelope = build_envelope("lyrics", {"result": "la la"}, context)
        filename, content = envelope.attachment(context.ip)
        text = content.decode("utf-8")
        assert filename == "lyrics_20301137.txt"
        assert text.startswith(envelope.serialized_result)
        assert "IP: 203.0.113.7" in text
        assert "**" not in text and "`" not in text

    def test_attachment_name_without_digits(self, context):
        envelope = build_envelope("morse", {"result": "x"}, context)
        assert envelope.attachment("")[0] == "morse_0.txt"


class TestNotificationSink:
    async def test_small_result_goes_inline(self, context):
        channel = FakeChannel()
        sink = NotificationSink(channel, CHANNEL_ID)

        report = await sink.notify("morse", {"input": "SOS", "result": "... --- ..."}, context)

        assert report.path == "inline"
        assert report.delivered
        assert not report.fallback_attempted
        assert channel.files == []
        channel_id, text, formatted = channel.texts[0]
        assert channel_id == CHANNEL_ID
        assert formatted
        assert text.startswith("```json\n{")
        assert '"result": "... --- ..."' in text
        assert "**IP:** `203.0.113.7`" in text

    async def test_large_result_goes_as_file(self, context):
        channel = FakeChannel()
        sink = NotificationSink(channel, CHANNEL_ID)

        report = await sink.notify("lyrics", payload_of_length(INLINE_LIMIT), context)

        assert report.path == "file"
        assert report.delivered
        assert channel.texts == []
        _, filename, content = channel.files[0]
        assert filename == "lyrics_20301137.txt"
        assert len(content) > INLINE_LIMIT

    async def test_primary_failure_falls_back_once(self, context):
        channel = FakeChannel(failures=1)
        sink = NotificationSink(channel, CHANNEL_ID)

        report = await sink.notify("lyrics", payload_of_length(INLINE_LIMIT + 10), context)

        assert report.path == "file"
        assert not report.delivered
        assert report.fallback_attempted
        assert report.fallback_delivered
        assert report.error == "delivery failed #1"
        assert channel.attempts == 2
        assert len(channel.texts) == 1
        _, text, _ = channel.texts[0]
        assert "delivery failed #1" in text
        assert "**IP:** `203.0.113.7`" in text

    async def test_fallback_failure_is_swallowed(self, context):
        channel = FakeChannel(failures=2)
        sink = NotificationSink(channel, CHANNEL_ID)

        report = await sink.notify("morse", {"result": "x"}, context)

        assert report.fallback_attempted
        assert not report.fallback_delivered
        assert channel.attempts == 2
        assert channel.texts == [] and channel.files == []

    async def test_no_channel_configured(self, context):
        channel = FakeChannel()
        sink = NotificationSink(channel, None)

        report = await sink.notify("morse", {"result": "x"}, context)

        assert report.path == "disabled"
        assert channel.attempts == 0
