import pytest
from unittest.mock import AsyncMock, patch

from tokenwatch.core.findings import Finding
from tokenwatch.executors import LoggerExecutor, TelegramExecutor, WxPusherExecutor
from tokenwatch.strategies.huge_transfer.narrative import (
    HUGE_TRANSFERS_ALERT_ID,
    HUGE_TRANSFERS_TECH_ALERT_ID,
)

NARRATIVE = Finding(
    name="Huge token(s) transfer of Lido interest in a single TX",
    description="**6000.00 stETH** were transferred from A to <B>",
    alert_id=HUGE_TRANSFERS_ALERT_ID,
)
TECH = Finding(
    name="Huge token transfer of Lido interest (tech)",
    description="6000.00 stETH were transferred from A to B",
    alert_id=HUGE_TRANSFERS_TECH_ALERT_ID,
)


@pytest.fixture
def telegram():
    with patch("tokenwatch.executors.telegram.Bot") as bot_class:
        bot_class.return_value.send_message = AsyncMock()
        yield TelegramExecutor(bot_token="123:abc", chat_id="42")


@pytest.mark.asyncio
async def test_logger_executor():
    await LoggerExecutor().execute(NARRATIVE)


@pytest.mark.asyncio
async def test_telegram_sends_html(telegram):
    assert await telegram.execute(NARRATIVE)

    kwargs = telegram.bot.send_message.await_args.kwargs
    assert kwargs["chat_id"] == "42"
    assert kwargs["parse_mode"] == "HTML"
    assert kwargs["text"] == (
        "<b>Huge token(s) transfer of Lido interest in a single TX</b>\n\n"
        "<b>6000.00 stETH</b> were transferred from A to &lt;B&gt;"
    )


@pytest.mark.asyncio
async def test_telegram_skips_tech_alerts(telegram):
    assert not await telegram.execute(TECH)
    telegram.bot.send_message.assert_not_awaited()


@pytest.mark.asyncio
async def test_telegram_custom_skip_list():
    with patch("tokenwatch.executors.telegram.Bot") as bot_class:
        bot_class.return_value.send_message = AsyncMock()
        executor = TelegramExecutor(bot_token="123:abc", chat_id="42", skip_alert_ids=[])

        assert await executor.execute(TECH)


@pytest.mark.asyncio
async def test_wxpusher_sends_and_skips():
    executor = WxPusherExecutor(app_token="AT_0123456789", uids="UID_1", retry_delay=0)

    with patch("tokenwatch.executors.wxpusher.WxPusher.send_message",
               return_value={"success": True}) as send:
        assert await executor.execute(NARRATIVE)
        assert not await executor.execute(TECH)

    assert send.call_count == 1
    assert send.call_args.kwargs["uids"] == ["UID_1"]
    assert NARRATIVE.description in send.call_args.kwargs["content"]


@pytest.mark.asyncio
async def test_wxpusher_retries():
    executor = WxPusherExecutor(app_token="AT_0123456789", uids=["UID_1"], retry_times=3, retry_delay=0)

    with patch("tokenwatch.executors.wxpusher.WxPusher.send_message",
               return_value={"success": False}) as send:
        assert not await executor.execute(NARRATIVE)

    assert send.call_count == 3


def test_wxpusher_validates_token():
    with pytest.raises(ValueError):
        WxPusherExecutor(app_token="short", uids=["UID_1"])
