import html
import re
from typing import Iterable, Optional

from telegram import Bot
from telegram.error import TelegramError

from ..core.base import Executor
from ..core.findings import Finding
from ..logger import logger
from ..strategies.huge_transfer.narrative import HUGE_TRANSFERS_TECH_ALERT_ID

BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")


class TelegramExecutor(Executor):
    __component_name__ = "telegram"

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        skip_alert_ids: Optional[Iterable[str]] = None,
    ):
        """
        Initialize Telegram executor

        Args:
            bot_token: Telegram Bot Token
            chat_id: Target chat ID
            skip_alert_ids: Alert ids never sent to this chat, the technical
                transfer alert by default
        """
        super().__init__()
        self.bot = Bot(token=bot_token)
        self.chat_id = chat_id
        if skip_alert_ids is None:
            skip_alert_ids = [HUGE_TRANSFERS_TECH_ALERT_ID]
        self.skip_alert_ids = frozenset(skip_alert_ids)

    async def execute(self, finding: Finding) -> bool:
        """
        Send a finding to the chat

        Args:
            finding: Finding to deliver

        Returns:
            bool: Whether the message was sent
        """
        if finding.alert_id in self.skip_alert_ids:
            logger.debug(f"Telegram skips finding {finding.alert_id}")
            return False

        try:
            message = self._format_message(finding)
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=message,
                parse_mode='HTML'
            )
            logger.info(f"Successfully sent message to Telegram: {message[:100]}...")
            return True

        except TelegramError as e:
            logger.error(f"Failed to send message to Telegram: {str(e)}")
            return False

    def _format_message(self, finding: Finding) -> str:
        """
        Render a finding as Telegram HTML

        Markdown-style ``**bold**`` spans in the description become <b> tags.
        """
        description = BOLD_PATTERN.sub(r"<b>\1</b>", html.escape(finding.description))
        return f"<b>{html.escape(finding.name)}</b>\n\n{description}"
