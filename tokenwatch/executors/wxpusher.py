"""
WxPusher notification executor

Sends findings via WxPusher service with:
- Retry mechanism
- Alert id based routing
"""

import asyncio
from datetime import datetime
from typing import Iterable, List, Optional, Union

from wxpusher import WxPusher

from ..core.base import Executor
from ..core.findings import Finding
from ..logger import logger
from ..strategies.huge_transfer.narrative import HUGE_TRANSFERS_TECH_ALERT_ID


class WxPusherExecutor(Executor):
    __component_name__ = "wxpusher"

    def __init__(
        self,
        app_token: str,
        uids: Union[str, List[str]],
        default_summary: Optional[str] = None,
        retry_times: int = 3,
        retry_delay: int = 1,
        skip_alert_ids: Optional[Iterable[str]] = None,
    ):
        """Initialize WxPusher executor"""
        super().__init__()

        if not app_token or len(app_token) < 10:
            raise ValueError("Invalid app_token")

        self.app_token = app_token
        self.uids = [uids] if isinstance(uids, str) else uids

        if not self.uids:
            raise ValueError("At least one uid is required")

        self.default_summary = default_summary or "Token transfer alert"
        self.retry_times = retry_times
        self.retry_delay = retry_delay
        if skip_alert_ids is None:
            skip_alert_ids = [HUGE_TRANSFERS_TECH_ALERT_ID]
        self.skip_alert_ids = frozenset(skip_alert_ids)

        logger.info(f"Initialized WxPusher executor with {len(self.uids)} recipients")

    async def execute(self, finding: Finding) -> bool:
        """Push a finding, retrying failed sends"""
        if finding.alert_id in self.skip_alert_ids:
            logger.debug(f"WxPusher skips finding {finding.alert_id}")
            return False

        message = self._format_message(finding)

        for attempt in range(self.retry_times):
            try:
                result = await self._send_message(message)
                if result:
                    return True

                logger.warning(
                    f"Failed to send message, attempt {attempt + 1}/{self.retry_times}"
                )
                await asyncio.sleep(self.retry_delay)

            except Exception as e:
                logger.error(f"Error sending message (attempt {attempt + 1}): {str(e)}")
                if attempt < self.retry_times - 1:
                    await asyncio.sleep(self.retry_delay)

        return False

    async def _send_message(self, message: str) -> bool:
        # The WxPusher client is blocking
        result = await asyncio.to_thread(
            WxPusher.send_message,
            content=message,
            uids=self.uids,
            token=self.app_token,
            summary=self.default_summary,
        )

        if result.get("success", False):
            logger.info(f"Successfully sent message: {message[:100]}...")
            return True

        logger.error(f"Failed to send message: {result}")
        return False

    def _format_message(self, finding: Finding) -> str:
        return (
            f"【{self.default_summary}】\n\n"
            f"{finding.name}\n"
            f"{finding.description}\n"
            f"Alert: {finding.alert_id} ({finding.severity.value})\n"
            f"Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        )
