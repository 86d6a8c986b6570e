from ..core.base import Executor
from ..core.findings import Finding
from ..logger import logger


class LoggerExecutor(Executor):
    __component_name__ = "logger"

    async def execute(self, finding: Finding):
        logger.info(f"Finding: {finding}")
