from .logger import LoggerExecutor
from .telegram import TelegramExecutor
from .wxpusher import WxPusherExecutor

__all__ = ["TelegramExecutor", "WxPusherExecutor", "LoggerExecutor"]
