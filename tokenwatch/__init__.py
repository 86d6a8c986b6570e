from . import collectors
from . import executors
from . import strategies

from .core.watcher import Watcher
from .core.builder import WatcherBuilder
from .config import Config
