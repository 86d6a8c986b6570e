from abc import ABC, abstractmethod
from typing import Dict, Type, TypeVar, Optional, ClassVar, Callable, AsyncIterable, Awaitable, List

from .events import Event
from .findings import Finding
from ..logger import logger

T = TypeVar('T', bound='Component')

class Component(ABC):
    """All components base class"""

    _registry: ClassVar[Dict[str, Type[T]]] = {}
    _component_name: str = None

    def __init_subclass__(cls, **kwargs):
        """
        Register subclasses that set __component_name__ on the nearest
        base class owning a registry
        """
        super().__init_subclass__(**kwargs)

        component_name = getattr(cls, '__component_name__', None)
        if component_name:
            for base in cls.__mro__[1:]:
                if '_registry' in base.__dict__:
                    base._registry[component_name] = cls
                    cls._component_name = component_name
                    break

    @classmethod
    def create(cls: Type[T], name: str, **kwargs) -> T:
        """
        Create component instance

        Args:
            name: Component name
            **kwargs: Component initialization parameters

        Returns:
            Component: Component instance

        Raises:
            ValueError: Component not registered
        """
        if name not in cls._registry:
            raise ValueError(f"No {cls.__name__} registered with name: {name}")

        try:
            component_class = cls._registry[name]
            return component_class(**kwargs)
        except Exception as e:
            logger.error(f"Error creating component {name}: {e}")
            raise

    @classmethod
    @abstractmethod
    def config_prefix(cls) -> str:
        """Configuration prefix"""
        pass

    @property
    def name(self) -> str:
        """Component name"""
        return self._component_name

class Collector(Component):
    """Collector base class"""
    _registry: ClassVar[Dict[str, Type["Collector"]]] = {}

    def __init__(self):
        self._running = False
        self._started = False

    @classmethod
    def config_prefix(cls) -> str:
        return "collectors"

    async def start(self):
        """Start collector"""
        if self._started:
            return
        try:
            self._started = True
            self._running = True
            await self._start()
            logger.info(f"Collector {self.name} started")
        except Exception as e:
            self._started = False
            self._running = False
            logger.error(f"Error starting collector {self.name}: {e}")
            raise

    async def stop(self):
        """Stop collector"""
        if not self._started:
            return
        try:
            self._running = False
            await self._stop()
            self._started = False
            logger.info(f"Collector {self.name} stopped")
        except Exception as e:
            logger.error(f"Error stopping collector {self.name}: {e}")
            raise

    async def _start(self):
        """Subclasses can override this method to implement custom startup logic"""
        pass

    async def _stop(self):
        """Subclasses can override this method to implement custom shutdown logic"""
        pass

    @property
    def is_running(self) -> bool:
        """Whether the collector is running"""
        return self._running

    @abstractmethod
    async def events(self) -> AsyncIterable[Event]:
        """Generate event stream"""
        pass

class Strategy(Component):
    """Strategy base class"""
    _registry: ClassVar[Dict[str, Type["Strategy"]]] = {}

    @classmethod
    def config_prefix(cls) -> str:
        return "strategies"

    async def initialize(self, current_block: Optional[int] = None) -> Dict[str, str]:
        """
        Prepare strategy state before any event is delivered

        Args:
            current_block: Chain height at startup, if the caller knows it

        Returns:
            Dict[str, str]: Snapshot of the initial state for operators
        """
        return {}

    @abstractmethod
    async def process_event(self, event: Event) -> List[Finding]:
        """Process event and generate findings"""
        pass

class Executor(Component):
    """Executor base class"""
    _registry: ClassVar[Dict[str, Type["Executor"]]] = {}

    @classmethod
    def config_prefix(cls) -> str:
        return "executors"

    @abstractmethod
    async def execute(self, finding: Finding) -> None:
        """Deliver finding"""
        pass

class FunctionCollector(Collector):
    """Function collector wrapper"""
    def __init__(self, func: Callable[[], AsyncIterable[Event]], name: Optional[str] = None):
        super().__init__()
        self._func = func
        self._component_name = name or func.__name__

    async def events(self) -> AsyncIterable[Event]:
        if not self._started:
            await self.start()

        try:
            async for event in self._func():
                if not self._running:
                    break
                yield event
        finally:
            if self._running:
                await self.stop()

class FunctionStrategy(Strategy):
    """Function strategy wrapper"""
    def __init__(self, func: Callable[[Event], Awaitable[List[Finding]]], name: Optional[str] = None):
        super().__init__()
        self._func = func
        self._component_name = name or func.__name__

    async def process_event(self, event: Event) -> List[Finding]:
        return await self._func(event)

class FunctionExecutor(Executor):
    """Function executor wrapper"""
    def __init__(self, func: Callable[[Finding], Awaitable[None]], name: Optional[str] = None):
        super().__init__()
        self._func = func
        self._component_name = name or func.__name__

    async def execute(self, finding: Finding) -> None:
        await self._func(finding)
