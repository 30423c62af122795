"""
Process base classes.

A process is one typed pipeline stage: ``await process.run(input)`` either
returns a fully formed output or raises the process's own error. Any other
exception escaping the stage is wrapped into the process's ``UNEXPECTED_ERROR``
code with the original kept as the cause.

Plugins attached to a process rewrite its input right before it runs, in
registration order.
"""

from __future__ import annotations
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Dict, Generic, Iterable, List, Optional, Type, TypeVar, Union

from ..runtime.errors import ErrorDomain, StellarPipelinesError, TemplatedError

logger = logging.getLogger(__name__)

I = TypeVar("I")
O = TypeVar("O")


class ProcessError(TemplatedError):
    """
    Base class for the error family of a process.

    Subclasses set ``templates`` and ``unexpected_code``. The offending input
    is available as ``error.input`` and under ``error.data["input"]``.
    """

    domain = ErrorDomain.PROCESSES
    unexpected_code: ClassVar[Enum]

    def __init__(
        self,
        code: Enum,
        input: Any = None,
        details: Optional[str] = None,
        cause: Optional[BaseException] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        payload = dict(data or {})
        payload["input"] = input
        super().__init__(code, details=details, cause=cause, data=payload)
        self.input = input

    @classmethod
    def unexpected(cls, input: Any, cause: BaseException) -> ProcessError:
        """Wrap an unanticipated exception raised while processing ``input``."""
        return cls(cls.unexpected_code, input=input, details=str(cause) or type(cause).__name__, cause=cause)


PluginHook = Callable[[Any], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class Plugin:
    """
    Input interceptor for a process.

    Args:
        name: Plugin name, used in logs
        process_input: Maps the stage input to a new input of the same shape;
            may be a plain function or a coroutine function
        target: Name of the process this plugin is meant for, None for any
    """

    name: str
    process_input: PluginHook
    target: Optional[str] = None


async def apply_hook(hook: PluginHook, value: Any) -> Any:
    result = hook(value)
    if inspect.isawaitable(result):
        result = await result
    return result


class Process(ABC, Generic[I, O]):
    """
    Base class for pipeline stages.

    Subclasses set ``name`` and ``error_class`` and implement ``_execute``.
    """

    name: ClassVar[str]
    error_class: ClassVar[Type[ProcessError]]

    def __init__(self, plugins: Optional[Iterable[Plugin]] = None):
        self._plugins: List[Plugin] = []
        for plugin in plugins or []:
            self.add_plugin(plugin)

    @property
    def plugins(self) -> List[Plugin]:
        return list(self._plugins)

    def add_plugin(self, plugin: Plugin) -> None:
        """
        Attach a plugin after the ones already registered.

        Raises:
            ValueError: If the plugin targets a different process
        """
        if plugin.target is not None and plugin.target != self.name:
            raise ValueError(f"Plugin '{plugin.name}' targets {plugin.target}, not {self.name}")
        self._plugins.append(plugin)

    async def run(self, input: I) -> O:
        """
        Run the stage.

        Args:
            input: Stage input

        Returns:
            Stage output

        Raises:
            ProcessError: The stage's own error family
        """
        current = input
        try:
            for plugin in self._plugins:
                logger.debug(f"{self.name}: applying plugin {plugin.name}")
                current = await apply_hook(plugin.process_input, current)

            logger.debug(f"{self.name}: start")
            output = await self._execute(current)
            logger.debug(f"{self.name}: done")
            return output
        except self.error_class:
            raise
        except StellarPipelinesError as e:
            # Plugin errors name their own source
            if e.domain == ErrorDomain.PLUGINS:
                raise
            raise self.error_class.unexpected(current, e) from e
        except Exception as e:
            raise self.error_class.unexpected(current, e) from e

    @abstractmethod
    async def _execute(self, input: I) -> O:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(plugins={[p.name for p in self._plugins]})"


__all__ = [
    "ProcessError",
    "Plugin",
    "PluginHook",
    "apply_hook",
    "Process",
]
