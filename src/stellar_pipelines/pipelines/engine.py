"""
Pipeline engine.

A pipeline is an ordered list of steps run one after another, each receiving
the previous step's output. A step is either a :class:`Process` or a
:class:`Transformer`, a plain data transform that may also read from or write
to the run's :class:`RunContext`.

Example:
    ```python
    pipeline = Pipeline(
        "Example",
        [
            store_metadata("input"),
            Transformer("input_to_build", to_build_input),
            BuildTransaction(),
        ],
    )
    tx = await pipeline.run(request)
    ```
"""

from __future__ import annotations
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..processes.base import Plugin, Process
from ..runtime.errors import StellarPipelinesError
from .errors import PipelineError, PipelineErrorCode

logger = logging.getLogger(__name__)


class RunContext:
    """
    Per-run metadata store.

    Every key is written at most once; a second write raises instead of
    overwriting.
    """

    def __init__(self, pipeline_name: str = ""):
        self.pipeline_name = pipeline_name
        self._values: Dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        if key in self._values:
            raise PipelineError(
                PipelineErrorCode.DUPLICATE_METADATA_KEY,
                details=f"Key '{key}' was already written in this run of {self.pipeline_name or 'the pipeline'}.",
                data={"key": key},
            )
        logger.debug(f"{self.pipeline_name}: stored metadata '{key}'")
        self._values[key] = value

    def get(self, key: str) -> Any:
        try:
            return self._values[key]
        except KeyError:
            raise PipelineError(
                PipelineErrorCode.MISSING_METADATA_KEY,
                details=f"Key '{key}' was not stored. Stored keys: {sorted(self._values)}",
                data={"key": key},
            ) from None

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def keys(self) -> List[str]:
        return list(self._values)


TransformFn = Callable[[Any, RunContext], Any]


@dataclass(frozen=True)
class Transformer:
    """
    Data transform step.

    Args:
        name: Step name, used in logs and error data
        fn: ``fn(value, context)`` returning the next value; may be a
            coroutine function
    """

    name: str
    fn: TransformFn

    async def apply(self, value: Any, context: RunContext) -> Any:
        result = self.fn(value, context)
        if inspect.isawaitable(result):
            result = await result
        return result


Step = Union[Process, Transformer]


def store_metadata(key: str) -> Transformer:
    """Step that stores the current value under ``key`` and passes it on unchanged."""

    def _store(value: Any, context: RunContext) -> Any:
        context.set(key, value)
        return value

    return Transformer(f"store_metadata[{key}]", _store)


class Pipeline:
    """
    Ordered list of steps sharing one run context per run.

    Runs are independent: each call to :meth:`run` gets a fresh context, so one
    pipeline instance may serve concurrent runs.
    """

    def __init__(self, name: str, steps: Sequence[Step]):
        self.name = name
        self._steps: List[Step] = list(steps)

    @property
    def steps(self) -> List[Step]:
        return list(self._steps)

    @property
    def processes(self) -> List[Process]:
        return [step for step in self._steps if isinstance(step, Process)]

    def process(self, name: str) -> Process:
        """
        Return the process step named ``name``.

        Raises:
            PipelineError: If the pipeline has no such process
        """
        for step in self.processes:
            if step.name == name:
                return step
        raise PipelineError(
            PipelineErrorCode.UNKNOWN_STAGE,
            details=f"Pipeline {self.name} has no stage '{name}'. Stages: {[p.name for p in self.processes]}",
            data={"stage": name},
        )

    def add_plugin(self, plugin: Plugin, stage: Optional[str] = None) -> None:
        """
        Attach a plugin to a stage, after the plugins it already has.

        Args:
            plugin: Plugin to attach
            stage: Stage name; defaults to the plugin's own target
        """
        target = stage or plugin.target
        if target is None:
            raise PipelineError(
                PipelineErrorCode.UNKNOWN_STAGE,
                details=f"Plugin '{plugin.name}' has no target stage.",
                data={"plugin": plugin.name},
            )
        self.process(target).add_plugin(plugin)
        logger.debug(f"{self.name}: plugin {plugin.name} attached to {target}")

    def add_plugins(self, plugins: Optional[Mapping[str, Iterable[Plugin]]]) -> None:
        """Attach plugins given as a mapping of stage name to plugins."""
        for stage, stage_plugins in (plugins or {}).items():
            for plugin in stage_plugins:
                self.add_plugin(plugin, stage)

    async def run(self, input: Any) -> Any:
        """
        Run every step in order.

        Args:
            input: Value handed to the first step

        Returns:
            Output of the last step

        Raises:
            ProcessError: A stage failed
            PipelineError: A transform step failed
        """
        context = RunContext(self.name)
        value = input
        logger.debug(f"{self.name}: run started")

        for step in self._steps:
            if isinstance(step, Process):
                value = await step.run(value)
                continue
            try:
                value = await step.apply(value, context)
            except StellarPipelinesError:
                raise
            except Exception as e:
                raise PipelineError(
                    PipelineErrorCode.UNEXPECTED_ERROR,
                    details=f"Step '{step.name}' of {self.name} failed: {e}",
                    cause=e,
                    data={"step": step.name},
                ) from e

        logger.debug(f"{self.name}: run finished")
        return value

    def __repr__(self) -> str:
        names = [step.name for step in self._steps]
        return f"Pipeline({self.name!r}, steps={names})"


__all__ = [
    "RunContext",
    "TransformFn",
    "Transformer",
    "Step",
    "store_metadata",
    "Pipeline",
]
