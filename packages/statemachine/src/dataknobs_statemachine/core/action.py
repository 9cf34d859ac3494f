"""Actions that compute a transition's outcome code.

An action is a deferred invocation bound at configuration load time: a
target, an operation and a fixed list of positional arguments. When a
transition carrying an action is applied, the action is executed and the
integer it returns selects the destination state.

Actions are side-effecting. Whatever the target raises propagates to the
caller unchanged; the engine performs no retry and imposes no timeout.
"""

import logging
from numbers import Integral
from typing import Any, Callable, Iterable, Protocol, Tuple, runtime_checkable

from dataknobs_statemachine.exceptions import ResolutionError

logger = logging.getLogger(__name__)


@runtime_checkable
class IAction(Protocol):
    """Capability interface for anything that yields an outcome code."""

    def execute(self) -> int:
        """Run the action and return its integer outcome code."""
        ...


def _to_outcome(result: Any, description: str) -> int:
    # bool is an Integral, True/False select outcome 1/0
    if isinstance(result, Integral):
        return int(result)
    raise ResolutionError(
        f"Action {description} returned {result!r}, expected an integer outcome code.",
        outcome=result,
        details={"action": description, "outcome": repr(result)},
    )


class Action:
    """Invoke ``method`` on ``target`` with a fixed argument list.

    Args:
        target: Object exposing the operation to invoke.
        method: Name of the operation; surrounding whitespace is ignored.
        arguments: Positional arguments passed on every invocation.

    Raises:
        ValueError: If the method name is empty or the target has no
            callable attribute of that name.

    Example:
        ```python
        class Reviewer:
            def score(self, a, b):
                return a * b

        action = Action(Reviewer(), "score", [42, 0])
        action.execute()  # 0
        ```
    """

    def __init__(self, target: Any, method: str, arguments: Iterable[Any] = ()):
        method = str(method).strip() if method is not None else ""
        if not method:
            raise ValueError("The name of the method to be invoked must not be empty.")
        if target is None:
            raise ValueError("An action requires a target object.")
        if not callable(getattr(target, method, None)):
            raise ValueError(
                f"Target {type(target).__name__} has no callable method '{method}'."
            )
        self._target = target
        self._method = method
        self._arguments: Tuple[Any, ...] = tuple(arguments)

    @property
    def target(self) -> Any:
        return self._target

    @property
    def method(self) -> str:
        return self._method

    @property
    def arguments(self) -> Tuple[Any, ...]:
        return self._arguments

    def execute(self) -> int:
        """Invoke the bound operation and return its outcome code."""
        operation = getattr(self._target, self._method)
        result = operation(*self._arguments)
        logger.debug(f"Action {self} returned {result!r}")
        return _to_outcome(result, str(self))

    def __str__(self) -> str:
        return f"{type(self._target).__name__}.{self._method}"

    def __repr__(self) -> str:
        return f"Action({self}, arguments={list(self._arguments)!r})"


class CallableAction:
    """Invoke a plain callable with a fixed argument list.

    Used when a configuration references a function instead of an
    object/method pair.
    """

    def __init__(self, func: Callable[..., Any], arguments: Iterable[Any] = ()):
        if not callable(func):
            raise ValueError(f"{func!r} is not callable.")
        self._func = func
        self._arguments: Tuple[Any, ...] = tuple(arguments)

    @property
    def func(self) -> Callable[..., Any]:
        return self._func

    @property
    def arguments(self) -> Tuple[Any, ...]:
        return self._arguments

    def execute(self) -> int:
        result = self._func(*self._arguments)
        logger.debug(f"Action {self} returned {result!r}")
        return _to_outcome(result, str(self))

    def __str__(self) -> str:
        return getattr(self._func, "__qualname__", repr(self._func))

    def __repr__(self) -> str:
        return f"CallableAction({self}, arguments={list(self._arguments)!r})"
