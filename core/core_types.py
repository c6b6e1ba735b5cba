"""
Protocol-agnostic base types for the core framework.

This module defines the callable shapes the framework relies on without any
protocol-specific knowledge. Protocols supply validators and projectors per
event family and the framework only checks their signatures and results.
"""

from typing import Protocol, runtime_checkable, Any
from collections.abc import Callable


# The framework doesn't define payload structure.
# Envelopes are dicts built by the pipeline; event_data is whatever the
# protocol's decoder produced.


@runtime_checkable
class ValidatorFunc(Protocol):
    """Protocol for event validators"""
    def __call__(self, envelope: dict[str, Any]) -> bool:
        """
        Validate a decoded envelope.

        The framework only cares about the boolean result.
        """
        ...


@runtime_checkable
class ProjectorFunc(Protocol):
    """Protocol for event projectors"""
    def __call__(self, envelope: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Convert envelope to state deltas.

        The framework doesn't care about delta structure,
        just that it's a list of dicts.
        """
        ...


def validator(func: Callable[[dict[str, Any]], bool]) -> Callable[[dict[str, Any]], bool]:
    """
    Decorator to mark validator functions.

    The framework only validates the signature and return type.
    """
    import functools
    import inspect

    sig = inspect.signature(func)
    params = list(sig.parameters.keys())

    if len(params) != 1:
        raise TypeError(
            f"{func.__name__} must have exactly one parameter, got {len(params)}"
        )

    @functools.wraps(func)
    def wrapper(envelope: dict[str, Any]) -> bool:
        if not isinstance(envelope, dict):
            raise TypeError(f"Expected dict for envelope, got {type(envelope).__name__}")

        result = func(envelope)

        if not isinstance(result, bool):
            raise TypeError(f"{func.__name__} must return bool, got {type(result).__name__}")

        return result

    wrapper._is_validator = True  # type: ignore
    return wrapper


def projector(func: Callable[[dict[str, Any]], list[dict[str, Any]]]) -> Callable[[dict[str, Any]], list[dict[str, Any]]]:
    """
    Decorator to mark projector functions.

    The framework only validates that it returns a list of dicts.
    """
    import functools
    import inspect

    sig = inspect.signature(func)
    params = list(sig.parameters.keys())

    if len(params) != 1:
        raise TypeError(
            f"{func.__name__} must have exactly one parameter, got {len(params)}"
        )

    @functools.wraps(func)
    def wrapper(envelope: dict[str, Any]) -> list[dict[str, Any]]:
        if not isinstance(envelope, dict):
            raise TypeError(f"Expected dict for envelope, got {type(envelope).__name__}")

        result = func(envelope)

        if not isinstance(result, list):
            raise TypeError(f"{func.__name__} must return list, got {type(result).__name__}")

        for i, delta in enumerate(result):
            if not isinstance(delta, dict):
                raise TypeError(f"{func.__name__} delta[{i}] must be dict, got {type(delta).__name__}")

        return result

    wrapper._is_projector = True  # type: ignore
    return wrapper
