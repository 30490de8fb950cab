"""Runtime deprecation marker.

``@deprecated("message")`` records the message for static tooling and leaves
the decorated object untouched otherwise: no wrapper, no runtime warning.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterator, TypeVar

from .log import get_logger
from .models import DeprecationMarker

_T = TypeVar("_T")

logger = get_logger(__name__)


def qualified_name(target: object) -> str:
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None) or getattr(target, "__name__", None)
    if qualname is None:
        qualname = type(target).__qualname__
    if module:
        return f"{module}.{qualname}"
    return str(qualname)


class MarkerRegistry:
    """Append-only map from decorated objects to their markers.

    Entries are keyed by object identity and hold a reference to the object,
    so an id is never reused while its marker is registered.
    """

    def __init__(self) -> None:
        self._markers: dict[int, tuple[object, DeprecationMarker]] = {}
        self._lock = threading.Lock()

    def record(self, target: object, message: str) -> DeprecationMarker:
        with self._lock:
            existing = self._markers.get(id(target))
            if existing is not None and existing[0] is target:
                logger.debug("%s is already marked, keeping the first marker", existing[1].target)
                return existing[1]
            marker = DeprecationMarker(target=qualified_name(target), message=message)
            self._markers[id(target)] = (target, marker)
            return marker

    def lookup(self, target: object) -> DeprecationMarker | None:
        entry = self._markers.get(id(target))
        if entry is None or entry[0] is not target:
            return None
        return entry[1]

    def __contains__(self, target: object) -> bool:
        return self.lookup(target) is not None

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[DeprecationMarker]:
        # snapshot, so concurrent appends do not break iteration
        return iter([marker for _, marker in list(self._markers.values())])


registry = MarkerRegistry()


def deprecated(message: str, /) -> Callable[[_T], _T]:
    """Mark a class, function or single overload as deprecated.

    The message should be a string literal so that static analysis can read
    it without running the code. The decorated object is returned as is; its
    only runtime trace is the ``__deprecated__`` attribute.

    Example::

        @deprecated("Use Spam instead")
        class Ham: ...

        @overload
        @deprecated("Only str will be allowed")
        def foo(x: int) -> str: ...
        @overload
        def foo(x: str) -> str: ...
    """
    if not isinstance(message, str):
        raise TypeError(
            f"Expected an object of type str for 'message', not {type(message).__name__!r}"
        )

    def decorator(target: _T) -> _T:
        marker = registry.record(target, message)
        try:
            target.__deprecated__ = marker.message  # type: ignore[attr-defined]
        except (AttributeError, TypeError):
            logger.debug("cannot set __deprecated__ on %s", marker.target)
        return target

    return decorator


def get_deprecation_message(target: object) -> str | None:
    """Return the deprecation message attached to ``target`` itself.

    A message inherited from a deprecated base class does not count.
    """
    try:
        message = vars(target).get("__deprecated__")
    except TypeError:
        message = None
    if isinstance(message, str):
        return message
    marker = registry.lookup(target)
    return marker.message if marker is not None else None


def is_deprecated(target: object) -> bool:
    return get_deprecation_message(target) is not None
