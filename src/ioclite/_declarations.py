from __future__ import annotations

import inspect
import logging
import weakref
from typing import (
    TYPE_CHECKING,
    Any,
    Protocol,
    TypeVar,
    get_type_hints,
    overload,
    runtime_checkable,
)

from ._errors import DependencyArityMismatchError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

C = TypeVar("C", bound=type)

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


@runtime_checkable
class DependencyDeclarationSource(Protocol):
    """What the container needs to know about a class it auto-constructs."""

    def get_declared_dependencies(self, cls: type) -> Sequence[Any] | None:
        """Return the declared dependency tokens of `cls`, or None if nothing was declared."""
        ...

    def get_constructor_arity(self, cls: type) -> int:
        """Return how many positional arguments constructing `cls` requires."""
        ...


class DependencyRegistry:
    """Explicit table of per-class dependency declarations.

    Declarations are inherited: a class without its own declaration uses the
    one of the nearest base class in its MRO that has one.
    """

    def __init__(self) -> None:
        self._declarations: weakref.WeakKeyDictionary[type, tuple[Any, ...]] = weakref.WeakKeyDictionary()

    def declare(self, cls: type, tokens: Sequence[Any]) -> None:
        if not inspect.isclass(cls):
            msg = f"Dependencies can only be declared for classes, got {cls!r}"
            raise TypeError(msg)

        declared = self._declarations[cls] = tuple(tokens)
        logger.debug("Declared %d dependencies for %s", len(declared), cls.__qualname__)

    def is_declared(self, cls: type) -> bool:
        return self.get_declared_dependencies(cls) is not None

    def get_declared_dependencies(self, cls: type) -> tuple[Any, ...] | None:
        for klass in inspect.getmro(cls):
            declared = self._declarations.get(klass)
            if declared is not None:
                return declared
        return None

    def get_constructor_arity(self, cls: type) -> int:
        """Count the required positional constructor parameters of `cls`.

        Dependencies are passed positionally, so a required keyword-only
        parameter can never be satisfied and is rejected here.
        """
        keyword_only = [
            p.name
            for p in _constructor_parameters(cls)
            if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is p.empty
        ]
        if keyword_only:
            msg = (
                f"{cls.__name__} requires keyword-only arguments ({', '.join(keyword_only)}) "
                "that declared dependencies cannot supply. Bind it with a factory instead:\n\n"
                f"    container.bind({cls.__name__}).to_factory(lambda c: {cls.__name__}(...))"
            )
            raise DependencyArityMismatchError(msg)

        return len(_required_positional_parameters(cls))


default_registry = DependencyRegistry()


def declare_dependencies(cls: type, *tokens: Any, registry: DependencyRegistry | None = None) -> None:
    """Declare the tokens to resolve, in order, when constructing `cls`.

    Example:
      declare_dependencies(UserService, UserRepository, "settings")

    """
    (registry or default_registry).declare(cls, tokens)


def inject(*tokens: Any, registry: DependencyRegistry | None = None) -> Callable[[C], C]:
    """Class decorator form of `declare_dependencies`."""

    def decorator(cls: C) -> C:
        (registry or default_registry).declare(cls, tokens)
        return cls

    return decorator


@overload
def autoinject(cls: C, *, registry: DependencyRegistry | None = None) -> C: ...


@overload
def autoinject(cls: None = ..., *, registry: DependencyRegistry | None = None) -> Callable[[C], C]: ...


def autoinject(cls: C | None = None, *, registry: DependencyRegistry | None = None) -> Any:
    """Declare dependencies from the constructor's type annotations.

    Every required positional parameter must be annotated. If one is not, or
    its annotation cannot be evaluated, nothing is declared and resolving the
    class fails with `MissingDependencyDeclarationError`.
    """

    def decorator(target: C) -> C:
        if not inspect.isclass(target):
            msg = f"@autoinject can only decorate classes, got {target!r}"
            raise TypeError(msg)

        tokens = _annotated_dependencies(target)
        if tokens is not None:
            (registry or default_registry).declare(target, tokens)
        return target

    if cls is None:
        return decorator
    return decorator(cls)


def _annotated_dependencies(cls: type) -> list[Any] | None:
    params = _required_positional_parameters(cls)
    if not params:
        return []

    hints = _get_init_type_hints(cls)
    tokens = []
    for p in params:
        ann = hints.get(p.name, inspect.Parameter.empty)
        if ann is inspect.Parameter.empty:
            logger.warning(
                "@autoinject cannot infer dependencies of %s: parameter '%s' has no usable annotation",
                cls.__qualname__,
                p.name,
            )
            return None
        tokens.append(ann)
    return tokens


def _required_positional_parameters(cls: type) -> list[inspect.Parameter]:
    return [p for p in _constructor_parameters(cls) if p.kind in _POSITIONAL and p.default is p.empty]


def _constructor_parameters(cls: type) -> list[inspect.Parameter]:
    # __init__ receives the arguments even when __new__ accepts anything,
    # so __new__ is only consulted when __init__ is object's
    init = inspect.getattr_static(cls, "__init__")
    try:
        if init is not object.__init__:
            return list(inspect.signature(init).parameters.values())[1:]
        if cls.__new__ is not object.__new__:
            return list(inspect.signature(cls).parameters.values())
    except (TypeError, ValueError):
        # builtins and extension types without introspectable signatures
        logger.debug("No signature available for %s, assuming no parameters", cls.__qualname__)
    return []


def _get_init_type_hints(cls: type) -> dict[str, Any]:
    try:
        init = inspect.getattr_static(cls, "__init__")
        hints = get_type_hints(init)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = {}

    return hints
