from __future__ import annotations

import inspect
import logging
import threading
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    TypeVar,
    overload,
)

from ._declarations import default_registry
from ._errors import (
    BindingError,
    DependencyArityMismatchError,
    InvalidTokenError,
    MissingDependencyDeclarationError,
    NotConstructibleError,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._declarations import DependencyDeclarationSource

    Factory = Callable[["Container"], Any]

T = TypeVar("T")


class Lifetime(Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class _NotCached:
    def __repr__(self) -> str:
        return "<not cached>"


_NOT_CACHED: Any = _NotCached()


@dataclass
class Binding:
    token: Any
    factory: Factory
    lifetime: Lifetime
    cached_instance: Any = field(default=_NOT_CACHED, repr=False)  # first value of a singleton
    lock: Any = field(default_factory=threading.RLock, init=False, repr=False, compare=False)

    @property
    def singleton(self) -> bool:
        return self.lifetime is Lifetime.SINGLETON

    @property
    def is_cached(self) -> bool:
        return self.cached_instance is not _NOT_CACHED


class Container:
    """Minimal IoC container.

    - bind tokens (classes or abstract names) to classes, factories or instances
    - make tokens, auto-constructing unbound classes from declared dependencies
    - lifetimes: singleton / transient

    Bindings are matched in registration order and the first match wins. A
    dependency cycle is not detected: it recurses until Python raises
    RecursionError.
    """

    def __init__(self, declarations: DependencyDeclarationSource | None = None) -> None:
        self._bindings: list[Binding] = []
        self._declarations = declarations if declarations is not None else default_registry
        self._lock = threading.RLock()

    @property
    def bindings(self) -> tuple[Binding, ...]:
        return tuple(self._bindings)

    @overload
    def make(self, token: type[T]) -> T: ...

    @overload
    def make(self, token: object) -> Any: ...

    def make(self, token: Any) -> Any:
        """Produce a value for the token.

        - If a binding matches: use its factory (cached when singleton).
        - Otherwise the token must be a concrete class: its declared
          dependencies are made in order and passed positionally.
        """
        if token is None:
            msg = "Container cannot make None. Check the dependency declarations that reference it."
            raise InvalidTokenError(msg)

        binding = self._find_binding(token)
        if binding is not None:
            return self._produce(binding)

        return self._construct(token)

    def bind(self, token: Any) -> Bind[Any]:
        if token is None:
            msg = "Cannot bind None: it can never be made."
            raise InvalidTokenError(msg)
        return Bind(self, token)

    def register_binding(self, binding: Binding) -> None:
        with self._lock:
            if self._find_binding(binding.token) is not None:
                logger.warning("%s is already bound; the new binding will never be used", _describe(binding.token))
            self._bindings.append(binding)

        logger.debug("Bound %s (%s)", _describe(binding.token), binding.lifetime.value)

    def _find_binding(self, token: Any) -> Binding | None:
        for binding in self._bindings:
            if binding.token == token:
                return binding
        return None

    def _produce(self, binding: Binding) -> Any:
        if not binding.singleton:
            return binding.factory(self)

        if binding.is_cached:
            return binding.cached_instance

        # locked per binding; factories may make other singletons from worker threads
        with binding.lock:
            # another thread may have filled it while we waited
            if not binding.is_cached:
                binding.cached_instance = binding.factory(self)
                logger.debug("Cached singleton for %s", _describe(binding.token))
            return binding.cached_instance

    def _construct(self, cls: Any) -> Any:
        if not inspect.isclass(cls):
            msg = (
                f"{cls!r} is not a class. Did you forget to bind it?\n\n"
                f"    container.bind({cls!r}).to_class(SomeClass)"
            )
            raise NotConstructibleError(msg)

        if inspect.isabstract(cls) or _is_protocol(cls):
            msg = (
                f"{cls.__name__} is abstract and cannot be constructed. Did you forget to bind it?\n\n"
                f"    container.bind({cls.__name__}).to_class(Implementation)"
            )
            raise NotConstructibleError(msg)

        declared = self._declarations.get_declared_dependencies(cls)
        dependencies = list(declared) if declared is not None else []
        arity = self._declarations.get_constructor_arity(cls)

        if not dependencies and arity != 0:
            msg = (
                f"{cls.__name__} has {arity} dependencies, but has registered 0. "
                f"Decorate it with @inject(...) or @autoinject, or call declare_dependencies({cls.__name__}, ...)."
            )
            raise MissingDependencyDeclarationError(msg)

        if len(dependencies) != arity:
            msg = (
                f"{cls.__name__} has {arity} dependencies, but has registered {len(dependencies)}. "
                "Does the @inject(...) declaration match the constructor?"
            )
            raise DependencyArityMismatchError(msg)

        logger.debug("Constructing %s with %d dependencies", cls.__qualname__, arity)
        args = [self.make(dependency) for dependency in dependencies]
        return cls(*args)


class Bind(Generic[T]):
    """Builder registering exactly one binding for a token.

    Example:
      container.bind("db").to_singleton_factory(lambda c: Database(c.make("dsn")))

    """

    def __init__(self, container: Container, token: Any) -> None:
        self._container = container
        self._token = token
        self._done = False

    def _set(self, lifetime: Lifetime, factory: Factory, **extra: Any) -> None:
        if self._done:
            msg = f"A binding for {_describe(self._token)} was already registered by this builder"
            raise BindingError(msg)

        self._done = True
        self._container.register_binding(Binding(token=self._token, factory=factory, lifetime=lifetime, **extra))

    def to_class(self, cls: type[T]) -> None:
        _check_class(cls)
        self._set(Lifetime.TRANSIENT, lambda container: container.make(cls))

    def to_factory(self, factory: Callable[[Container], T]) -> None:
        _check_factory(factory)
        self._set(Lifetime.TRANSIENT, factory)

    def to_singleton_class(self, cls: type[T]) -> None:
        _check_class(cls)
        self._set(Lifetime.SINGLETON, lambda container: container.make(cls))

    def to_instance(self, instance: T) -> None:
        """Bind a pre-built value (always singleton)."""
        self._set(Lifetime.SINGLETON, lambda _: instance, cached_instance=instance)

    def to_singleton_factory(self, factory: Callable[[Container], T]) -> None:
        _check_factory(factory)
        self._set(Lifetime.SINGLETON, factory)


def _check_class(cls: Any) -> None:
    if not inspect.isclass(cls):
        msg = f"Expected a class, got {cls!r}"
        raise TypeError(msg)


def _check_factory(factory: Any) -> None:
    if not callable(factory):
        msg = f"Expected a callable taking the container, got {factory!r}"
        raise TypeError(msg)


def _describe(token: Any) -> str:
    return token.__qualname__ if inspect.isclass(token) else repr(token)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return bool(getattr(tp, "_is_protocol", False))
