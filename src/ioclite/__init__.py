"""Minimal inversion-of-control container.

This package turns a requested token (a class, or an abstract name such as a
string) into a fully wired instance, resolving constructor dependencies
recursively.

Exports:
- `Container`: holds the bindings and makes tokens.
- `Bind`: builder returned by `Container.bind`, with one terminal call
  (`to_class`, `to_factory`, `to_singleton_class`, `to_instance`,
  `to_singleton_factory`).
- `Binding`, `Lifetime`: the registered binding record and its lifetime.
- `inject`, `autoinject`, `declare_dependencies`: declare which tokens a class
  constructor receives. `DependencyRegistry` stores the declarations and
  `DependencyDeclarationSource` is the protocol the container queries.
- The error hierarchy rooted at `ContainerError`.
"""

from ._container import Bind, Binding, Container, Lifetime
from ._declarations import (
    DependencyDeclarationSource,
    DependencyRegistry,
    autoinject,
    declare_dependencies,
    default_registry,
    inject,
)
from ._errors import (
    BindingError,
    ContainerError,
    DependencyArityMismatchError,
    InvalidTokenError,
    MissingDependencyDeclarationError,
    NotConstructibleError,
    ResolutionError,
)


__all__ = [
    "Bind",
    "Binding",
    "BindingError",
    "Container",
    "ContainerError",
    "DependencyArityMismatchError",
    "DependencyDeclarationSource",
    "DependencyRegistry",
    "InvalidTokenError",
    "Lifetime",
    "MissingDependencyDeclarationError",
    "NotConstructibleError",
    "ResolutionError",
    "autoinject",
    "declare_dependencies",
    "default_registry",
    "inject",
]
