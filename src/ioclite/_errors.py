class ContainerError(Exception):
    """Base class for every error raised by ioclite."""


class ResolutionError(ContainerError):
    """Raised when ``Container.make`` cannot produce a value for a token."""


class InvalidTokenError(ResolutionError, TypeError):
    """The requested token is ``None``.

    A dependency graph must never reference an absent token, so this usually
    means a declaration lists a name that evaluated to ``None``.
    """


class NotConstructibleError(ResolutionError, LookupError):
    """No binding matched and the token is not a concrete class.

    Abstract tokens (strings, sentinels, ABCs, protocols) can only be made
    through a binding. Typical fix: ``container.bind(token).to_class(Impl)``.
    """


class DependencyArityMismatchError(ResolutionError):
    """The declared dependency count differs from the constructor arity."""


class MissingDependencyDeclarationError(DependencyArityMismatchError):
    """The constructor takes arguments but no dependencies were declared.

    Typical fixes are decorating the class with ``@inject(...)`` or
    ``@autoinject``, or calling ``declare_dependencies`` before the first
    ``make``.
    """


class BindingError(ContainerError, RuntimeError):
    """A ``Bind`` builder was used after it already registered its binding."""
