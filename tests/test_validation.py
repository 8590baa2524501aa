import abc
import unittest
from typing import Protocol

import pytest

from ioclite import (
    Container,
    DependencyArityMismatchError,
    MissingDependencyDeclarationError,
    NotConstructibleError,
    ResolutionError,
    declare_dependencies,
    inject,
)


class TestMissingDeclarations(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_make_class_with_unannotated_dependencies_raises(self):
        class X: ...

        class Y:
            def __init__(self, x: X):
                self.x = x

        with pytest.raises(MissingDependencyDeclarationError) as ctx:
            self.cont.make(Y)
        assert "Y has 1 dependencies, but has registered 0" in str(ctx.value)
        assert "@inject" in str(ctx.value)

    def test_empty_declaration_with_parameters_raises(self):
        @inject()
        class Y:
            def __init__(self, x):
                self.x = x

        with pytest.raises(MissingDependencyDeclarationError):
            self.cont.make(Y)

    def test_missing_declaration_is_an_arity_mismatch(self):
        class Y:
            def __init__(self, x):
                self.x = x

        with pytest.raises(DependencyArityMismatchError):
            self.cont.make(Y)

    def test_defaulted_parameters_need_no_declaration(self):
        class WithDefault:
            def __init__(self, port: int = 5555):
                self.port = port

        assert self.cont.make(WithDefault).port == 5555

    def test_undeclared_init_behind_variadic_new_raises(self):
        class Service:
            def __new__(cls, *args, **kwargs):
                return super().__new__(cls)

            def __init__(self, dep):
                self.dep = dep

        with pytest.raises(MissingDependencyDeclarationError):
            self.cont.make(Service)

    def test_declared_init_behind_variadic_new_is_constructed(self):
        class Dep: ...

        @inject(Dep)
        class Service:
            def __new__(cls, *args, **kwargs):
                return super().__new__(cls)

            def __init__(self, dep):
                self.dep = dep

        assert isinstance(self.cont.make(Service).dep, Dep)


class TestArityMismatch(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_fewer_declared_than_parameters_raises(self):
        class X: ...

        @inject(X)
        class Y:
            def __init__(self, a, b):
                self.a = a
                self.b = b

        with pytest.raises(DependencyArityMismatchError) as ctx:
            self.cont.make(Y)
        assert "Y has 2 dependencies, but has registered 1" in str(ctx.value)

    def test_more_declared_than_parameters_raises(self):
        class X: ...

        @inject(X, X)
        class Y:
            def __init__(self, a):
                self.a = a

        with pytest.raises(DependencyArityMismatchError):
            self.cont.make(Y)

    def test_declared_dependencies_on_parameterless_class_raises(self):
        class X: ...

        class Y: ...

        declare_dependencies(Y, X)

        with pytest.raises(DependencyArityMismatchError) as ctx:
            self.cont.make(Y)
        assert not isinstance(ctx.value, MissingDependencyDeclarationError)

    def test_mismatch_does_not_construct(self):
        made = []

        class X:
            def __init__(self):
                made.append(self)

        @inject(X, X)
        class Y:
            def __init__(self, a):
                self.a = a

        with pytest.raises(DependencyArityMismatchError):
            self.cont.make(Y)
        assert made == []

    def test_required_keyword_only_parameter_raises(self):
        made = []

        class Dep:
            def __init__(self):
                made.append(self)

        @inject(Dep)
        class Service:
            def __init__(self, dep, *, name):
                self.dep = dep
                self.name = name

        with pytest.raises(DependencyArityMismatchError) as ctx:
            self.cont.make(Service)
        assert "name" in str(ctx.value)
        assert made == []

    def test_keyword_only_parameter_with_default_is_allowed(self):
        class Dep: ...

        @inject(Dep)
        class Service:
            def __init__(self, dep, *, name="svc"):
                self.dep = dep
                self.name = name

        service = self.cont.make(Service)
        assert isinstance(service.dep, Dep)
        assert service.name == "svc"

    def test_keyword_only_class_can_be_bound_to_factory(self):
        class Service:
            def __init__(self, *, name):
                self.name = name

        self.cont.bind(Service).to_factory(lambda _: Service(name="svc"))
        assert self.cont.make(Service).name == "svc"


class TestNotConstructible(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_abstract_class_raises(self):
        class Port(abc.ABC):
            @abc.abstractmethod
            def send(self) -> None: ...

        with pytest.raises(NotConstructibleError):
            self.cont.make(Port)

    def test_protocol_raises(self):
        class SupportsSend(Protocol):
            def send(self) -> None: ...

        with pytest.raises(NotConstructibleError):
            self.cont.make(SupportsSend)

    def test_bound_protocol_is_made_through_binding(self):
        class SupportsSend(Protocol):
            def send(self) -> None: ...

        class Sender:
            def send(self) -> None: ...

        self.cont.bind(SupportsSend).to_class(Sender)
        assert isinstance(self.cont.make(SupportsSend), Sender)

    def test_unbound_dependency_token_raises(self):
        @inject("missing")
        class Y:
            def __init__(self, missing):
                self.missing = missing

        with pytest.raises(NotConstructibleError):
            self.cont.make(Y)


def test_failing_dependency_aborts_before_next():
    c = Container()
    made = []

    class Later:
        def __init__(self):
            made.append(self)

    @inject("missing", Later)
    class Y:
        def __init__(self, a, b):
            self.a = a
            self.b = b

    with pytest.raises(NotConstructibleError):
        c.make(Y)
    assert made == []


def test_none_in_declaration_raises_invalid_token_error():
    c = Container()

    @inject(None)
    class Y:
        def __init__(self, a):
            self.a = a

    with pytest.raises(TypeError):
        c.make(Y)


def test_all_resolution_errors_share_a_base():
    c = Container()

    class Y:
        def __init__(self, a):
            self.a = a

    for token in (None, "unbound", Y):
        with pytest.raises(ResolutionError):
            c.make(token)


def test_constructor_errors_propagate():
    c = Container()

    class Broken:
        def __init__(self):
            raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        c.make(Broken)
