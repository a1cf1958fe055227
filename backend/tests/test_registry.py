"""
Fetchr — Handler Registry Unit Tests
=====================================

What we test:
    ✅ resolve returns the exact registered instance
    ✅ unknown or empty keys raise NotFoundError
    ✅ malformed handlers are rejected with ConfigurationError
    ✅ duplicate-name policy (same instance ok, different handler rejected)
"""

from types import SimpleNamespace

import pytest

from fetchr.exceptions import ConfigurationError, NotFoundError
from fetchr.services.registry import HandlerRegistry

from conftest import EchoHandler


def _noop(*args):
    return None


def _handler(name, **overrides):
    methods = {op: _noop for op in ("read", "create", "update", "delete")}
    methods.update(overrides)
    return SimpleNamespace(name=name, **methods)


class TestRegister:
    """Tests for HandlerRegistry.register()."""

    def setup_method(self):
        self.registry = HandlerRegistry()

    def test_register_and_resolve_same_instance(self):
        handler = EchoHandler("widgets")
        self.registry.register(handler)
        assert self.registry.resolve("widgets") is handler

    def test_resolve_each_of_many(self):
        handlers = [EchoHandler(name) for name in ("a", "b", "c")]
        for handler in handlers:
            self.registry.register(handler)
        for handler in handlers:
            assert self.registry.resolve(handler.name) is handler

    def test_constructor_registers_handlers(self):
        registry = HandlerRegistry([EchoHandler("a"), EchoHandler("b")])
        assert registry.names() == ["a", "b"]
        assert len(registry) == 2
        assert "a" in registry

    def test_duck_typed_handler_accepted(self):
        handler = _handler("plain")
        self.registry.register(handler)
        assert self.registry.resolve("plain") is handler

    def test_none_rejected(self):
        with pytest.raises(ConfigurationError, match="not defined correctly"):
            self.registry.register(None)

    @pytest.mark.parametrize("name", [None, "", "   ", 42])
    def test_unusable_name_rejected(self, name):
        with pytest.raises(ConfigurationError):
            self.registry.register(_handler(name))

    def test_dotted_name_rejected(self):
        with pytest.raises(ConfigurationError, match="must not contain"):
            self.registry.register(_handler("widgets.v2"))

    def test_missing_operation_rejected(self):
        handler = _handler("partial", delete=None)
        with pytest.raises(ConfigurationError, match="delete") as exc_info:
            self.registry.register(handler)
        assert exc_info.value.context["missing"] == ["delete"]
        assert "partial" not in self.registry

    def test_same_instance_twice_is_noop(self):
        handler = EchoHandler("widgets")
        self.registry.register(handler)
        self.registry.register(handler)
        assert self.registry.resolve("widgets") is handler
        assert len(self.registry) == 1

    def test_different_handler_same_name_rejected(self):
        first = EchoHandler("widgets")
        self.registry.register(first)
        with pytest.raises(ConfigurationError, match="already registered"):
            self.registry.register(EchoHandler("widgets"))
        assert self.registry.resolve("widgets") is first


class TestResolve:
    """Tests for HandlerRegistry.resolve()."""

    def setup_method(self):
        self.registry = HandlerRegistry([EchoHandler("widgets")])

    def test_unregistered_raises_not_found(self):
        with pytest.raises(NotFoundError) as exc_info:
            self.registry.resolve("gadgets")
        assert exc_info.value.status_code == 404
        assert "gadgets" in exc_info.value.message

    @pytest.mark.parametrize("key", ["", None])
    def test_empty_key_raises_not_found(self, key):
        with pytest.raises(NotFoundError):
            self.registry.resolve(key)

    def test_lookup_is_exact(self):
        with pytest.raises(NotFoundError):
            self.registry.resolve("Widgets")
