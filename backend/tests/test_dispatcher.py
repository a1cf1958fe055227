"""
Fetchr — Dispatcher Unit Tests
===============================

What we test:
    ✅ read/delete handlers receive 5 arguments, create/update 6 (body before config)
    ✅ the handler key is the resource name's first segment
    ✅ unknown resources and operations reject the completion, no handler runs
    ✅ handler errors (returned, raised, or from a coroutine) reach the caller verbatim
    ✅ dispatch never resolves the completion on the success path
    ✅ a cancelled handler task rejects with a 503 HandlerError
"""

import asyncio
import logging
from unittest.mock import MagicMock, sentinel

import pytest

from fetchr.exceptions import HandlerError, NotFoundError, UnsupportedOperationError
from fetchr.models.call import Call, Operation
from fetchr.services.completion import Completion
from fetchr.services.dispatcher import Dispatcher
from fetchr.services.registry import HandlerRegistry

from conftest import EchoHandler


def _call(resource, operation, completion, **kwargs):
    return Call(
        resource=resource,
        operation=operation,
        completion=completion,
        context=kwargs.pop("context", sentinel.context),
        **kwargs,
    )


class TestArgumentShapes:

    @pytest.mark.parametrize("operation", [Operation.READ, Operation.DELETE])
    def test_read_and_delete_get_five_arguments(self, dispatcher, widget_handler, operation):
        completion = MagicMock()
        dispatcher.dispatch(
            _call("widgets.123", operation, completion, params={"id": "123"}, config={"c": 1})
        )

        method = getattr(widget_handler, operation.value)
        method.assert_called_once()
        assert method.call_args.args == (
            sentinel.context,
            "widgets.123",
            {"id": "123"},
            {"c": 1},
            completion,
        )

    @pytest.mark.parametrize("operation", [Operation.CREATE, Operation.UPDATE])
    def test_create_and_update_get_six_arguments(self, dispatcher, widget_handler, operation):
        completion = MagicMock()
        dispatcher.dispatch(
            _call("widgets", operation, completion, params={}, body={"name": "x"}, config={"c": 1})
        )

        method = getattr(widget_handler, operation.value)
        method.assert_called_once()
        assert method.call_args.args == (
            sentinel.context,
            "widgets",
            {},
            {"name": "x"},
            {"c": 1},
            completion,
        )

    def test_omitted_config_becomes_empty_mapping(self, dispatcher, widget_handler):
        dispatcher.dispatch(_call("widgets", "read", MagicMock(), params={"id": "1"}))

        args = widget_handler.read.call_args.args
        assert len(args) == 5
        assert args[3] == {}

    def test_del_alias_reaches_delete(self, dispatcher, widget_handler):
        dispatcher.dispatch(_call("widgets.9", "del", MagicMock()))
        widget_handler.delete.assert_called_once()

    def test_only_first_segment_selects_handler(self, dispatcher, widget_handler, echo_handler):
        dispatcher.dispatch(_call("echo.widgets.1", "read", MagicMock()))

        assert echo_handler.calls[0][0] == "read"
        assert echo_handler.calls[0][1][1] == "echo.widgets.1"
        widget_handler.read.assert_not_called()

    def test_success_path_leaves_completion_to_handler(self, dispatcher, widget_handler):
        completion = MagicMock()
        dispatcher.dispatch(_call("widgets", "read", completion))

        completion.resolve.assert_not_called()
        completion.reject.assert_not_called()


class TestDispatchFailures:

    def test_unknown_resource_rejects_completion(self, dispatcher, widget_handler):
        completion = MagicMock()
        dispatcher.dispatch(_call("gadgets.1", "read", completion))

        completion.reject.assert_called_once()
        error = completion.reject.call_args.args[0]
        assert isinstance(error, NotFoundError)
        assert error.key == "gadgets"

    def test_empty_resource_rejects_completion(self, dispatcher):
        completion = MagicMock()
        dispatcher.dispatch(_call("", "read", completion))

        assert isinstance(completion.reject.call_args.args[0], NotFoundError)

    @pytest.mark.parametrize("operation", ["patch", "list", "", None])
    def test_unknown_operation_rejects_and_calls_nothing(self, dispatcher, widget_handler, operation):
        completion = MagicMock()
        dispatcher.dispatch(_call("widgets", operation, completion))

        completion.reject.assert_called_once()
        assert isinstance(completion.reject.call_args.args[0], UnsupportedOperationError)
        for op in ("read", "create", "update", "delete"):
            getattr(widget_handler, op).assert_not_called()

    @pytest.mark.asyncio
    async def test_handler_rejection_relayed_verbatim(self, dispatcher, widget_handler):
        error = HandlerError("widget missing", status_code=404)
        widget_handler.read.side_effect = lambda *args: args[-1].reject(error)

        completion = Completion(resource="widgets.1")
        dispatcher.dispatch(_call("widgets.1", "read", completion))

        with pytest.raises(HandlerError) as exc_info:
            await completion.wait(timeout=1)
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_sync_handler_exception_delivered_to_completion(self, dispatcher, widget_handler):
        widget_handler.update.side_effect = KeyError("name")

        completion = Completion(resource="widgets")
        dispatcher.dispatch(_call("widgets", "update", completion, body={}))

        with pytest.raises(KeyError):
            await completion.wait(timeout=1)

    @pytest.mark.asyncio
    async def test_exception_after_resolve_is_logged(self, dispatcher, widget_handler, caplog):
        def resolve_then_fail(*args):
            args[-1].resolve("done")
            raise RuntimeError("cleanup failed")

        widget_handler.read.side_effect = resolve_then_fail

        completion = Completion(resource="widgets")
        with caplog.at_level(logging.ERROR, logger="fetchr.services.dispatcher"):
            dispatcher.dispatch(_call("widgets", "read", completion))

        assert (await completion.wait(timeout=1)).data == "done"
        assert "after resolving" in caplog.text


class AsyncWidgetHandler(EchoHandler):
    """Coroutine handler: resolves after yielding to the loop, or fails."""

    def __init__(self, fail_with=None):
        super().__init__("async")
        self.fail_with = fail_with

    async def read(self, context, resource, params, config, completion):
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        completion.resolve({"resource": resource, "params": params})

    async def create(self, context, resource, params, body, config, completion):
        completion.resolve({"body": body})


class TestCoroutineHandlers:

    @pytest.mark.asyncio
    async def test_coroutine_handler_resolves(self):
        dispatcher = Dispatcher(HandlerRegistry([AsyncWidgetHandler()]))
        completion = Completion(resource="async.1")

        dispatcher.dispatch(_call("async.1", "read", completion, params={"q": "x"}))

        result = await completion.wait(timeout=1)
        assert result.data == {"resource": "async.1", "params": {"q": "x"}}

    @pytest.mark.asyncio
    async def test_dispatch_does_not_wait_for_coroutine(self):
        dispatcher = Dispatcher(HandlerRegistry([AsyncWidgetHandler()]))
        completion = Completion(resource="async")

        dispatcher.dispatch(_call("async", "read", completion))

        assert not completion.resolved
        await completion.wait(timeout=1)
        assert completion.resolved

    @pytest.mark.asyncio
    async def test_coroutine_failure_delivered_to_completion(self):
        error = HandlerError("upstream down", status_code=503)
        dispatcher = Dispatcher(HandlerRegistry([AsyncWidgetHandler(fail_with=error)]))
        completion = Completion(resource="async")

        dispatcher.dispatch(_call("async", "read", completion))

        with pytest.raises(HandlerError) as exc_info:
            await completion.wait(timeout=1)
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_cancelled_coroutine_rejects_with_503(self):
        dispatcher = Dispatcher(HandlerRegistry([AsyncWidgetHandler(fail_with=asyncio.CancelledError())]))
        completion = Completion(resource="async")

        dispatcher.dispatch(_call("async", "read", completion))

        with pytest.raises(HandlerError) as exc_info:
            await completion.wait(timeout=1)
        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "handler cancelled"

    @pytest.mark.asyncio
    async def test_cancelling_the_task_rejects_with_503(self):
        started = asyncio.Event()

        class HangingHandler(EchoHandler):
            async def read(self, context, resource, params, config, completion):
                started.set()
                await asyncio.sleep(10)

        dispatcher = Dispatcher(HandlerRegistry([HangingHandler("hang")]))
        completion = Completion(resource="hang")
        dispatcher.dispatch(_call("hang", "read", completion))
        await started.wait()

        for task in list(dispatcher._tasks):
            task.cancel()

        with pytest.raises(HandlerError) as exc_info:
            await completion.wait(timeout=1)
        assert exc_info.value.status_code == 503
