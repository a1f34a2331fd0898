"""
Tests for the change notification dispatcher.

测试变更通知分发器。
"""

import threading
from typing import List, Tuple

import pytest

from hotconf.application.dispatcher import ChangeDispatcher
from hotconf.core.interfaces.drivers import SourceEvent


class TestChangeDispatcher:
    """测试 ChangeDispatcher 类"""

    def setup_method(self) -> None:
        """测试前设置"""
        self.events: List[SourceEvent] = []
        self.dispatcher = ChangeDispatcher(self.events.append, queue_size=4)

    def teardown_method(self) -> None:
        """测试后清理"""
        self.dispatcher.stop()

    def test_invalid_queue_size(self) -> None:
        """测试非法队列大小"""
        with pytest.raises(ValueError):
            ChangeDispatcher(self.events.append, queue_size=0)

    def test_notify_before_start(self) -> None:
        """测试启动前通知被拒绝"""
        assert not self.dispatcher.notify(SourceEvent.MODIFIED)
        assert self.dispatcher.metrics['events_received'] == 0

    def test_events_delivered_in_order(self) -> None:
        """测试事件按顺序投递"""
        self.dispatcher.start()
        assert self.dispatcher.running

        assert self.dispatcher.notify(SourceEvent.MODIFIED)
        assert self.dispatcher.notify(SourceEvent.REMOVED)
        assert self.dispatcher.wait_idle(timeout=5.0)

        assert self.events == [SourceEvent.MODIFIED, SourceEvent.REMOVED]
        assert self.dispatcher.metrics['events_processed'] == 2

    def test_start_twice(self) -> None:
        """测试重复启动"""
        self.dispatcher.start()
        self.dispatcher.start()
        self.dispatcher.notify(SourceEvent.MODIFIED)
        assert self.dispatcher.wait_idle(timeout=5.0)
        assert self.events == [SourceEvent.MODIFIED]

    def test_full_queue_drops_events(self) -> None:
        """测试队列满时丢弃事件"""
        entered = threading.Event()
        release = threading.Event()
        handled: List[SourceEvent] = []

        def blocking_handler(event: SourceEvent) -> None:
            entered.set()
            release.wait(timeout=5.0)
            handled.append(event)

        dispatcher = ChangeDispatcher(blocking_handler, queue_size=1)
        dispatcher.start()
        try:
            assert dispatcher.notify(SourceEvent.MODIFIED)
            assert entered.wait(timeout=5.0)

            assert dispatcher.notify(SourceEvent.MODIFIED)
            assert not dispatcher.notify(SourceEvent.REMOVED)

            release.set()
            assert dispatcher.wait_idle(timeout=5.0)
        finally:
            release.set()
            dispatcher.stop()

        assert handled == [SourceEvent.MODIFIED, SourceEvent.MODIFIED]
        metrics = dispatcher.metrics
        assert metrics['events_received'] == 3
        assert metrics['events_dropped'] == 1
        assert metrics['events_processed'] == 2

    def test_handler_errors_reported(self) -> None:
        """测试处理异常被报告"""
        errors: List[Tuple[SourceEvent, Exception]] = []

        def failing_handler(event: SourceEvent) -> None:
            raise RuntimeError("reload failed")

        dispatcher = ChangeDispatcher(
            failing_handler, error_handler=lambda event, e: errors.append((event, e)))
        dispatcher.start()
        try:
            dispatcher.notify(SourceEvent.REMOVED)
            assert dispatcher.wait_idle(timeout=5.0)
        finally:
            dispatcher.stop()

        assert len(errors) == 1
        assert errors[0][0] is SourceEvent.REMOVED
        assert isinstance(errors[0][1], RuntimeError)
        assert dispatcher.metrics['events_failed'] == 1

    def test_handler_error_without_error_handler(self) -> None:
        """测试没有错误处理器时继续运行"""
        calls: List[SourceEvent] = []

        def handler(event: SourceEvent) -> None:
            calls.append(event)
            if len(calls) == 1:
                raise RuntimeError("first fails")

        dispatcher = ChangeDispatcher(handler)
        dispatcher.start()
        try:
            dispatcher.notify(SourceEvent.MODIFIED)
            dispatcher.notify(SourceEvent.MODIFIED)
            assert dispatcher.wait_idle(timeout=5.0)
        finally:
            dispatcher.stop()

        assert len(calls) == 2

    def test_stop_rejects_further_events(self) -> None:
        """测试停止后拒绝事件"""
        self.dispatcher.start()
        self.dispatcher.stop()
        assert not self.dispatcher.running
        assert not self.dispatcher.notify(SourceEvent.MODIFIED)
        assert self.dispatcher.wait_idle(timeout=1.0)

    def test_stop_is_idempotent(self) -> None:
        """测试重复停止"""
        self.dispatcher.start()
        self.dispatcher.stop()
        self.dispatcher.stop()
        assert not self.dispatcher.running
