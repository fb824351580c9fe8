"""
Test suite for the loop controller (start / stop / skip / status).
"""

import asyncio
import io

import pytest

from conftest import FakeGateRunner, FakeProvider, make_registry, pending, wait_until, write_config
from taskloop.core import EventHub, LoopController
from taskloop.models import EventType, LoopState, Task, TaskStatus
from taskloop.utils.exceptions import ConflictError, GateExecutionError, ValidationError


def _drain(subscription):
    received = []
    while True:
        event = subscription.get_nowait()
        if event is None:
            return received
        received.append(event)


class TestLoopController:
    """Drive the controller on a real config file with fake capabilities."""

    @pytest.fixture(autouse=True)
    def _setup(self, tmp_path, config_path):
        self.path = config_path
        self.provider = FakeProvider()
        self.hub = EventHub()
        self.subscription = self.hub.subscribe()
        self.work_dir = tmp_path

    def _controller(self, tasks, **config):
        self.store = write_config(self.path, tasks, **config)
        return LoopController(
            self.store,
            make_registry(self.provider),
            self.hub,
            self.work_dir,
            gate_runner=FakeGateRunner(),
            stop_timeout_seconds=5,
            transcript=io.StringIO(),
        )

    def _types(self):
        return [e.type for e in _drain(self.subscription)]

    def test_initially_idle(self):
        controller = self._controller([pending("1")])
        assert controller.status() == {"running": False}
        assert controller.state == LoopState.IDLE

    def test_run_completes_in_background(self):
        controller = self._controller([pending("1"), pending("2")])

        async def scenario():
            assert await controller.start() == {"status": "started"}
            assert controller.status() == {"running": True}
            await wait_until(lambda: not controller.running)

        asyncio.run(scenario())
        assert [t.status for t in self.store.load().tasks] == [TaskStatus.DONE, TaskStatus.DONE]
        types = self._types()
        assert types[0] == EventType.LOOP_STARTED
        assert types[-1] == EventType.LOOP_COMPLETED
        assert types.count(EventType.TASK_DONE) == 2

    def test_start_while_running_conflicts(self):
        controller = self._controller([pending("1", "slow")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            await controller.start()
            await wait_until(lambda: self.provider.calls)
            with pytest.raises(ConflictError) as exc_info:
                await controller.start()
            assert str(exc_info.value) == "loop already running"
            await controller.stop()

        asyncio.run(scenario())
        assert len(self.provider.calls) == 1

    def test_concurrent_starts_spawn_one_run(self):
        controller = self._controller([pending("1", "slow")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            results = await asyncio.gather(
                controller.start(), controller.start(), controller.start(),
                return_exceptions=True,
            )
            await wait_until(lambda: self.provider.calls)
            await controller.stop()
            return results

        results = asyncio.run(scenario())
        assert results.count({"status": "started"}) == 1
        assert sum(isinstance(r, ConflictError) for r in results) == 2
        assert len(self.provider.calls) == 1

    def test_start_without_pending_tasks(self):
        controller = self._controller([Task(id="1", title="t", status=TaskStatus.DONE)])
        result = asyncio.run(controller.start())
        assert result == {"status": "completed", "message": "no pending tasks"}
        assert controller.status() == {"running": False}
        assert self._types() == []

    def test_start_rejects_invalid_max_iterations(self):
        controller = self._controller([pending("1")], max_iterations=0)
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(controller.start())
        assert str(exc_info.value) == "maxIterations must be >= 1"
        assert not controller.running

    def test_stop_when_idle_succeeds(self):
        controller = self._controller([pending("1")])
        assert asyncio.run(controller.stop()) == {"status": "stopped"}
        assert self._types() == [EventType.LOOP_STOPPED]

    def test_stop_cancels_run_and_suppresses_completion(self):
        controller = self._controller([pending("1", "slow"), pending("2")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            await controller.start()
            await wait_until(lambda: self.provider.calls)
            assert await controller.stop() == {"status": "stopped"}
            assert controller.state == LoopState.IDLE
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert self.provider.cancelled == 1
        assert [t.status for t in self.store.load().tasks] == [TaskStatus.PENDING, TaskStatus.PENDING]
        types = self._types()
        assert types[-1] == EventType.LOOP_STOPPED
        assert EventType.LOOP_COMPLETED not in types
        assert EventType.LOOP_ERROR not in types

    def test_start_after_stop(self):
        controller = self._controller([pending("1", "slow")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            await controller.start()
            await wait_until(lambda: self.provider.calls)
            await controller.stop()
            self.provider.block_titles.clear()
            assert await controller.start() == {"status": "started"}
            await wait_until(lambda: not controller.running)

        asyncio.run(scenario())
        assert self.store.load().tasks[0].status == TaskStatus.DONE

    def test_skip_when_idle_conflicts(self):
        controller = self._controller([pending("1")])
        with pytest.raises(ConflictError) as exc_info:
            asyncio.run(controller.skip())
        assert str(exc_info.value) == "no loop running"

    def test_skip_fails_current_task_and_restarts(self):
        controller = self._controller([pending("1", "slow"), pending("2")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            await controller.start()
            await wait_until(lambda: self.provider.calls)
            assert await controller.skip() == {"status": "skipped"}
            await wait_until(lambda: not controller.running and controller.state == LoopState.IDLE)

        asyncio.run(scenario())
        first, second = self.store.load().tasks
        assert first.status == TaskStatus.FAILED
        assert first.learnings == "Skipped by user via dashboard"
        assert second.status == TaskStatus.DONE

        events = _drain(self.subscription)
        skipped = [e for e in events if e.type == EventType.TASK_FAILED and e.data.get("reason") == "skipped"]
        assert [e.task_id for e in skipped] == ["1"]
        assert events[-1].type == EventType.LOOP_COMPLETED

    def test_skip_last_task_does_not_restart(self):
        controller = self._controller([pending("1", "slow")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            await controller.start()
            await wait_until(lambda: self.provider.calls)
            await controller.skip()
            assert controller.state == LoopState.IDLE

        asyncio.run(scenario())
        assert self.store.load().tasks[0].status == TaskStatus.FAILED
        assert len(self.provider.calls) == 1

    def test_stop_during_skip_prevents_restart(self):
        controller = self._controller([pending("1", "slow"), pending("2")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            await controller.start()
            await wait_until(lambda: self.provider.calls)
            await asyncio.gather(controller.skip(), controller.stop())
            assert controller.state == LoopState.IDLE

        asyncio.run(scenario())
        assert [t.status for t in self.store.load().tasks] == [TaskStatus.FAILED, TaskStatus.PENDING]

    def test_gate_mechanism_error_reports_loop_error(self):
        controller = self._controller([pending("1")])
        controller.gate_runner = FakeGateRunner(error=GateExecutionError("make", "cannot spawn"))

        async def scenario():
            await controller.start()
            await wait_until(lambda: not controller.running)

        asyncio.run(scenario())
        events = _drain(self.subscription)
        assert events[-1].type == EventType.LOOP_ERROR
        assert "cannot spawn" in events[-1].data["error"]
        assert self.store.load().tasks[0].status == TaskStatus.PENDING

    def test_shutdown_stops_without_event(self):
        controller = self._controller([pending("1", "slow")])
        self.provider.block_titles = {"slow"}

        async def scenario():
            await controller.start()
            await wait_until(lambda: self.provider.calls)
            _drain(self.subscription)
            await controller.shutdown()

        asyncio.run(scenario())
        assert controller.state == LoopState.IDLE
        assert EventType.LOOP_STOPPED not in self._types()

    def test_start_refused_while_run_outlives_stop_timeout(self):
        controller = self._controller([pending("1", "slow")])
        controller.stop_timeout_seconds = 0.05
        release = asyncio.Event()

        class LingeringProvider(FakeProvider):
            async def run(self, prompt, work_dir):
                self.calls.append(prompt)
                try:
                    await asyncio.sleep(3600)
                except asyncio.CancelledError:
                    # keep unwinding well past the stop timeout
                    await release.wait()
                    raise

        controller.registry = make_registry(LingeringProvider())

        async def scenario():
            await controller.start()
            await wait_until(lambda: controller.registry.get("fake").calls)
            assert await controller.stop() == {"status": "stopped"}

            assert controller.state == LoopState.STOPPING
            assert controller.status() == {"running": False}
            with pytest.raises(ConflictError):
                await controller.start()

            release.set()
            await wait_until(lambda: controller.state == LoopState.IDLE)
            assert self.store.load().tasks[0].status == TaskStatus.PENDING

        asyncio.run(scenario())
