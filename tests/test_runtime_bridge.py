import asyncio
import unittest

from bridge.runtime_bridge import BridgeState, EmbeddedRuntimeBridge
from bridge.state import ControlState, Measurements
from fakes import ALL_HOOKS, FakeSleep, FakeWindow


def make_bridge(sleep, max_attempts=10, **kwargs):
    return EmbeddedRuntimeBridge(
        poll_interval=0.1, max_attempts=max_attempts, grace_delay=0.2, sleep=sleep, **kwargs
    )


class ReadinessPollingTests(unittest.TestCase):
    def test_ready_immediately_pushes_full_state(self):
        sleep = FakeSleep()
        bridge = make_bridge(sleep)
        window = FakeWindow(*ALL_HOOKS)

        state = asyncio.run(bridge.attach(window, ControlState()))

        self.assertEqual(state, BridgeState.READY)
        self.assertEqual(sleep.calls, [0.2])
        self.assertEqual(bridge.attempts, 1)
        self.assertIn(("updateParams", (1.0, 1.0, 20)), window.calls)
        self.assertIn(("setLightingPreset", ("Studio",)), window.calls)
        self.assertIn(("updateFog", ("#f0f0f0", 0.01)), window.calls)

    def test_hook_appears_on_fourth_check(self):
        window = FakeWindow("setLightingPreset")

        def on_sleep(n):
            if n == 3:
                window.install("updateParams")

        sleep = FakeSleep(on_sleep)
        bridge = make_bridge(sleep)
        state = asyncio.run(bridge.attach(window))

        self.assertEqual(state, BridgeState.READY)
        self.assertEqual(bridge.attempts, 4)
        self.assertEqual(sleep.calls, [0.1, 0.1, 0.1, 0.2])
        self.assertEqual(sleep.calls.count(0.2), 1)
        self.assertEqual(window.names()[0], "updateParams")

    def test_abandons_after_attempt_budget(self):
        sleep = FakeSleep()
        bridge = make_bridge(sleep, max_attempts=5)
        window = FakeWindow("setLightingPreset", "updateFog")

        state = asyncio.run(bridge.attach(window))

        self.assertEqual(state, BridgeState.ABANDONED)
        self.assertEqual(bridge.attempts, 5)
        self.assertEqual(sleep.calls, [0.1] * 4)
        self.assertEqual(window.calls, [])

        window.install("updateParams")
        bridge.apply(ControlState().evolve(levels=40, lighting="Night"))
        self.assertFalse(bridge.push_params())
        self.assertEqual(window.calls, [])

    def test_snapshot_changed_while_polling_is_used_for_first_push(self):
        window = FakeWindow()
        bridge = None

        def on_sleep(n):
            if n == 2:
                bridge.apply(ControlState().evolve(scale=2.0))
                window.install("updateParams")

        bridge = make_bridge(FakeSleep(on_sleep))
        asyncio.run(bridge.attach(window, ControlState()))

        self.assertEqual(window.calls, [("updateParams", (2.0, 1.0, 20))])

    def test_detach_stops_pending_poll(self):
        window = FakeWindow()
        bridge = None

        def on_sleep(n):
            if n == 2:
                window.install("updateParams")
                bridge.detach()

        bridge = make_bridge(FakeSleep(on_sleep))
        state = asyncio.run(bridge.attach(window))

        self.assertEqual(state, BridgeState.UNLOADED)
        self.assertEqual(window.calls, [])
        self.assertIsNone(bridge.surface)

    def test_reattach_starts_fresh(self):
        bridge = make_bridge(FakeSleep())
        first = FakeWindow("updateParams", "getSurfaceArea", getSurfaceArea=50.0)
        asyncio.run(bridge.attach(first))
        self.assertEqual(bridge.measurements.surface_area, 50.0)

        second = FakeWindow("updateParams")
        asyncio.run(bridge.attach(second))
        self.assertEqual(bridge.measurements, Measurements())
        self.assertEqual(bridge.attempts, 1)


class PushTests(unittest.TestCase):
    def ready_bridge(self, window, **kwargs):
        bridge = make_bridge(FakeSleep(), **kwargs)
        asyncio.run(bridge.attach(window))
        window.calls.clear()
        return bridge

    def test_missing_hooks_do_not_block_others(self):
        window = FakeWindow("updateParams", "updateFog")
        bridge = make_bridge(FakeSleep())
        asyncio.run(bridge.attach(window))
        self.assertEqual(window.names(), ["updateParams", "updateFog"])

    def test_faulting_hook_is_contained(self):
        window = FakeWindow("updateParams", "setLightingPreset", "updateFog",
                            setLightingPreset=RuntimeError("bad preset"))
        bridge = make_bridge(FakeSleep())
        state = asyncio.run(bridge.attach(window))
        self.assertEqual(state, BridgeState.READY)
        self.assertEqual(window.names(), ["updateParams", "setLightingPreset", "updateFog"])

    def test_apply_pushes_only_changed_groups(self):
        window = FakeWindow("updateParams", "setLightingPreset", "updateFog")
        bridge = self.ready_bridge(window)

        bridge.apply(bridge.snapshot.evolve(levels=30))
        self.assertEqual(window.calls, [("updateParams", (1.0, 1.0, 30))])
        self.assertEqual(bridge.state, BridgeState.ACTIVE)

        window.calls.clear()
        bridge.apply(bridge.snapshot.evolve(lighting="Night"))
        self.assertEqual(window.calls, [("setLightingPreset", ("Night",))])

        window.calls.clear()
        bridge.apply(bridge.snapshot.evolve(color="#202030", density=0.05))
        self.assertEqual(window.calls, [("updateFog", ("#202030", 0.05))])

    def test_apply_before_load_only_stores(self):
        bridge = make_bridge(FakeSleep())
        snapshot = ControlState().evolve(height=3.0)
        bridge.apply(snapshot)
        self.assertEqual(bridge.snapshot, snapshot)
        self.assertEqual(bridge.state, BridgeState.UNLOADED)


class PullTests(unittest.TestCase):
    def test_measurements_after_params_push(self):
        seen = []
        window = FakeWindow("updateParams", "getSurfaceArea", "getFloorArea",
                            getSurfaceArea=120.5, getFloorArea=float("nan"))
        bridge = make_bridge(FakeSleep(), on_measurements=seen.append)
        asyncio.run(bridge.attach(window))

        self.assertEqual(bridge.measurements, Measurements(surface_area=120.5, floor_area=None))
        self.assertEqual(len(seen), 1)

    def test_broken_measurement_keeps_previous_value(self):
        window = FakeWindow("updateParams", "getSurfaceArea", "getFloorArea",
                            getSurfaceArea=80.0, getFloorArea=400)
        bridge = make_bridge(FakeSleep())
        asyncio.run(bridge.attach(window))

        window.install("getSurfaceArea", RuntimeError("disposed"))
        window.install("getFloorArea", True)
        bridge.apply(bridge.snapshot.evolve(scale=1.5))

        self.assertEqual(bridge.measurements.surface_area, 80.0)
        self.assertEqual(bridge.measurements.floor_area, 400.0)

    def test_exports(self):
        async def obj():
            return "o tower\nv 0 0 0\n"

        window = FakeWindow("updateParams", "getOBJ", getOBJ=obj)
        bridge = make_bridge(FakeSleep())
        asyncio.run(bridge.attach(window))

        self.assertEqual(asyncio.run(bridge.export_geometry()), "o tower\nv 0 0 0\n")
        self.assertIsNone(asyncio.run(bridge.export_snapshot()))

    def test_empty_export_is_no_value(self):
        window = FakeWindow("updateParams", "getScreenshot", getScreenshot="")
        bridge = make_bridge(FakeSleep())
        asyncio.run(bridge.attach(window))
        self.assertIsNone(asyncio.run(bridge.export_snapshot()))

    def test_pull_without_handle(self):
        bridge = make_bridge(FakeSleep())
        self.assertIsNone(asyncio.run(bridge.export_geometry()))
        self.assertEqual(bridge.measure(), Measurements())


if __name__ == "__main__":
    unittest.main()
