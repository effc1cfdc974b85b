"""Test doubles for the embedded runtime and the bridge timers."""


class FakeSleep:
    """Records requested delays instead of waiting; on_sleep(n) runs after the n-th call."""

    def __init__(self, on_sleep=None):
        self.calls = []
        self.on_sleep = on_sleep

    async def __call__(self, delay):
        self.calls.append(delay)
        if self.on_sleep:
            self.on_sleep(len(self.calls))


class FakeWindow(dict):
    """
    Mapping-style runtime handle. Hooks are installed by name and every call
    is recorded as (hook, args).
    """

    def __init__(self, *hooks, **returns):
        super().__init__()
        self.calls = []
        for name in hooks:
            self.install(name, returns.get(name))

    def install(self, name, value=None):
        def hook(*args):
            self.calls.append((name, args))
            if isinstance(value, Exception):
                raise value
            return value() if callable(value) else value

        self[name] = hook

    def names(self):
        return [name for name, _ in self.calls]


ALL_HOOKS = (
    "updateParams",
    "setLightingPreset",
    "updateFog",
    "getSurfaceArea",
    "getFloorArea",
    "getOBJ",
    "getScreenshot",
)
