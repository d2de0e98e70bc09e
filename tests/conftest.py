import asyncio
import inspect

import pytest


@pytest.fixture(autouse=True)
def _reset_app_state():
    """Ensure dependency overrides and the result history do not leak between tests."""
    from app import deps
    from app.main import app

    deps.get_settings.cache_clear()
    deps._history_instance = None
    app.dependency_overrides = {}
    yield
    deps.get_settings.cache_clear()
    deps._history_instance = None
    app.dependency_overrides = {}


def pytest_pyfunc_call(pyfuncitem):
    """Run async tests marked with pytest.mark.asyncio without external plugins."""
    if "asyncio" not in pyfuncitem.keywords:
        return None
    if not inspect.iscoroutinefunction(pyfuncitem.obj):
        return None
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        funcargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames
        }
        loop.run_until_complete(pyfuncitem.obj(**funcargs))
    finally:
        loop.close()
        asyncio.set_event_loop(None)
    return True
