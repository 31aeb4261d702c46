import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_sitegate_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("SITEGATE_"):
            monkeypatch.delenv(name, raising=False)
