from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

# Environment knobs read by the interpreter at run time
_TINYPHP_ENV = ("TINYPHP_DEBUG_PY_TRACE", "TINYPHP_MAX_CALL_DEPTH")


@pytest.fixture(autouse=True)
def _clean_tinyphp_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Each test starts with default depth limit and no Python tracebacks."""
    for name in _TINYPHP_ENV:
        monkeypatch.delenv(name, raising=False)


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Refuse to run when two parametrized cases collapse onto one node ID."""
    del session
    del config

    counts: dict[str, int] = {}
    for item in items:
        counts[item.nodeid] = counts.get(item.nodeid, 0) + 1

    duplicates = sorted(nodeid for nodeid, count in counts.items() if count > 1)
    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in duplicates)
    raise pytest.UsageError(f"Duplicate pytest nodeids detected during collection:\n{lines}")
