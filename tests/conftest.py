import os
from pathlib import Path
from collections.abc import Iterator
from typing import Any

import pytest

# Monkeypatch coverage to bypass teardown crash in act/docker
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    # Nukes the teardown assertion that fails in act
    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


@pytest.fixture(autouse=True, scope="session")  # type: ignore[misc]
def isolated_dirs(tmp_path_factory: pytest.TempPathFactory) -> Iterator[Path]:
    """Keep config and history lookups away from the real home directory."""
    base = tmp_path_factory.mktemp("tally")
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("TALLY_CONFIG_DIR", str(base / "config"))
        mp.setenv("TALLY_STATE_DIR", str(base / "state"))
        yield base
