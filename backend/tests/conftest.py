"""
Pytest configuration for the knowledgebase backend.
"""
import json
from datetime import datetime, timedelta, timezone

import pytest

from backend.app.services.progress.models import FileRecord, FileStatus
from backend.app.services.progress.timing import fixed_duration
from backend.app.services.progress.tracker import LifecycleEngine
from backend.tests.helpers import PHASE, TICK, WINDOW


@pytest.fixture
def engine():
    """Engine with short deterministic timings."""
    eng = LifecycleEngine(
        tick_interval=TICK,
        progress_step=10,
        phase_duration=fixed_duration(PHASE),
        upload_window=lambda count: WINDOW,
    )
    yield eng
    eng.shutdown()


@pytest.fixture
def make_record():
    """Build FileRecords with increasing upload times."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(name, size=100, mime_type="application/pdf", status=FileStatus.UPLOADED, **kwargs):
        counter["n"] += 1
        return FileRecord(
            id=kwargs.pop("id", f"rec{counter['n']}"),
            name=name,
            size=size,
            mime_type=mime_type,
            uploaded_at=kwargs.pop("uploaded_at", base + timedelta(minutes=counter["n"])),
            status=status,
            progress=kwargs.pop("progress", 100),
        )

    return _make


@pytest.fixture
def settings_home(tmp_path, monkeypatch):
    """Point the settings directory at a temp dir."""
    monkeypatch.setenv("KNOWLEDGEBASE_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def client(settings_home):
    """FastAPI test client with fast phase timings."""
    from fastapi.testclient import TestClient
    from backend.main import app

    fast = {
        "tick_interval_ms": 10,
        "phase_min_ms": 100,
        "phase_jitter_ms": 0,
        "batch_base_ms": 100,
        "batch_per_file_ms": 0,
    }
    (settings_home / "settings.json").write_text(json.dumps(fast))

    with TestClient(app) as test_client:
        yield test_client
