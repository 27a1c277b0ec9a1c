# tests/core/traceability/test_manifest_round_trip.py
"""
Testes de persistência do Manifest (save_manifest / load_manifest).

A representação em disco é JSON determinístico; o round-trip é exato.
"""

from datetime import datetime, timezone
from pathlib import Path

from seqflow.core.traceability.manifest import (
    add_event,
    create_manifest,
    load_manifest,
    save_manifest,
)


def test_round_trip_save_load(tmp_path: Path):
    m = create_manifest(
        run_id="run-004",
        started_at=datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc),
        seqflow_version="2.0.0",
        settings_hash="d" * 64,
    )
    m.tasks["12"] = {"context_id": 12, "status": "success", "counters": {"reads": 10}}
    add_event(m, event_type="task_finished", step_id="mapreads", context_id=12, payload={"status": "success"})

    out = save_manifest(m, tmp_path / "run" / "manifest.json")
    assert out.exists()

    loaded = load_manifest(out)
    assert loaded.to_dict() == m.to_dict()
    assert loaded.task(12)["counters"] == {"reads": 10}


def test_saved_json_is_deterministic(tmp_path: Path):
    kwargs = dict(
        run_id="run-005",
        started_at=datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc),
        seqflow_version="2.0.0",
        settings_hash="e" * 64,
    )
    a = save_manifest(create_manifest(**kwargs), tmp_path / "a.json")
    b = save_manifest(create_manifest(**kwargs), tmp_path / "b.json")
    assert a.read_text(encoding="utf-8") == b.read_text(encoding="utf-8")
