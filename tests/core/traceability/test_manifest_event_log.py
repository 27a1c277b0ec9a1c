# tests/core/traceability/test_manifest_event_log.py
"""
Testes do Event Log do Manifest.

Cada chamada a `add_event` acrescenta exatamente um evento, na ordem de
chamada, com os campos opcionais presentes somente quando informados.
"""

from datetime import datetime, timezone

from seqflow.core.traceability.manifest import add_event, create_manifest


def test_event_log_appends_ordered_events():
    m = create_manifest(run_id="run-002", seqflow_version="2.0.0", settings_hash="b" * 64)
    t0 = datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc)
    t1 = datetime(2026, 1, 16, 12, 0, 1, tzinfo=timezone.utc)

    add_event(m, event_type="run_started", ts=t0, payload={"note": "begin"})
    add_event(m, event_type="task_started", ts=t1, step_id="mapreads", context_id=7)

    data = m.to_dict()
    assert [e["event_type"] for e in data["events"]] == ["run_started", "task_started"]
    assert data["events"][0] == {
        "event_type": "run_started",
        "timestamp": "2026-01-16T12:00:00+00:00",
        "payload": {"note": "begin"},
    }
    assert data["events"][1]["step_id"] == "mapreads"
    assert data["events"][1]["context_id"] == 7
    assert "payload" not in data["events"][1]
    assert m.events_of("task_started") == [data["events"][1]]
