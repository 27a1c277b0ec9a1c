# tests/core/pipeline/test_context_persistence.py
"""
Testes de persistência do TaskContext.

O contexto é gravado em um envelope JSON versionado junto com os
Settings efetivos, para execução fora do processo. O contexto
restaurado representa a mesma tarefa: mesmo id, mesmo nome, mesmos
vínculos e mesmos Settings.
"""

import json
from pathlib import Path

import pytest

from seqflow.core.config.settings import Settings
from seqflow.core.data.data import Data
from seqflow.core.exceptions import ContextSerializationError, ContextVersionMismatchError
from seqflow.core.pipeline.context import ENVELOPE_FORMAT, ENVELOPE_VERSION, TaskContext
from tests.fixtures.formats import ALIGNMENTS
from tests.fixtures.modules.dummy_modules import CountModule, MapReadsModule


def _mapreads_context(make_step, make_reads, **kwargs):
    step = make_step("mapreads", MapReadsModule)
    return step, TaskContext(step, {"reads": make_reads("s1")}, **kwargs)


def test_round_trip_bytes(make_step, make_reads, registry):
    custom = Settings.from_mapping({"engine": {"max_workers": 3}, "logging": {"task_level": "DEBUG"}})
    step, context = _mapreads_context(make_step, make_reads, settings=custom, name="run1")
    context.output_data("alignments", "s1").get_data_file()

    restored = TaskContext.from_bytes(context.to_bytes(), step=step, registry=registry)

    assert restored.id == context.id
    assert restored.name == "run1"
    assert restored.settings == custom
    assert restored.settings.task_log_level == "DEBUG"
    assert restored.input_data("reads").files == context.input_data("reads").files
    assert restored.bound_output("alignments").files == context.bound_output("alignments").files
    assert restored.to_dict() == context.to_dict()


def test_envelope_layout(make_step, make_reads):
    _, context = _mapreads_context(make_step, make_reads)
    envelope = json.loads(context.to_bytes().decode("utf-8"))
    assert envelope["format"] == ENVELOPE_FORMAT
    assert envelope["version"] == ENVELOPE_VERSION
    assert envelope["context"]["step_id"] == "mapreads"
    assert envelope["settings"] == context.settings.to_dict()


def test_default_name_survives_round_trip(make_step, registry):
    step = make_step("count", CountModule)
    batch = Data(ALIGNMENTS, "reads", is_list=True)
    batch.add_data_to_list("sampleA")
    context = TaskContext(step, {"alignments": batch})

    restored = TaskContext.from_bytes(context.to_bytes(), step=step, registry=registry)
    assert not restored.has_explicit_name
    assert restored.name == "reads"
    assert [e.name for e in restored.input_data("alignments").list_elements()] == ["sampleA"]


def test_version_mismatch(make_step, make_reads, registry):
    step, context = _mapreads_context(make_step, make_reads)
    envelope = json.loads(context.to_bytes())
    envelope["version"] = ENVELOPE_VERSION + 1

    with pytest.raises(ContextVersionMismatchError):
        TaskContext.from_bytes(json.dumps(envelope).encode("utf-8"), step=step, registry=registry)


@pytest.mark.parametrize(
    "raw",
    [
        b"\xff\xfe not utf-8",
        b"{not json",
        b'{"format": "other", "version": 1}',
        b'{"format": "seqflow.task-context", "version": 1, "context": {}}',
    ],
)
def test_malformed_stream(make_step, registry, raw):
    step = make_step("mapreads", MapReadsModule)
    with pytest.raises(ContextSerializationError):
        TaskContext.from_bytes(raw, step=step, registry=registry)


def _tamper(context, change):
    envelope = json.loads(context.to_bytes())
    change(envelope)
    return json.dumps(envelope).encode("utf-8")


def _inputs_as_list(envelope):
    envelope["context"]["inputs"] = ["reads"]


def _unknown_format(envelope):
    envelope["context"]["inputs"]["reads"]["format"] = "nosuchformat"


def _conflicting_settings(envelope):
    envelope["settings"]["engine"]["max_workers"] = "many"


@pytest.mark.parametrize("change", [_inputs_as_list, _unknown_format, _conflicting_settings])
def test_tampered_envelope_raises_serialization_error(make_step, make_reads, registry, change):
    """Qualquer campo inválido no envelope vira ContextSerializationError."""
    step, context = _mapreads_context(make_step, make_reads)
    raw = _tamper(context, change)

    with pytest.raises(ContextSerializationError) as exc:
        TaskContext.from_bytes(raw, step=step, registry=registry)
    assert exc.value.__cause__ is not None


def test_step_mismatch(make_step, make_reads, registry):
    _, context = _mapreads_context(make_step, make_reads)
    other = make_step("count", CountModule)
    with pytest.raises(ContextSerializationError):
        TaskContext.from_bytes(context.to_bytes(), step=other, registry=registry)


def test_save_and_load(make_step, make_reads, registry, tmp_path: Path):
    step, context = _mapreads_context(make_step, make_reads)
    path = context.save(tmp_path / "contexts" / "task.json")

    loaded = TaskContext.load(path, step=step, registry=registry)
    assert loaded.id == context.id
    assert loaded.name == context.name

    with pytest.raises(ContextSerializationError):
        TaskContext.load(tmp_path / "missing.json", step=step, registry=registry)


def test_restored_context_can_run_again_elsewhere(make_step, make_reads, registry):
    """As guardas de execução não viajam no envelope."""
    step, context = _mapreads_context(make_step, make_reads)
    context.claim_run()

    restored = TaskContext.from_bytes(context.to_bytes(), step=step, registry=registry)
    assert not restored.is_run_claimed
