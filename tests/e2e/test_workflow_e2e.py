# tests/e2e/test_workflow_e2e.py
"""
Teste ponta a ponta: dois steps encadeados por tokens.

    mapreads (uma tarefa por amostra) → count (uma tarefa para a lista)

O scheduler do teste é mínimo: coleta os tokens do primeiro step,
monta um Data do tipo lista com os alinhamentos e cria o contexto do
segundo step. Settings e Manifest são os mesmos para toda a execução.
"""

from pathlib import Path

from seqflow import __version__
from seqflow.core.config.settings import load_settings
from seqflow.core.data.data import Data
from seqflow.core.engine.executor import LocalTaskExecutor
from seqflow.core.pipeline.context import TaskContext
from seqflow.core.traceability.manifest import create_manifest, load_manifest, save_manifest
from tests.fixtures.formats import ALIGNMENTS
from tests.fixtures.modules.dummy_modules import CountModule, MapReadsModule


def test_mapreads_then_count(tmp_path: Path, make_step, make_reads, settings_defaults_yaml):
    defaults = tmp_path / "settings.yaml"
    defaults.write_text(settings_defaults_yaml, encoding="utf-8")
    settings = load_settings(defaults_path=defaults)

    manifest = create_manifest(run_id="e2e-001", seqflow_version=__version__, settings_hash=settings.hash)
    executor = LocalTaskExecutor(settings, manifest=manifest)

    mapreads = make_step(
        "mapreads", MapReadsModule, {"threads": settings.get("steps.mapreads.threads")}, settings=settings
    )
    count = make_step("count", CountModule, settings=settings)

    samples = [TaskContext(mapreads, {"reads": make_reads(name)}) for name in ("sampleA", "sampleB")]
    first = executor.execute(samples)
    assert first.success

    batch = Data(ALIGNMENTS, "reads", is_list=True)
    for token in sorted(mapreads.token_sink.tokens, key=lambda t: t.data.name):
        element = batch.add_data_to_list(token.data.name)
        element.set_files(token.data.files)

    summary = TaskContext(count, {"alignments": batch})
    assert summary.name == "reads"

    second = executor.execute([summary])
    assert second.success
    assert second.results[summary.id].counters == {"elements": 2}

    table = tmp_path / "output" / "count_counts_expression_reads.tsv"
    assert table.is_symlink()
    assert table.read_text(encoding="utf-8") == "sampleA\t1\nsampleB\t1\n"

    for name in ("sampleA", "sampleB"):
        assert (tmp_path / "output" / f"mapreads_alignments_alignments_{name}.sam").is_symlink()

    saved = load_manifest(save_manifest(manifest, tmp_path / "manifest.json"))
    assert [t["status"] for t in saved.tasks.values()] == ["success"] * 3
    assert saved.inputs["settings_hash"] == settings.hash
    assert len(saved.events_of("tokens_sent")) == 3
