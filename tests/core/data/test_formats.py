# tests/core/data/test_formats.py
"""
Testes de DataFormat, CompressionType e DataFormatRegistry.

O registry é explícito, populado antes da declaração de portas, e
rejeita nomes e prefixos duplicados.
"""

from pathlib import Path

import pytest

from seqflow.core.data.formats import (
    CompressionType,
    DataFormat,
    DataFormatRegistry,
    load_data_formats,
)
from seqflow.core.exceptions import (
    ConfigurationError,
    DuplicateDataFormatError,
    UnknownDataFormatError,
)
from tests.fixtures.formats import ALIGNMENTS, BOWTIE_INDEX, READS


def test_extensions_are_normalized():
    fmt = DataFormat(name="vcf", prefix="variants", extensions=("VCF", ".vcf.txt"))
    assert fmt.extensions == (".vcf", ".vcf.txt")
    assert fmt.default_extension == ".vcf"


def test_multi_file_and_list_capability():
    assert READS.is_multi_files
    assert not ALIGNMENTS.is_multi_files
    assert ALIGNMENTS.is_list_capable
    assert not BOWTIE_INDEX.is_list_capable


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "", "prefix": "x", "extensions": (".x",)},
        {"name": "x", "prefix": "Bad_Prefix", "extensions": (".x",)},
        {"name": "x", "prefix": "x", "extensions": ()},
        {"name": "x", "prefix": "x", "extensions": (".x",), "max_files": 0},
    ],
)
def test_invalid_format_raises(kwargs):
    with pytest.raises(ConfigurationError):
        DataFormat(**kwargs)


def test_format_dict_round_trip():
    assert DataFormat.from_dict(READS.to_dict()) == READS


def test_from_dict_accepts_single_extension():
    fmt = DataFormat.from_dict({"name": "gtf", "prefix": "annotation", "extension": "gtf"})
    assert fmt.extensions == (".gtf",)


def test_compression_detection():
    assert CompressionType.from_filename("a_b_reads_s1_file0.fq.bz2") is CompressionType.BZIP2
    assert CompressionType.from_filename("a_b_reads_s1_file0.fq.gz") is CompressionType.GZIP
    assert CompressionType.from_filename("a_b_reads_s1_file0.fq") is CompressionType.NONE
    assert CompressionType.remove_extension("x.fq.gz") == "x.fq"
    assert CompressionType.remove_extension("x.fq") == "x.fq"
    assert CompressionType.GZIP.extension == ".gz"
    assert CompressionType.NONE.extension == ""


def test_registry_lookup(registry):
    assert registry.lookup("reads_fastq") is READS
    assert registry.lookup_by_prefix("bowtieindex") is BOWTIE_INDEX
    assert registry.lookup_by_prefix("nope") is None
    assert registry.lookup_by_extension("FASTQ") == {READS}
    assert registry.resolve("alignments_sam") is ALIGNMENTS
    assert registry.resolve(ALIGNMENTS) is ALIGNMENTS
    assert READS in registry
    assert "reads_fastq" in registry
    assert len(registry) == 5


def test_registry_unknown_format(registry):
    with pytest.raises(UnknownDataFormatError):
        registry.lookup("bam")

    other = DataFormat(name="reads_fastq", prefix="reads", extensions=(".fastq",))
    with pytest.raises(UnknownDataFormatError):
        registry.resolve(other)


def test_registry_rejects_duplicates():
    registry = DataFormatRegistry()
    registry.register(READS)
    with pytest.raises(DuplicateDataFormatError):
        registry.register(READS)
    with pytest.raises(DuplicateDataFormatError):
        registry.register(DataFormat(name="other", prefix="reads", extensions=(".txt",)))


def test_load_data_formats_from_yaml(tmp_path: Path):
    catalog = tmp_path / "formats.yaml"
    catalog.write_text(
        """
formats:
  - name: reads_fastq
    prefix: reads
    extensions: [.fq, .fastq]
    max_files: 2
  - name: alignments_sam
    prefix: alignments
    extension: .sam
""",
        encoding="utf-8",
    )

    registry = load_data_formats(catalog)
    assert registry.lookup("reads_fastq").max_files == 2
    assert registry.lookup_by_prefix("alignments").default_extension == ".sam"


def test_load_data_formats_rejects_non_list(tmp_path: Path):
    catalog = tmp_path / "formats.yaml"
    catalog.write_text("formats:\n  reads: {}\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_data_formats(catalog)
