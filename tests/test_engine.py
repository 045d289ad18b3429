# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Unit tests for the ConversionEngine.
"""
import logging
import zipfile
from pathlib import Path
from typing import List
from unittest.mock import patch

import pytest

from py_kaers_workbook.code_tables import CodeTables
from py_kaers_workbook.config import AppSettings, CodeTableSettings
from py_kaers_workbook.engine import ConversionEngine, UploadedFile, collect_uploads
from py_kaers_workbook.exceptions import CodeTableLoadError, WorkbookWriteError
from py_kaers_workbook.types import TableKind

SAMPLE_BATCH = {
    "GROUP.txt": "KAERS_NO|CASE_GROUP_NO|CASE_SEQ_NO\nC1|G1|1\nC2|G1|2\nC3|G2|1\n",
    "DEMO.txt": (
        "KAERS_NO|REPRT_CHANGE_CD|PTNT_SEX|PTNT_BRTYR_YYYY\n"
        "C1||1|1970\n"
        "C2|2|2|1980\n"
        "C3||1|1990\n"
    ),
    "EVENT.txt": (
        "KAERS_NO|ADR_MEDDRA_ENG_NM|ADR_START_DT\n"
        "C2|Nausea|20230101\n"
        "C1|Rash|20221201\n"
        "C2|Headache|20230102\n"
    ),
    "DRUG.txt": "KAERS_NO|DRUG_SEQ|DRUG_GB|DRUG_CD\nC2|1|1|101\nC1|1|1|202\n",
    "ASSESSMENT.txt": "KAERS_NO|DRUG_SEQ|EVALT_RESULT_CODE\nC2|1|2\nC1|1|1\n",
}


def _uploads(batch=SAMPLE_BATCH) -> List[UploadedFile]:  # type: ignore[no-untyped-def]
    return [UploadedFile(name=name, content=text.encode("utf-8")) for name, text in batch.items()]


def test_run_deduplicates_every_table(app_settings: AppSettings) -> None:
    """Test that superseded case versions are removed from all tables."""
    result = ConversionEngine(app_settings).run(_uploads())

    assert result.drop_set == {"C1"}
    for table in result.tables.values():
        assert "C1" not in table.column_values("KAERS_NO")
    assert result.tables[TableKind.GROUP].column_values("KAERS_NO") == ["C2", "C3"]


def test_run_builds_narrative(app_settings: AppSettings) -> None:
    """Test the narrative records of the surviving cases."""
    result = ConversionEngine(app_settings).run(_uploads())

    assert [r.case_key for r in result.narrative] == ["C2", "C3"]
    c2 = result.narrative[0]
    assert c2.group_id == "G1"
    assert c2.drug_name == "Aspirin Tab 100mg"
    assert c2.patient_sex == "female"
    assert c2.events == ("Nausea", "Headache")
    assert c2.causality == ("Probable",)
    assert c2.onset_date == "20230101"


def test_run_without_dedup(app_settings: AppSettings) -> None:
    """Test that deduplication can be switched off."""
    app_settings.processing.deduplicate = False

    result = ConversionEngine(app_settings).run(_uploads(), narrative=False)

    assert result.drop_set == set()
    assert result.narrative == []
    assert result.tables[TableKind.GROUP].column_values("KAERS_NO") == ["C1", "C2", "C3"]


def test_ordered_tables_follow_sheet_order(app_settings: AppSettings) -> None:
    """Test that tables are ordered by kind, not by upload order."""
    result = ConversionEngine(app_settings).run(_uploads())

    assert [t.kind for t in result.ordered_tables()] == [
        TableKind.DEMO,
        TableKind.EVENT,
        TableKind.DRUG,
        TableKind.ASSESSMENT,
        TableKind.GROUP,
    ]


def test_unrecognized_and_undecodable_files_are_skipped(
    app_settings: AppSettings, caplog: pytest.LogCaptureFixture
) -> None:
    """Test that file-level problems skip the file and the batch proceeds."""
    uploads = _uploads() + [
        UploadedFile(name="notes.txt", content=b"hello"),
        UploadedFile(name="TEST.txt", content=b"\xff\xfe\xfa"),
    ]
    app_settings.processing.encoding = "utf-8"

    with caplog.at_level(logging.WARNING):
        result = ConversionEngine(app_settings).run(uploads)

    assert result.skipped_files == ["notes.txt", "TEST.txt"]
    assert TableKind.TEST not in result.tables
    assert "Skipping TEST.txt" in caplog.text
    assert len(result.narrative) == 2


def test_last_upload_of_a_kind_wins(
    app_settings: AppSettings, caplog: pytest.LogCaptureFixture
) -> None:
    """Test that a later file of the same kind replaces the earlier one."""
    uploads = [
        UploadedFile(name="DEMO.txt", content=b"KAERS_NO|PTNT_SEX\nA|1\n"),
        UploadedFile(name="old/DEMO.dat", content=b"KAERS_NO|PTNT_SEX\nB|2\n"),
    ]

    with caplog.at_level(logging.WARNING):
        result = ConversionEngine(app_settings).run(uploads)

    assert result.tables[TableKind.DEMO].rows == [["B", "female"]]
    assert "replaces DEMO.txt" in caplog.text


def test_empty_batch(app_settings: AppSettings) -> None:
    """Test that a batch without recognized files yields nothing."""
    result = ConversionEngine(app_settings).run([UploadedFile(name="x.csv", content=b"")])

    assert result.tables == {}
    assert result.ordered_tables() == []


def test_missing_code_table_aborts_run(tmp_path: Path) -> None:
    """Test that a missing reference table propagates out of the engine."""
    settings = AppSettings(code_tables=CodeTableSettings(reference_dir=str(tmp_path / "none")))

    with pytest.raises(CodeTableLoadError):
        ConversionEngine(settings).run(_uploads())


def test_engine_uses_injected_code_tables(app_settings: AppSettings, reference_dir: Path) -> None:
    """Test that a shared code table cache can be handed to the engine."""
    tables = CodeTables(reference_dir)
    engine = ConversionEngine(app_settings, code_tables=tables)

    engine.run(_uploads())

    assert engine.code_tables is tables
    assert tables.is_loaded("DRUG_CODE")


def test_write_workbooks(app_settings: AppSettings) -> None:
    """Test that both workbooks are written to the configured paths."""
    engine = ConversionEngine(app_settings)
    result = engine.run(_uploads())

    workbook_path = engine.write_workbook(result)
    narrative_path = engine.write_narrative(result)

    assert workbook_path == Path(app_settings.workbook.output_path)
    assert narrative_path == Path(app_settings.workbook.narrative_output_path)
    with zipfile.ZipFile(workbook_path) as archive:
        workbook_xml = archive.read("xl/workbook.xml").decode("utf-8")
    assert workbook_xml.index('name="DEMO"') < workbook_xml.index('name="GROUP"')
    with zipfile.ZipFile(narrative_path) as archive:
        assert 'name="Narrative"' in archive.read("xl/workbook.xml").decode("utf-8")


def test_write_workbook_explicit_path(app_settings: AppSettings, tmp_path: Path) -> None:
    """Test that an explicit output path overrides the configured one."""
    engine = ConversionEngine(app_settings)
    target = tmp_path / "custom.xlsx"

    assert engine.write_workbook(engine.run(_uploads()), target) == target
    assert target.exists()


def test_write_error_propagates(app_settings: AppSettings) -> None:
    """Test that a workbook write failure is raised to the caller."""
    engine = ConversionEngine(app_settings)
    result = engine.run(_uploads())

    with patch(
        "py_kaers_workbook.engine.open_writer", side_effect=WorkbookWriteError("disk full")
    ):
        with pytest.raises(WorkbookWriteError):
            engine.write_workbook(result)


def test_collect_uploads(tmp_path: Path) -> None:
    """Test that directories are read non-recursively in name order."""
    batch_dir = tmp_path / "batch"
    (batch_dir / "nested").mkdir(parents=True)
    (batch_dir / "GROUP.txt").write_text("KAERS_NO\n")
    (batch_dir / "DEMO.txt").write_text("KAERS_NO\n")
    (batch_dir / "nested" / "EVENT.txt").write_text("KAERS_NO\n")
    extra = tmp_path / "DRUG.txt"
    extra.write_text("KAERS_NO\n")

    uploads = collect_uploads([batch_dir, extra])

    assert [u.name for u in uploads] == ["DEMO.txt", "GROUP.txt", "DRUG.txt"]
    assert uploads[0].content == b"KAERS_NO\n"


def test_collect_uploads_skips_unreadable(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    """Test that a missing input file is logged and skipped."""
    with caplog.at_level(logging.WARNING):
        uploads = collect_uploads([tmp_path / "missing.txt"])

    assert uploads == []
    assert "missing.txt" in caplog.text


def test_non_ascii_sequence_number_does_not_abort_run(app_settings: AppSettings) -> None:
    """Test that a GROUP row with a non-ASCII digit sequence is left out of deduplication."""
    batch = dict(SAMPLE_BATCH)
    batch["GROUP.txt"] = "KAERS_NO|CASE_GROUP_NO|CASE_SEQ_NO\nC1|G1|1\nC2|G1|\u00b2\nC3|G2|1\n"

    result = ConversionEngine(app_settings).run(_uploads(batch))

    assert result.drop_set == set()
    assert [r.case_key for r in result.narrative] == ["C1", "C2", "C3"]
