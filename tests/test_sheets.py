# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Tests for the per-table sheet transformations.
"""
from pathlib import Path

import pytest

from py_kaers_workbook.code_tables import CodeTables
from py_kaers_workbook.exceptions import CodeTableLoadError
from py_kaers_workbook.models import SheetTable
from py_kaers_workbook.sheets import SHEET_SPECS, SheetTransformer
from py_kaers_workbook.transform import RenameColumns
from py_kaers_workbook.types import TableKind

RAW_DEMO = SheetTable(
    kind=TableKind.DEMO,
    header=["KAERS_NO", "RPT_CLSF_CD", "REPRT_CHANGE_CD", "PTNT_SEX", "PTNT_BRTYR_YYYY", "QCK_RPT_YN"],
    rows=[
        ["2023-0001", "A", "", "1", "1970", "Y"],
        ["2023-0002", "B", "1", "2", "1985", "N"],
        ["2023-0003", "C", "2", "9", "", ""],
    ],
)

RAW_EVENT = SheetTable(
    kind=TableKind.EVENT,
    header=[
        "KAERS_NO",
        "ADR_MEDDRA_ENG_NM",
        "ADR_START_DT",
        "WHOART_ARRN",
        "WHOART_SEQ",
        "SE_DEATH",
        "SE_LIFE_MENACE",
        "SE_HSPTLZ_EXTN",
    ],
    rows=[
        ["2023-0001", "Nausea", "20230105", "0228", "001", "", "", "Y"],
        ["2023-0001", "Headache", "20230106", "1", "1", "", "", ""],
        ["2023-0002", "Rash", "20230201", "9999", "001", "", "", ""],
    ],
)

RAW_DRUG = SheetTable(
    kind=TableKind.DRUG,
    header=["KAERS_NO", "DRUG_SEQ", "DRUG_GB", "DRUG_CD", "INGR_CD", "ADMIN_ROUTE_CD"],
    rows=[
        ["2023-0001", "1", "1", "101", "M040702", "1"],
        ["2023-0001", "2", "2", "555", "", ""],
    ],
)


@pytest.fixture
def transformer(code_tables: CodeTables) -> SheetTransformer:
    return SheetTransformer(code_tables)


def test_every_kind_has_a_sheet_definition() -> None:
    """Test that each table kind declares its transformation."""
    assert set(SHEET_SPECS) == set(TableKind)


@pytest.mark.parametrize("kind", list(TableKind))
def test_rename_maps_are_not_chained(kind: TableKind) -> None:
    """Test that every declared rename map can be built (no target is also a source)."""
    RenameColumns(SHEET_SPECS[kind].renames)


def test_demo_sheet(transformer: SheetTransformer) -> None:
    """Test the DEMO drop, renames and translations."""
    result = transformer.transform(RAW_DEMO)

    assert result.header == [
        "KAERS_NO",
        "NULLIFICATION_AMENDMENT",
        "PATIENT SEX",
        "PATIENT BIRTH YEAR",
        "EXPEDITED",
    ]
    assert result.column_values("PATIENT SEX") == ["male", "female", "9"]
    assert result.column_values("NULLIFICATION_AMENDMENT") == ["", "Delete", "Amendment"]
    assert result.column_values("EXPEDITED") == ["Yes", "No", ""]


def test_event_sheet_derived_columns(transformer: SheetTransformer) -> None:
    """Test the WHOART label and the SERIOUSNESS flag placement and values."""
    result = transformer.transform(RAW_EVENT)

    assert result.header == [
        "KAERS_NO",
        "ADR_MEDDRA_ENG",
        "ADR_START_DATE",
        "WHOART_PT",
        "WHOART_IT",
        "WHOART_ENG",
        "SERIOUSNESS",
        "SER_DEATH",
        "SER_LIFE_THREAT",
        "SER_HOSPITALIZATION",
    ]
    assert result.column_values("WHOART_ENG") == ["Nausea", "Headache", "9999-001"]
    assert result.column_values("SERIOUSNESS") == ["Y", "N", "N"]


def test_drug_sheet(transformer: SheetTransformer) -> None:
    """Test the DRUG translations and inserted name columns."""
    result = transformer.transform(RAW_DRUG)

    assert result.header == [
        "KAERS_NO",
        "DRUG_SEQ",
        "DRUG_GROUP",
        "DRUG_CODE",
        "DRUG_NAME",
        "INGREDIENT_CODE",
        "INGREDIENT_NAME",
        "ADMIN_ROUTE",
    ]
    assert result.rows[0] == [
        "2023-0001",
        "1",
        "Suspected drug",
        "101",
        "Aspirin Tab 100mg",
        "M040702",
        "acetylsalicylic acid",
        "Oral",
    ]
    # Unknown codes pass through; empty codes stay empty.
    assert result.rows[1][4] == "555"
    assert result.rows[1][6] == ""


def test_missing_anchor_skips_insertion(transformer: SheetTransformer) -> None:
    """Test that a sheet without the anchor column gets no derived column."""
    table = SheetTable(
        kind=TableKind.DRUG, header=["KAERS_NO", "DRUG_CD"], rows=[["2023-0001", "101"]]
    )

    result = transformer.transform(table)

    assert result.header == ["KAERS_NO", "DRUG_CODE", "DRUG_NAME"]
    assert "INGREDIENT_NAME" not in result.header


def test_transform_is_idempotent(transformer: SheetTransformer) -> None:
    """Test that transforming an already transformed sheet changes nothing."""
    for raw in (RAW_DEMO, RAW_EVENT, RAW_DRUG):
        once = transformer.transform(raw)
        twice = transformer.transform(once)
        assert twice.header == once.header
        assert twice.rows == once.rows


@pytest.mark.parametrize("raw", [RAW_DEMO, RAW_EVENT, RAW_DRUG])
def test_header_only_round_trip(transformer: SheetTransformer, raw: SheetTable) -> None:
    """Test that a header-only input yields the transformed header with no rows."""
    header_only = raw.model_copy(update={"rows": []})

    result = transformer.transform(header_only)

    assert result.rows == []
    assert result.header == transformer.transform(raw).header


def test_row_count_preserved(transformer: SheetTransformer) -> None:
    """Test that every transformation keeps the number of rows."""
    for raw in (RAW_DEMO, RAW_EVENT, RAW_DRUG):
        assert len(transformer.transform(raw).rows) == len(raw.rows)


def test_missing_reference_table_is_fatal(tmp_path: Path) -> None:
    """Test that a needed but missing reference table aborts the transformation."""
    transformer = SheetTransformer(CodeTables(tmp_path))

    with pytest.raises(CodeTableLoadError):
        transformer.transform(RAW_DRUG)


def test_sheet_without_coded_values_needs_no_reference_files(tmp_path: Path) -> None:
    """Test that enumerated-only sheets work without any reference directory."""
    transformer = SheetTransformer(CodeTables(tmp_path / "missing"))

    result = transformer.transform(RAW_DEMO)

    assert result.column_values("PATIENT SEX") == ["male", "female", "9"]
