# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
# tests/conftest.py
from pathlib import Path
from typing import Dict

import pytest

from py_kaers_workbook.code_tables import CodeTables
from py_kaers_workbook.config import AppSettings, CodeTableSettings, WorkbookSettings

REFERENCE_FILES: Dict[str, str] = {
    "drug_code.txt": (
        "DRUG_CD|DRUG_ENG_NM\n"
        "000000101|Aspirin Tab 100mg\n"
        "000000202|Ibuprofen Tab 200mg\n"
    ),
    "ingredient_code.txt": "INGR_CD|INGR_ENG_NM\nM040702|acetylsalicylic acid\n",
    "dosage_unit.txt": "UNIT_CD|UNIT_NM\n00001|mg\n00002|mL\n",
    "admin_route.txt": "ROUTE_CD|ROUTE_ENG_NM\n001|Oral\n",
    "dosage_form.txt": "FORM_CD|FORM_ENG_NM\n010|Tablet\n",
    "kcd.txt": "KCD_CD|KCD_ENG_NM\nI10|Essential hypertension\nE119|Type 2 diabetes mellitus\n",
    "whoart.txt": "ARRN|SEQ|WHOART_ENG_NM\n0001|001|Headache\n0228|001|Nausea\n",
}


@pytest.fixture
def reference_dir(tmp_path: Path) -> Path:
    """A directory holding a small copy of every reference code table."""
    directory = tmp_path / "reference"
    directory.mkdir()
    for name, content in REFERENCE_FILES.items():
        (directory / name).write_text(content, encoding="utf-8")
    return directory


@pytest.fixture
def code_tables(reference_dir: Path) -> CodeTables:
    """A code table cache backed by the sample reference directory."""
    return CodeTables(reference_dir)


@pytest.fixture
def app_settings(reference_dir: Path, tmp_path: Path) -> AppSettings:
    """Settings pointing at the sample reference tables and a temporary output dir."""
    return AppSettings(
        code_tables=CodeTableSettings(reference_dir=str(reference_dir)),
        workbook=WorkbookSettings(
            output_path=str(tmp_path / "out" / "kaers_workbook.xlsx"),
            narrative_output_path=str(tmp_path / "out" / "kaers_narrative.xlsx"),
        ),
    )
