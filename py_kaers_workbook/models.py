# -*- coding: utf-8 -*-
# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
This module defines the Pydantic models passed between the pipeline stages.

NOTE: KAERS extracts carry no schema of their own, so tables are kept as a
header plus string rows and columns are always addressed by header name.
"""
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .types import TableKind

# Column names shared by several stages, in their renamed (output) form.
CASE_KEY_COLUMN = "KAERS_NO"
GROUP_ID_COLUMN = "GROUP_NO"
SEQUENCE_COLUMN = "SEQUENCE_NO"
NULLIFICATION_COLUMN = "NULLIFICATION_AMENDMENT"
DRUG_GROUP_COLUMN = "DRUG_GROUP"
DRUG_SEQ_COLUMN = "DRUG_SEQ"
DRUG_CODE_COLUMN = "DRUG_CODE"
DRUG_NAME_COLUMN = "DRUG_NAME"
PATIENT_SEX_COLUMN = "PATIENT SEX"
PATIENT_BIRTH_YEAR_COLUMN = "PATIENT BIRTH YEAR"
EVENT_TERM_COLUMN = "ADR_MEDDRA_ENG"
EVENT_ONSET_COLUMN = "ADR_START_DATE"
CAUSALITY_COLUMN = "CAUSALITY_ASSESSMENT"


class SheetTable(BaseModel):
    """A parsed or transformed extract: a header row and ordered data rows."""

    kind: TableKind
    header: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)
    source_name: Optional[str] = Field(
        None, description="File the table was parsed from, for log messages."
    )

    def column_index(self, name: str) -> Optional[int]:
        """Index of the first column named exactly `name`, or None."""
        try:
            return self.header.index(name)
        except ValueError:
            return None

    def column_values(self, name: str) -> List[str]:
        """All values of column `name` in row order; missing cells read as ''."""
        index = self.column_index(name)
        if index is None:
            return []
        return [cell_at(row, index) for row in self.rows]

    @property
    def is_empty(self) -> bool:
        return not self.header and not self.rows


def cell_at(row: List[str], index: Optional[int]) -> str:
    """Read a cell defensively; ragged rows and absent columns read as ''."""
    if index is None or index >= len(row):
        return ""
    return row[index]


class CaseGroupMembership(BaseModel):
    """A case version's position inside its case group."""

    model_config = ConfigDict(frozen=True)

    case_key: str
    group_id: str
    sequence: int = Field(..., ge=0)


NARRATIVE_HEADER: Tuple[str, ...] = (
    GROUP_ID_COLUMN,
    CASE_KEY_COLUMN,
    DRUG_CODE_COLUMN,
    DRUG_NAME_COLUMN,
    PATIENT_SEX_COLUMN,
    PATIENT_BIRTH_YEAR_COLUMN,
    "EVENT",
    CAUSALITY_COLUMN,
    EVENT_ONSET_COLUMN,
)


class NarrativeRecord(BaseModel):
    """One denormalized summary row per surviving case."""

    model_config = ConfigDict(frozen=True)

    group_id: str = ""
    case_key: str
    drug_code: str = ""
    drug_name: str = ""
    patient_sex: str = ""
    birth_year: str = ""
    events: Tuple[str, ...] = ()
    causality: Tuple[str, ...] = ()
    onset_date: str = ""

    def to_row(self) -> List[str]:
        """Serialize in `NARRATIVE_HEADER` order, newline-joining multi-valued fields."""
        return [
            self.group_id,
            self.case_key,
            self.drug_code,
            self.drug_name,
            self.patient_sex,
            self.birth_year,
            "\n".join(self.events),
            "\n".join(self.causality),
            self.onset_date,
        ]
