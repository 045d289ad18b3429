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
This module assembles the per-case narrative summary from the transformed tables.
"""
import logging
from typing import Dict, List, Mapping, Optional, Set, Tuple

from .models import (
    CASE_KEY_COLUMN,
    CAUSALITY_COLUMN,
    DRUG_CODE_COLUMN,
    DRUG_GROUP_COLUMN,
    DRUG_NAME_COLUMN,
    DRUG_SEQ_COLUMN,
    EVENT_ONSET_COLUMN,
    EVENT_TERM_COLUMN,
    GROUP_ID_COLUMN,
    PATIENT_BIRTH_YEAR_COLUMN,
    PATIENT_SEX_COLUMN,
    NarrativeRecord,
    SheetTable,
    cell_at,
)
from .types import TableKind
from .vocabularies import ENUMERATED_VOCABULARIES, SUSPECTED_DRUG_CODE

logger = logging.getLogger(__name__)

SUSPECTED_DRUG_LABEL = ENUMERATED_VOCABULARIES["DRUG_GROUP"][SUSPECTED_DRUG_CODE]


class CaseIndex:
    """
    Stable lookup of a table's rows by case key.

    `first` serves single-valued fields and `all` serves multi-valued fields;
    both keep file order.
    """

    def __init__(self, table: Optional[SheetTable], key_column: str = CASE_KEY_COLUMN):
        self.table = table
        self._first: Dict[str, List[str]] = {}
        self._all: Dict[str, List[List[str]]] = {}
        if table is None:
            return
        key_idx = table.column_index(key_column)
        if key_idx is None:
            logger.debug(f"{table.kind.value} has no {key_column} column; nothing to index.")
            return
        for row in table.rows:
            key = cell_at(row, key_idx)
            if not key:
                continue
            self._first.setdefault(key, row)
            self._all.setdefault(key, []).append(row)

    def first(self, key: str) -> Optional[List[str]]:
        return self._first.get(key)

    def all(self, key: str) -> List[List[str]]:
        return self._all.get(key, [])

    def value(self, row: Optional[List[str]], column: str) -> str:
        if row is None or self.table is None:
            return ""
        return cell_at(row, self.table.column_index(column))


class NarrativeAssembler:
    """Joins GROUP, DRUG, DEMO, EVENT and ASSESSMENT into one record per case."""

    def __init__(self, tables: Mapping[TableKind, SheetTable]):
        self.group = tables.get(TableKind.GROUP)
        self.demo = CaseIndex(tables.get(TableKind.DEMO))
        self.event = CaseIndex(tables.get(TableKind.EVENT))
        self.drug = CaseIndex(tables.get(TableKind.DRUG))
        self.assessment = tables.get(TableKind.ASSESSMENT)
        self._causality = self._index_causality(self.assessment)

    @staticmethod
    def _index_causality(
        assessment: Optional[SheetTable],
    ) -> Dict[Tuple[str, str], List[str]]:
        """Causality values per (case key, drug sequence), in file order."""
        index: Dict[Tuple[str, str], List[str]] = {}
        if assessment is None:
            return index
        key_idx = assessment.column_index(CASE_KEY_COLUMN)
        seq_idx = assessment.column_index(DRUG_SEQ_COLUMN)
        value_idx = assessment.column_index(CAUSALITY_COLUMN)
        if key_idx is None or seq_idx is None or value_idx is None:
            logger.debug("ASSESSMENT lacks the columns needed for the causality join.")
            return index
        for row in assessment.rows:
            value = cell_at(row, value_idx)
            if not value:
                continue
            index.setdefault((cell_at(row, key_idx), cell_at(row, seq_idx)), []).append(value)
        return index

    def case_keys(self) -> List[str]:
        """Distinct case keys of the GROUP table, in file order."""
        if self.group is None:
            return []
        key_idx = self.group.column_index(CASE_KEY_COLUMN)
        if key_idx is None:
            logger.warning(f"GROUP table has no {CASE_KEY_COLUMN} column; no narrative records.")
            return []
        seen: Set[str] = set()
        keys: List[str] = []
        for row in self.group.rows:
            key = cell_at(row, key_idx)
            if key and key not in seen:
                seen.add(key)
                keys.append(key)
        return keys

    def build_record(self, case_key: str, group_id: str = "") -> NarrativeRecord:
        """Assemble the narrative record of one case."""
        suspect_rows = [
            row
            for row in self.drug.all(case_key)
            if self.drug.value(row, DRUG_GROUP_COLUMN) == SUSPECTED_DRUG_LABEL
        ]
        first_suspect = suspect_rows[0] if suspect_rows else None

        causality: List[str] = []
        seen_sequences: Set[str] = set()
        for row in suspect_rows:
            sequence = self.drug.value(row, DRUG_SEQ_COLUMN)
            if sequence in seen_sequences:
                continue
            seen_sequences.add(sequence)
            causality.extend(self._causality.get((case_key, sequence), []))

        demo_row = self.demo.first(case_key)
        event_row = self.event.first(case_key)
        if demo_row is None:
            logger.debug(f"Case {case_key} has no DEMO row; demographic fields left empty.")
        if event_row is None:
            logger.debug(f"Case {case_key} has no EVENT row; event fields left empty.")

        events = tuple(
            term
            for term in (self.event.value(row, EVENT_TERM_COLUMN) for row in self.event.all(case_key))
            if term
        )

        return NarrativeRecord(
            group_id=group_id,
            case_key=case_key,
            drug_code=self.drug.value(first_suspect, DRUG_CODE_COLUMN),
            drug_name=self.drug.value(first_suspect, DRUG_NAME_COLUMN),
            patient_sex=self.demo.value(demo_row, PATIENT_SEX_COLUMN),
            birth_year=self.demo.value(demo_row, PATIENT_BIRTH_YEAR_COLUMN),
            events=events,
            causality=tuple(causality),
            onset_date=self.event.value(event_row, EVENT_ONSET_COLUMN),
        )

    def assemble(self) -> List[NarrativeRecord]:
        """One record per distinct GROUP case key, in GROUP file order."""
        if self.group is None:
            logger.warning("No GROUP table in this batch; the narrative will be empty.")
            return []
        group_ids = self._group_ids(self.group)
        records = [self.build_record(key, group_ids.get(key, "")) for key in self.case_keys()]
        logger.info(f"Assembled {len(records)} narrative record(s).")
        return records

    @staticmethod
    def _group_ids(group: SheetTable) -> Dict[str, str]:
        """First group id seen for each case key."""
        key_idx = group.column_index(CASE_KEY_COLUMN)
        group_idx = group.column_index(GROUP_ID_COLUMN)
        group_ids: Dict[str, str] = {}
        for row in group.rows:
            group_ids.setdefault(cell_at(row, key_idx), cell_at(row, group_idx))
        return group_ids
