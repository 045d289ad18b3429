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
This module implements the column operations that turn a raw extract into its
output sheet.

A sheet's transformation is an ordered list of operations. Each operation is
bound to the header as it stands at that point (so names are always resolved
against the current layout, never a precomputed index) and yields the next
header plus a per-row edit.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .code_tables import CodeTables
from .exceptions import CodeTableLoadError
from .models import SheetTable
from .types import ColumnPosition, TableKind

logger = logging.getLogger(__name__)

RowEdit = Callable[[List[str], int], List[str]]


@dataclass(frozen=True)
class BoundStep:
    """An operation bound to a concrete header."""

    header: List[str]
    edit: RowEdit


class RowView:
    """Read access to a row's cells by column name."""

    def __init__(self, positions: Mapping[str, int], row: List[str]):
        self._positions = positions
        self._row = row

    def get(self, name: str) -> str:
        index = self._positions.get(name)
        if index is None or index >= len(self._row):
            return ""
        return self._row[index]


def _find(header: Sequence[str], name: str) -> Optional[int]:
    try:
        return list(header).index(name)
    except ValueError:
        return None


def _first_positions(header: Sequence[str]) -> Dict[str, int]:
    positions: Dict[str, int] = {}
    for index, name in enumerate(header):
        positions.setdefault(name, index)
    return positions


class ColumnOperation(ABC):
    """A single named-column edit."""

    @abstractmethod
    def bind(self, header: List[str], code_tables: CodeTables) -> Optional[BoundStep]:
        """
        Bind the operation to `header`.

        :return: The resulting header and row edit, or None when the operation
            does not apply to this header (e.g. its column is absent).
        """
        raise NotImplementedError


@dataclass(frozen=True)
class DropColumn(ColumnOperation):
    """Remove the first column named `name`."""

    name: str

    def bind(self, header: List[str], code_tables: CodeTables) -> Optional[BoundStep]:
        index = _find(header, self.name)
        if index is None:
            return None

        def edit(row: List[str], row_number: int) -> List[str]:
            return row[:index] + row[index + 1 :]

        return BoundStep(header[:index] + header[index + 1 :], edit)


@dataclass(frozen=True)
class RenameColumns(ColumnOperation):
    """
    Rename headers through a fixed map; unmapped headers pass through.

    No rename target may also be a rename source, so applying the map to an
    already renamed header changes nothing.
    """

    renames: Mapping[str, str]

    def __post_init__(self) -> None:
        overlap = set(self.renames.values()) & set(self.renames.keys())
        if overlap:
            raise ValueError(f"Rename targets must not be rename sources: {sorted(overlap)}")

    def bind(self, header: List[str], code_tables: CodeTables) -> Optional[BoundStep]:
        def edit(row: List[str], row_number: int) -> List[str]:
            return row

        return BoundStep([self.renames.get(name, name) for name in header], edit)


@dataclass(frozen=True)
class TranslateColumn(ColumnOperation):
    """Replace every non-empty cell of `column` with its label from `table_id`."""

    column: str
    table_id: str

    def bind(self, header: List[str], code_tables: CodeTables) -> Optional[BoundStep]:
        index = _find(header, self.column)
        if index is None:
            return None

        def edit(row: List[str], row_number: int) -> List[str]:
            if index >= len(row) or not row[index]:
                return row
            try:
                label = code_tables.resolve(self.table_id, row[index])
            except CodeTableLoadError:
                raise
            except Exception as e:
                logger.warning(
                    f"Could not translate {self.column} in data row {row_number}: {e}; "
                    "keeping the raw code."
                )
                return row
            new_row = list(row)
            new_row[index] = label
            return new_row

        return BoundStep(list(header), edit)


Derivation = Callable[[RowView, CodeTables], str]


@dataclass(frozen=True)
class InsertColumn(ColumnOperation):
    """
    Insert a derived column next to `anchor`.

    Skipped when the anchor is absent or a column called `name` already exists.
    """

    name: str
    anchor: str
    derive: Derivation
    position: ColumnPosition = ColumnPosition.AFTER

    def bind(self, header: List[str], code_tables: CodeTables) -> Optional[BoundStep]:
        if self.name in header:
            return None
        anchor_index = _find(header, self.anchor)
        if anchor_index is None:
            return None
        index = anchor_index + 1 if self.position == ColumnPosition.AFTER else anchor_index
        positions = _first_positions(header)

        def edit(row: List[str], row_number: int) -> List[str]:
            try:
                value = self.derive(RowView(positions, row), code_tables)
            except CodeTableLoadError:
                raise
            except Exception as e:
                logger.warning(
                    f"Could not derive {self.name} in data row {row_number}: {e}; "
                    "leaving it empty."
                )
                value = ""
            new_row = list(row)
            if len(new_row) < index:
                new_row.extend([""] * (index - len(new_row)))
            new_row.insert(index, value)
            return new_row

        new_header = list(header)
        new_header.insert(index, self.name)
        return BoundStep(new_header, edit)


def translated(column: str, table_id: str) -> Derivation:
    """Derive a label column from a single coded column."""

    def derive(row: RowView, code_tables: CodeTables) -> str:
        code = row.get(column)
        if not code:
            return ""
        return code_tables.resolve(table_id, code)

    return derive


def composite_translated(columns: Sequence[str], table_id: str) -> Derivation:
    """Derive a label column from a multi-part code."""

    def derive(row: RowView, code_tables: CodeTables) -> str:
        return code_tables.resolve_composite(table_id, [row.get(c) for c in columns])

    return derive


def any_present(columns: Sequence[str]) -> Derivation:
    """Derive ``"Y"`` when any of `columns` holds a value, else ``"N"``."""

    def derive(row: RowView, code_tables: CodeTables) -> str:
        return "Y" if any(row.get(c) for c in columns) else "N"

    return derive


@dataclass(frozen=True)
class SheetSpec:
    """
    The transformation of one table kind.

    Operations always run in this order: column drops (on raw names), the
    rename, value translations, then derived-column insertions.
    """

    kind: TableKind
    drop_columns: Tuple[str, ...] = ()
    renames: Mapping[str, str] = field(default_factory=dict)
    translations: Tuple[Tuple[str, str], ...] = ()
    insertions: Tuple[InsertColumn, ...] = ()

    def operations(self) -> List[ColumnOperation]:
        ops: List[ColumnOperation] = [DropColumn(name) for name in self.drop_columns]
        if self.renames:
            ops.append(RenameColumns(self.renames))
        ops.extend(TranslateColumn(column, table_id) for column, table_id in self.translations)
        ops.extend(self.insertions)
        return ops


def transform_table(table: SheetTable, spec: SheetSpec, code_tables: CodeTables) -> SheetTable:
    """
    Apply `spec` to `table` and return a new table.

    Structural edits never add or remove rows. An empty table stays empty.
    :raises CodeTableLoadError: when a needed reference table cannot be loaded.
    """
    if table.is_empty:
        return table.model_copy()

    header = list(table.header)
    rows = [list(row) for row in table.rows]
    for op in spec.operations():
        step = op.bind(header, code_tables)
        if step is None:
            logger.debug(f"{spec.kind.value}: {op!r} does not apply to this header, skipped.")
            continue
        rows = [step.edit(row, row_number) for row_number, row in enumerate(rows, start=1)]
        header = step.header

    return SheetTable(kind=table.kind, header=header, rows=rows, source_name=table.source_name)
