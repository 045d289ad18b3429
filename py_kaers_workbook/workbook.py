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
This module writes the output workbooks.

`AbstractWorkbookWriter` is the interface the pipeline relies on ("write rows
to sheet X with header style Y"); `XlsxWorkbookWriter` implements it with
xlsxwriter.
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from types import TracebackType
from typing import Any, Collection, Dict, Iterable, List, Optional, Sequence, Type

import xlsxwriter
from pydantic import BaseModel
from xlsxwriter.exceptions import XlsxWriterException

from .config import WorkbookSettings
from .exceptions import WorkbookWriteError
from .models import NARRATIVE_HEADER, NarrativeRecord, SheetTable

logger = logging.getLogger(__name__)

NARRATIVE_SHEET_NAME = "Narrative"


class HeaderStyle(BaseModel):
    """Formatting applied to the header row of every sheet."""

    bold: bool = True
    bg_color: str = "#D3D3D3"
    border: int = 1

    @classmethod
    def from_settings(cls, settings: WorkbookSettings) -> "HeaderStyle":
        return cls(
            bold=settings.header_bold,
            bg_color=settings.header_bg_color,
            border=settings.header_border,
        )

    def to_format(self) -> Dict[str, Any]:
        return {"bold": self.bold, "bg_color": self.bg_color, "border": self.border}


def unique_sheet_name(name: str, existing: Collection[str], max_length: int = 31) -> str:
    """
    Truncate `name` to `max_length` and add a ``_<n>`` suffix until it is unused.

    Comparison is case-insensitive, as spreadsheet applications treat sheet names.
    """
    taken = {n.lower() for n in existing}
    candidate = name[:max_length]
    counter = 1
    while candidate.lower() in taken:
        suffix = f"_{counter}"
        candidate = name[: max_length - len(suffix)] + suffix
        counter += 1
    return candidate


class AbstractWorkbookWriter(ABC):
    """
    An abstract base class that defines the interface for workbook writers.
    """

    @abstractmethod
    def add_sheet(self, name: str, header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
        """
        Append a sheet with a styled header row followed by `rows`.

        :return: The sheet name actually used after truncation/disambiguation.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Flush the workbook to its target."""
        raise NotImplementedError

    def __enter__(self) -> "AbstractWorkbookWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()


class XlsxWorkbookWriter(AbstractWorkbookWriter):
    """xlsxwriter implementation of the workbook writer."""

    def __init__(
        self,
        path: Path,
        header_style: Optional[HeaderStyle] = None,
        max_sheet_name_length: int = 31,
    ):
        self.path = Path(path)
        self.max_sheet_name_length = max_sheet_name_length
        self.sheet_names: List[str] = []
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create the directory for {self.path}: {e}")
            raise WorkbookWriteError(f"Cannot write workbook to {self.path}: {e}") from e
        self.workbook = xlsxwriter.Workbook(str(self.path))
        self.header_format = self.workbook.add_format(
            (header_style or HeaderStyle()).to_format()
        )
        self._closed = False

    def add_sheet(self, name: str, header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
        sheet_name = unique_sheet_name(name, self.sheet_names, self.max_sheet_name_length)
        try:
            worksheet = self.workbook.add_worksheet(sheet_name)
        except XlsxWriterException as e:
            logger.error(f"Could not add sheet '{sheet_name}' to {self.path}: {e}")
            raise WorkbookWriteError(f"Could not add sheet '{sheet_name}': {e}") from e
        self.sheet_names.append(sheet_name)

        for col_idx, col_name in enumerate(header):
            worksheet.write_string(0, col_idx, col_name, self.header_format)
        row_count = 0
        for row_idx, row in enumerate(rows, start=1):
            for col_idx, value in enumerate(row):
                # Strings only, so cell text is never read as a formula or number.
                worksheet.write_string(row_idx, col_idx, value)
            row_count += 1
        logger.debug(f"Wrote sheet '{sheet_name}' with {row_count} row(s).")
        return sheet_name

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.workbook.close()
        except (XlsxWriterException, OSError) as e:
            logger.error(f"Failed to write workbook {self.path}: {e}")
            raise WorkbookWriteError(f"Failed to write workbook {self.path}: {e}") from e
        logger.info(f"Workbook written to {self.path} ({len(self.sheet_names)} sheet(s)).")


def write_tables_workbook(writer: AbstractWorkbookWriter, tables: Sequence[SheetTable]) -> List[str]:
    """Write one sheet per table, in the given order. Returns the sheet names used."""
    return [writer.add_sheet(table.kind.value, table.header, table.rows) for table in tables]


def write_narrative_workbook(
    writer: AbstractWorkbookWriter, records: Sequence[NarrativeRecord]
) -> str:
    """Write the single Narrative sheet."""
    return writer.add_sheet(
        NARRATIVE_SHEET_NAME, NARRATIVE_HEADER, (record.to_row() for record in records)
    )


def open_writer(path: Path, settings: WorkbookSettings) -> XlsxWorkbookWriter:
    """Create an xlsx writer styled and limited per `settings`."""
    return XlsxWorkbookWriter(
        path,
        header_style=HeaderStyle.from_settings(settings),
        max_sheet_name_length=settings.max_sheet_name_length,
    )
