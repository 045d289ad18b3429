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
This module provides functions for parsing KAERS pipe-delimited extract files.
"""
import logging
from pathlib import Path
from typing import List, Optional

from .exceptions import TableParseError
from .models import SheetTable
from .types import TableKind

logger = logging.getLogger(__name__)

# Conventional extension of the extract files; any extension is accepted.
TABLE_FILE_EXTENSION = ".txt"


def base_name(file_name: str) -> str:
    """Strip the directory part and the last extension from a file name."""
    name = Path(file_name).name
    dot = name.rfind(".")
    if dot == -1:
        return name
    return name[:dot]


def table_kind_for_file(file_name: str) -> Optional[TableKind]:
    """
    Map a file name to its table kind.

    The base name must match a kind exactly (e.g. ``DEMO.txt`` -> DEMO,
    ``DRUG_EVENT.dat`` -> DRUG_EVENT); anything else returns None.
    """
    return TableKind.from_name(base_name(file_name))


def parse_pipe_text(content: str, delimiter: str = "|") -> List[List[str]]:
    """
    Split delimited text into rows of trimmed cells.

    Records end at a line feed only; a trailing carriage return is removed
    by the cell trim.
    Blank lines are dropped. The first returned row is the header.
    """
    rows: List[List[str]] = []
    for line in content.split("\n"):
        if not line.strip():
            continue
        rows.append([cell.strip() for cell in line.split(delimiter)])
    return rows


def parse_upload(
    file_name: str,
    content: bytes,
    encoding: str = "utf-8-sig",
    delimiter: str = "|",
) -> Optional[SheetTable]:
    """
    Parse one uploaded extract into a `SheetTable`.

    :param file_name: The uploaded file's name; its base name selects the table kind.
    :param content: The raw file bytes.
    :param encoding: The text encoding of the file.
    :param delimiter: The field separator.
    :return: The parsed table, or None when the file name is not a recognized kind.
    :raises TableParseError: if the content cannot be decoded.
    """
    kind = table_kind_for_file(file_name)
    if kind is None:
        logger.info(f"Ignoring {file_name}: not a recognized KAERS table.")
        return None

    try:
        text = content.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        logger.warning(f"Could not decode {file_name} as {encoding}: {e}")
        raise TableParseError(file_name, str(e)) from e

    rows = parse_pipe_text(text, delimiter)
    if not rows:
        logger.warning(f"File {file_name} is empty or has no header.")
        return SheetTable(kind=kind, source_name=file_name)

    header, data_rows = rows[0], rows[1:]
    logger.debug(f"Parsed {file_name} as {kind.value}: {len(header)} columns, {len(data_rows)} rows.")
    return SheetTable(kind=kind, header=header, rows=data_rows, source_name=file_name)
