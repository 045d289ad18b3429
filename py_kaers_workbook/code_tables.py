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
This module provides the code table cache used to translate coded values.

A `CodeTables` instance is created per process (or per run) and handed to the
transformation pipeline. Reference tables are read on first use and memoized;
concurrent first use of the same table is coordinated so the file is read
exactly once and every caller sees the same mapping.
"""
import logging
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence

import polars as pl

from .config import CodeTableSettings
from .exceptions import CodeTableLoadError
from .vocabularies import ENUMERATED_VOCABULARIES, REFERENCE_TABLES, ReferenceTableSource

logger = logging.getLogger(__name__)


class CodeTables:
    """Lazily loaded, memoized code->label dictionaries."""

    def __init__(self, reference_dir: Path, delimiter: str = "|"):
        self.reference_dir = Path(reference_dir)
        self.delimiter = delimiter
        self._tables: Dict[str, Mapping[str, str]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @classmethod
    def from_settings(cls, settings: CodeTableSettings) -> "CodeTables":
        """Create a cache reading reference tables from the configured directory."""
        return cls(Path(settings.reference_dir))

    @staticmethod
    def known_tables() -> List[str]:
        """Return the identifiers of every vocabulary that can be resolved."""
        return sorted(set(ENUMERATED_VOCABULARIES) | set(REFERENCE_TABLES))

    def is_loaded(self, table_id: str) -> bool:
        """Whether a reference table has already been read into the cache."""
        return table_id in self._tables

    def get_table(self, table_id: str) -> Mapping[str, str]:
        """
        Return the mapping for `table_id`, loading it on first use.

        :raises CodeTableLoadError: if the table is unknown or its file cannot be read.
        """
        enumerated = ENUMERATED_VOCABULARIES.get(table_id)
        if enumerated is not None:
            return enumerated

        table = self._tables.get(table_id)
        if table is not None:
            return table

        source = REFERENCE_TABLES.get(table_id)
        if source is None:
            raise CodeTableLoadError(table_id, "unknown code table")

        with self._lock_for(table_id):
            # Another caller may have finished the load while we waited.
            table = self._tables.get(table_id)
            if table is None:
                table = self._load_reference_table(table_id, source)
                self._tables[table_id] = table
        return table

    def resolve(self, table_id: str, code: str) -> str:
        """
        Translate `code` using `table_id`.

        Returns the label when the normalized code is in the table, otherwise
        `code` unchanged. Empty codes are returned as-is without touching the table.
        """
        if not code or not code.strip():
            return code
        table = self.get_table(table_id)
        source = REFERENCE_TABLES.get(table_id)
        if source is not None and len(source.key_columns) == 1:
            key = source.make_key((code,))
        else:
            key = code.strip()
        return table.get(key, code)

    def resolve_composite(self, table_id: str, parts: Sequence[str]) -> str:
        """
        Translate a two-part (or n-part) code such as a WHOART term.

        On a miss the raw parts are returned joined with the table separator.
        If every part is empty, an empty string is returned.
        """
        source = REFERENCE_TABLES.get(table_id)
        if source is None or len(source.key_columns) != len(parts):
            raise ValueError(
                f"Code table '{table_id}' does not take a {len(parts)}-part key."
            )
        if not any(part and part.strip() for part in parts):
            return ""
        raw = source.separator.join(parts)
        table = self.get_table(table_id)
        return table.get(source.make_key(tuple(parts)), raw)

    def _lock_for(self, table_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(table_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[table_id] = lock
            return lock

    def _load_reference_table(
        self, table_id: str, source: ReferenceTableSource
    ) -> Mapping[str, str]:
        """Read a reference file into an immutable mapping."""
        file_path = self.reference_dir / source.file_name
        logger.info(f"Loading code table '{table_id}' from {file_path}")
        if not file_path.is_file():
            logger.error(f"Reference file for code table '{table_id}' not found: {file_path}")
            raise CodeTableLoadError(table_id, f"file not found: {file_path}")

        try:
            df = pl.read_csv(
                file_path,
                separator=self.delimiter,
                has_header=True,
                infer_schema_length=0,
                quote_char=None,
            )
        except (pl.exceptions.PolarsError, OSError) as e:
            logger.error(f"Failed to read code table '{table_id}' from {file_path}: {e}")
            raise CodeTableLoadError(table_id, str(e)) from e

        df.columns = [c.strip() for c in df.columns]
        required = list(source.key_columns) + [source.label_column]
        missing = [c for c in required if c not in df.columns]
        if missing:
            logger.error(f"Code table '{table_id}' is missing columns: {missing}")
            raise CodeTableLoadError(table_id, f"missing columns {missing} in {file_path}")

        mapping: Dict[str, str] = {}
        for row in df.select(required).iter_rows():
            *key_parts, label = row
            if label is None or any(part is None for part in key_parts):
                continue
            key = source.make_key(tuple(key_parts))
            # The first entry for a key wins.
            mapping.setdefault(key, label.strip())

        logger.info(f"Loaded {len(mapping)} entries into code table '{table_id}'.")
        return MappingProxyType(mapping)

