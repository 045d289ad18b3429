# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
This module contains the conversion engine that turns a batch of KAERS
extracts into the normalized and narrative workbooks.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from pydantic import BaseModel, Field

from .code_tables import CodeTables
from .config import AppSettings
from .exceptions import KaersWorkbookError, TableParseError
from .models import NarrativeRecord, SheetTable
from .narrative import NarrativeAssembler
from .parser import parse_upload
from .processing import apply_drop_set, deduplicate_cases
from .sheets import SheetTransformer
from .types import TableKind
from .workbook import open_writer, write_narrative_workbook, write_tables_workbook

logger = logging.getLogger(__name__)


class UploadedFile(BaseModel):
    """One file of the in-memory batch."""

    name: str
    content: bytes


class ConversionResult(BaseModel):
    """Everything one run produced, before or after it was written out."""

    tables: Dict[TableKind, SheetTable] = Field(default_factory=dict)
    drop_set: Set[str] = Field(default_factory=set)
    skipped_files: List[str] = Field(default_factory=list)
    narrative: List[NarrativeRecord] = Field(default_factory=list)

    def ordered_tables(self) -> List[SheetTable]:
        """Tables in workbook sheet order."""
        return [self.tables[kind] for kind in TableKind if kind in self.tables]


def collect_uploads(inputs: Sequence[Path]) -> List[UploadedFile]:
    """
    Read the files named by `inputs` into memory.

    Directories contribute their files (not recursive), sorted by name.
    Unreadable files are logged and skipped.
    """
    paths: List[Path] = []
    for item in inputs:
        if item.is_dir():
            paths.extend(sorted(p for p in item.iterdir() if p.is_file()))
        else:
            paths.append(item)

    uploads: List[UploadedFile] = []
    for path in paths:
        try:
            uploads.append(UploadedFile(name=path.name, content=path.read_bytes()))
        except OSError as e:
            logger.warning(f"Skipping {path}: {e}")
    return uploads


class ConversionEngine:
    """Orchestrates a single conversion run."""

    def __init__(self, config: AppSettings, code_tables: Optional[CodeTables] = None):
        self.config = config
        self.code_tables = code_tables or CodeTables.from_settings(config.code_tables)
        self.transformer = SheetTransformer(self.code_tables)

    def load_batch(self, uploads: Iterable[UploadedFile]) -> ConversionResult:
        """
        Parse and transform every recognized file of the batch.

        When several files map to the same table kind, the last one wins.
        """
        result = ConversionResult()
        processing = self.config.processing
        for upload in uploads:
            try:
                table = parse_upload(
                    upload.name,
                    upload.content,
                    encoding=processing.encoding,
                    delimiter=processing.delimiter,
                )
            except TableParseError as e:
                logger.warning(f"Skipping {upload.name}: {e}")
                result.skipped_files.append(upload.name)
                continue
            if table is None:
                result.skipped_files.append(upload.name)
                continue

            previous = result.tables.get(table.kind)
            if previous is not None:
                logger.warning(
                    f"{upload.name} replaces {previous.source_name} as the {table.kind.value} table."
                )
            result.tables[table.kind] = self.transformer.transform(table)
        return result

    def run(self, uploads: Iterable[UploadedFile], narrative: bool = True) -> ConversionResult:
        """
        Run the pipeline in memory: transform, deduplicate, then assemble the narrative.

        :raises KaersWorkbookError: on a run-level failure (e.g. a missing code table).
        """
        logger.info("Starting KAERS conversion run.")
        try:
            result = self.load_batch(uploads)
            if not result.tables:
                logger.warning("No recognized KAERS tables in this batch.")
                return result

            if self.config.processing.deduplicate:
                result.drop_set = deduplicate_cases(
                    result.tables.get(TableKind.GROUP), result.tables.get(TableKind.DEMO)
                )
            else:
                logger.info("Deduplication disabled by configuration.")

            result.tables = {
                kind: apply_drop_set(table, result.drop_set)
                for kind, table in result.tables.items()
            }

            if narrative:
                result.narrative = NarrativeAssembler(result.tables).assemble()
        except KaersWorkbookError as e:
            logger.error(f"Conversion run failed: {e}", exc_info=True)
            raise

        logger.info(
            f"Conversion run complete: {len(result.tables)} table(s), "
            f"{len(result.drop_set)} case(s) dropped, {len(result.skipped_files)} file(s) skipped."
        )
        return result

    def write_workbook(self, result: ConversionResult, path: Optional[Path] = None) -> Path:
        """Write the normalized workbook, one sheet per table kind present."""
        target = Path(path or self.config.workbook.output_path)
        with open_writer(target, self.config.workbook) as writer:
            write_tables_workbook(writer, result.ordered_tables())
        return target

    def write_narrative(self, result: ConversionResult, path: Optional[Path] = None) -> Path:
        """Write the narrative workbook."""
        target = Path(path or self.config.workbook.narrative_output_path)
        with open_writer(target, self.config.workbook) as writer:
            write_narrative_workbook(writer, result.narrative)
        return target
