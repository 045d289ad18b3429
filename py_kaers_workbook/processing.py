# -*- coding: utf-8 -*-
"""
This module handles case deduplication across versions of the same case,
including withdrawn (nullified) versions.
"""
import logging
from typing import Iterable, List, Optional, Set

import polars as pl

from .models import (
    CASE_KEY_COLUMN,
    GROUP_ID_COLUMN,
    NULLIFICATION_COLUMN,
    SEQUENCE_COLUMN,
    CaseGroupMembership,
    SheetTable,
    cell_at,
)
from .vocabularies import ENUMERATED_VOCABULARIES, NULLIFICATION_DELETE_CODE

logger = logging.getLogger(__name__)

NULLIFICATION_DELETE_LABEL = ENUMERATED_VOCABULARIES["NULLIFICATION_AMENDMENT"][
    NULLIFICATION_DELETE_CODE
]


def collect_memberships(group: SheetTable) -> List[CaseGroupMembership]:
    """
    Read (case key, group id, sequence number) triples from a transformed GROUP table.

    Rows without a case key or group id, or whose sequence number is not a
    non-negative integer, are left out and therefore never dropped.
    """
    key_idx = group.column_index(CASE_KEY_COLUMN)
    group_idx = group.column_index(GROUP_ID_COLUMN)
    seq_idx = group.column_index(SEQUENCE_COLUMN)
    if key_idx is None or group_idx is None or seq_idx is None:
        missing = [
            name
            for name, idx in (
                (CASE_KEY_COLUMN, key_idx),
                (GROUP_ID_COLUMN, group_idx),
                (SEQUENCE_COLUMN, seq_idx),
            )
            if idx is None
        ]
        logger.warning(f"GROUP table is missing columns {missing}; no case will be deduplicated.")
        return []

    memberships: List[CaseGroupMembership] = []
    skipped = 0
    for row in group.rows:
        case_key = cell_at(row, key_idx)
        group_id = cell_at(row, group_idx)
        sequence = cell_at(row, seq_idx)
        if not case_key or not group_id or not (sequence.isascii() and sequence.isdigit()):
            skipped += 1
            continue
        memberships.append(
            CaseGroupMembership(case_key=case_key, group_id=group_id, sequence=int(sequence))
        )

    if skipped:
        logger.warning(
            f"{skipped} GROUP row(s) without a case key, group id or valid sequence number "
            "were excluded from deduplication."
        )
    return memberships


def nullified_case_keys(demo: Optional[SheetTable]) -> Set[str]:
    """Case keys whose DEMO nullification/amendment value means 'delete'."""
    if demo is None:
        return set()
    key_idx = demo.column_index(CASE_KEY_COLUMN)
    flag_idx = demo.column_index(NULLIFICATION_COLUMN)
    if key_idx is None or flag_idx is None:
        logger.debug("DEMO has no case key or nullification column; no case is nullified.")
        return set()
    return {
        cell_at(row, key_idx)
        for row in demo.rows
        if cell_at(row, flag_idx) == NULLIFICATION_DELETE_LABEL and cell_at(row, key_idx)
    }


def compute_drop_set(
    memberships: Iterable[CaseGroupMembership], nullified: Set[str]
) -> Set[str]:
    """
    Decide which case versions are removed from every output table.

    Per group: without nullified members only the highest sequence survives.
    With nullified members, if a non-nullified member is strictly newer than
    every nullified one, only the highest sequence survives; otherwise the
    whole group is dropped when it contains sequence 1, else only the highest
    sequence (the nullified one) survives.

    :param memberships: The case group memberships from the GROUP table.
    :param nullified: Case keys flagged as nullified in DEMO.
    :return: The set of case keys to drop.
    """
    members = list(memberships)
    if not members:
        return set()

    df = pl.DataFrame(
        {
            "case_key": [m.case_key for m in members],
            "group_id": [m.group_id for m in members],
            "sequence": [m.sequence for m in members],
            "nullified": [m.case_key in nullified for m in members],
        },
        schema={
            "case_key": pl.Utf8,
            "group_id": pl.Utf8,
            "sequence": pl.Int64,
            "nullified": pl.Boolean,
        },
    )

    group_stats = df.group_by("group_id").agg(
        pl.col("sequence").max().alias("max_seq"),
        (pl.col("sequence") == 1).any().alias("has_seq1"),
        pl.col("sequence").filter(pl.col("nullified")).max().alias("null_max_seq"),
    )

    not_latest = pl.col("sequence") != pl.col("max_seq")
    flagged = df.join(group_stats, on="group_id", how="left").with_columns(
        pl.when(pl.col("null_max_seq").is_null())
        .then(not_latest)
        .when(pl.col("null_max_seq") < pl.col("max_seq"))
        .then(not_latest)
        .when(pl.col("has_seq1"))
        .then(pl.lit(True))
        .otherwise(not_latest)
        .alias("drop")
    )

    drop_set = set(flagged.filter(pl.col("drop"))["case_key"].to_list())
    whole_groups = (
        flagged.filter(
            pl.col("null_max_seq").is_not_null()
            & (pl.col("null_max_seq") >= pl.col("max_seq"))
            & pl.col("has_seq1")
        )["group_id"]
        .unique()
        .to_list()
    )
    if whole_groups:
        logger.info(
            f"{len(whole_groups)} case group(s) end in a nullified version and contain "
            "sequence 1; every version in them is dropped."
        )
    logger.info(
        f"Deduplication over {df['group_id'].n_unique()} case group(s) drops "
        f"{len(drop_set)} of {df['case_key'].n_unique()} case(s)."
    )
    return drop_set


def deduplicate_cases(group: Optional[SheetTable], demo: Optional[SheetTable]) -> Set[str]:
    """Compute the drop set for a batch from its transformed GROUP and DEMO tables."""
    if group is None:
        logger.info("No GROUP table in this batch; skipping deduplication.")
        return set()
    return compute_drop_set(collect_memberships(group), nullified_case_keys(demo))


def apply_drop_set(table: SheetTable, drop_set: Set[str]) -> SheetTable:
    """Return `table` without the rows whose case key is in `drop_set`."""
    if not drop_set:
        return table
    key_idx = table.column_index(CASE_KEY_COLUMN)
    if key_idx is None:
        logger.debug(f"{table.kind.value} has no {CASE_KEY_COLUMN} column; left unfiltered.")
        return table
    kept = [row for row in table.rows if cell_at(row, key_idx) not in drop_set]
    removed = len(table.rows) - len(kept)
    if removed:
        logger.info(f"Removed {removed} row(s) of dropped cases from {table.kind.value}.")
    return table.model_copy(update={"rows": kept})
