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
This module defines common types and enums used across the application.
"""
from enum import Enum
from typing import Optional


class TableKind(str, Enum):
    """
    Enumeration for the recognized KAERS extract tables.

    The declaration order is the sheet order of the output workbook.
    """

    DEMO = "DEMO"
    HIST_E = "HIST_E"
    PARENT = "PARENT"
    EVENT = "EVENT"
    TEST = "TEST"
    DRUG = "DRUG"
    DRUG1 = "DRUG1"
    DRUG2 = "DRUG2"
    DRUG3 = "DRUG3"
    DRUG_EVENT = "DRUG_EVENT"
    ASSESSMENT = "ASSESSMENT"
    GROUP = "GROUP"

    @classmethod
    def from_name(cls, name: str) -> Optional["TableKind"]:
        """Return the kind whose value is exactly `name`, or None."""
        try:
            return cls(name)
        except ValueError:
            return None


class ColumnPosition(str, Enum):
    """Where a derived column is placed relative to its anchor column."""

    BEFORE = "before"
    AFTER = "after"
