# -*- coding: utf-8 -*-
"""
This module defines custom exceptions for the py-kaers-workbook application.
"""


class KaersWorkbookError(Exception):
    """
    Base class for errors that abort a whole conversion run.
    """

    pass


class CodeTableLoadError(KaersWorkbookError):
    """
    Raised when a reference code table is missing, unreadable or malformed.
    """

    def __init__(self, table_id: str, message: str):
        self.table_id = table_id
        super().__init__(f"Could not load code table '{table_id}': {message}")


class WorkbookWriteError(KaersWorkbookError):
    """
    Raised when a workbook cannot be written to its target.
    """

    pass


class TableParseError(Exception):
    """
    Raised for a single input file that cannot be decoded or parsed.

    This is recoverable: the file is skipped and the rest of the batch proceeds.
    """

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Could not parse {path}: {message}")
