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
This module declares, per KAERS table kind, how the raw extract becomes an
output sheet: which columns are dropped, how headers are renamed, which
columns are translated through which vocabulary, and which derived columns
are inserted.
"""
import logging
from typing import Dict, Mapping

from .code_tables import CodeTables
from .models import SheetTable
from .transform import (
    InsertColumn,
    SheetSpec,
    any_present,
    composite_translated,
    transform_table,
    translated,
)
from .types import ColumnPosition, TableKind

logger = logging.getLogger(__name__)

DEMO_HEADER_RENAMES: Dict[str, str] = {
    "DEPT_RECEIPT_NO": "MFDS_RECEIPT_NO",
    "SFRPNO": "MANUF_CASE_NO",
    "RPT_DL_DT": "SUBMISSION DATE TO CA",
    "RPT_TY": "REPORT_TYPE",
    "ADRSE_STUDY_TYP": "STUDY_TYPE",
    "ADRSE_STUDY_LWPRT_TYP": "STUDY TYPE_DETAIL",
    "LTRTRE_INFO": "LITERATURE_INFO",
    "CLIENT_STUDY_NO": "STUDY_PROTOCOL_NO",
    "FIRST_OCCR_DT": "INITIAL_RECEIPT_DATE",
    "RECENT_OCCR_DT": "RECENT_RECEIPT_DATE",
    "QCK_RPT_YN": "EXPEDITED",
    "SFRPNO_2": "CASE_NO_OF_REFERENCE_REPORT",
    "REPRT_CHANGE_CD": "NULLIFICATION_AMENDMENT",
    "PRMRPT_TY": "PRIMARY_REPORTER",
    "PRMRPT_LWPRT_CD": "PRIMARY_REPORTER_OTHER_HCP",
    "SENDER_TY": "SENDER_TYPE",
    "SENDER_TY_MED_EXPERT": "SENDER_TYPE_HCP DETAIL",
    "PTNT_OCCURSYMT_AGE": "PATIENT AGE AT OCCURRENCE",
    "PTNT_OCCURSYMT_AGE_UNIT": "PATIENT AGE AT OCCURRENCE_UNIT",
    "PTNT_AGRDE": "PATIENT AGE GROUP",
    "PTNT_BRTYR_YYYY": "PATIENT BIRTH YEAR",
    "PTNT_SEX": "PATIENT SEX",
    "PTNT_WEIGHT": "PATIENT WEIGHT",
    "PTNT_HEIGHT": "PATIENT HEIGHT",
    "OCCURSYMT_PREG_TRM": "PREGNANCY_TERM_OCCURRENCE",
    "OCCURSYMT_PREG_TRM_UNIT": "PREGNANCY_TERM_OCCURRENCE_UNIT",
}

HIST_E_HEADER_RENAMES: Dict[str, str] = {
    "DISS_CD": "DISEASE_CODE",
    "HIST_START_DT": "START_DATE",
    "HIST_END_DT": "END_DATE",
    "CONTINUE_YN": "CONTINUING",
}

PARENT_HEADER_RENAMES: Dict[str, str] = {
    "PARENT_SEX_CD": "PARENT_SEX",
    "PARENT_AGE_UNIT_CD": "PARENT_AGE_UNIT",
}

EVENT_HEADER_RENAMES: Dict[str, str] = {
    "ADR_MEDDRA_KOR_NM": "ADR_MEDDRA_KOR",
    "ADR_MEDDRA_ENG_NM": "ADR_MEDDRA_ENG",
    "ADR_START_DT": "ADR_START_DATE",
    "ADR_END_DT": "ADR_END_DATE",
    "ADR_RESULT_CODE": "ADR_OUTCOME",
    "CLNIC_FACT_CONFIRM_YN": "MEDICALLY_CONFIRMED",
    "WHOART_ARRN": "WHOART_PT",
    "WHOART_SEQ": "WHOART_IT",
    "SE_DEATH": "SER_DEATH",
    "SE_LIFE_MENACE": "SER_LIFE_THREAT",
    "SE_HSPTLZ_EXTN": "SER_HOSPITALIZATION",
    "SE_FNCT_DGRD": "SER_DISABILITY",
    "SE_ANMLY": "SER_ANOMALY",
    "SE_ETC_IMPRTNC_SITTN": "SER_MEDICALLY IMPORTANT",
}

SERIOUSNESS_CRITERIA = (
    "SER_DEATH",
    "SER_LIFE_THREAT",
    "SER_HOSPITALIZATION",
    "SER_DISABILITY",
    "SER_ANOMALY",
    "SER_MEDICALLY IMPORTANT",
)

TEST_HEADER_RENAMES: Dict[str, str] = {
    "TEST_NM": "TEST_NAME",
    "TEST_DT": "TEST_DATE",
    "TEST_RESULT_VAL": "TEST_RESULT",
    "TEST_UNIT_CD": "TEST_RESULT_UNIT",
    "NORMAL_LOW": "NORMAL_LOW_VALUE",
    "NORMAL_HIGH": "NORMAL_HIGH_VALUE",
}

DRUG_HEADER_RENAMES: Dict[str, str] = {
    "DRUG_GB": "DRUG_GROUP",
    "DRUG_CD": "DRUG_CODE",
    "ACCMLT_DOSAGE_QTY": "ACCUMULATE_DOSAGE_SINCE_ONSET",
    "ACCMLT_DOSAGE_QTY_UNIT": "ACCUMULATE_DOSAGE_SINCE_ONSET_UNIT",
    "DRUG_ACTION": "DRUG_ACTION_TAKEN",
    "INGR_CD": "INGREDIENT_CODE",
    "ADMIN_ROUTE_CD": "ADMIN_ROUTE",
    "DOSAGE_FORM_CD": "DOSAGE_FORM",
}

DRUG1_HEADER_RENAMES: Dict[str, str] = {
    "DOSAGE_QTY_UNIT": "DOSAGE_UNIT",
    "ADMIN_ROUTE_CD": "ADMIN_ROUTE",
    "DOSAGE_START_DT": "DOSAGE_START_DATE",
    "DOSAGE_END_DT": "DOSAGE_END_DATE",
    "DOSAGE_PERIOD_UNIT": "DOSAGE_PERIOD_UNIT_TEXT",
}

DRUG2_HEADER_RENAMES: Dict[str, str] = {
    "INDC_CD": "INDICATION_CODE",
}

DRUG3_HEADER_RENAMES: Dict[str, str] = {
    "INGR_CD": "INGREDIENT_CODE",
    "INGR_QTY_UNIT": "INGREDIENT_UNIT",
}

DRUG_EVENT_HEADER_RENAMES: Dict[str, str] = {
    "RE_DOSAGE_ALLERGY_YN": "RECHALLENGE_ADR_REOCCUR",
}

ASSESSMENT_HEADER_RENAMES: Dict[str, str] = {
    "EVALT_RESULT_CODE": "CAUSALITY_ASSESSMENT",
}

GROUP_HEADER_RENAMES: Dict[str, str] = {
    "CASE_GROUP_NO": "GROUP_NO",
    "CASE_SEQ_NO": "SEQUENCE_NO",
}

_INGREDIENT_NAME = InsertColumn(
    name="INGREDIENT_NAME",
    anchor="INGREDIENT_CODE",
    derive=translated("INGREDIENT_CODE", "INGREDIENT_CODE"),
)

SHEET_SPECS: Mapping[TableKind, SheetSpec] = {
    TableKind.DEMO: SheetSpec(
        kind=TableKind.DEMO,
        # Internal report classification; not part of the submission layout.
        drop_columns=("RPT_CLSF_CD",),
        renames=DEMO_HEADER_RENAMES,
        translations=(
            ("REPORT_TYPE", "REPORT_TYPE"),
            ("STUDY_TYPE", "STUDY_TYPE"),
            ("STUDY TYPE_DETAIL", "STUDY_TYPE_DETAIL"),
            ("EXPEDITED", "YES_NO"),
            ("NULLIFICATION_AMENDMENT", "NULLIFICATION_AMENDMENT"),
            ("PRIMARY_REPORTER", "PRIMARY_REPORTER"),
            ("PRIMARY_REPORTER_OTHER_HCP", "PRIMARY_REPORTER_OTHER_HCP"),
            ("SENDER_TYPE", "SENDER_TYPE"),
            ("SENDER_TYPE_HCP DETAIL", "SENDER_TYPE_HCP_DETAIL"),
            ("PATIENT AGE AT OCCURRENCE_UNIT", "AGE_UNIT"),
            ("PATIENT AGE GROUP", "PATIENT_AGE_GROUP"),
            ("PATIENT SEX", "PATIENT_SEX"),
            ("PREGNANCY_TERM_OCCURRENCE_UNIT", "TIME_UNIT"),
        ),
    ),
    TableKind.HIST_E: SheetSpec(
        kind=TableKind.HIST_E,
        renames=HIST_E_HEADER_RENAMES,
        translations=(("CONTINUING", "YES_NO"),),
        insertions=(
            InsertColumn(
                name="DISEASE_NAME_ENG",
                anchor="DISEASE_CODE",
                derive=translated("DISEASE_CODE", "KCD"),
            ),
        ),
    ),
    TableKind.PARENT: SheetSpec(
        kind=TableKind.PARENT,
        renames=PARENT_HEADER_RENAMES,
        translations=(
            ("PARENT_SEX", "PATIENT_SEX"),
            ("PARENT_AGE_UNIT", "TIME_UNIT"),
        ),
    ),
    TableKind.EVENT: SheetSpec(
        kind=TableKind.EVENT,
        renames=EVENT_HEADER_RENAMES,
        translations=(
            ("ADR_OUTCOME", "ADR_OUTCOME"),
            ("MEDICALLY_CONFIRMED", "YES_NO"),
        ),
        insertions=(
            InsertColumn(
                name="WHOART_ENG",
                anchor="WHOART_IT",
                derive=composite_translated(("WHOART_PT", "WHOART_IT"), "WHOART"),
            ),
            InsertColumn(
                name="SERIOUSNESS",
                anchor="SER_DEATH",
                position=ColumnPosition.BEFORE,
                derive=any_present(SERIOUSNESS_CRITERIA),
            ),
        ),
    ),
    TableKind.TEST: SheetSpec(
        kind=TableKind.TEST,
        renames=TEST_HEADER_RENAMES,
        translations=(("TEST_RESULT_UNIT", "DOSAGE_UNIT"),),
    ),
    TableKind.DRUG: SheetSpec(
        kind=TableKind.DRUG,
        renames=DRUG_HEADER_RENAMES,
        translations=(
            ("DRUG_GROUP", "DRUG_GROUP"),
            ("DRUG_ACTION_TAKEN", "DRUG_ACTION_TAKEN"),
            ("ACCUMULATE_DOSAGE_SINCE_ONSET_UNIT", "DOSAGE_UNIT"),
            ("ADMIN_ROUTE", "ADMIN_ROUTE"),
            ("DOSAGE_FORM", "DOSAGE_FORM"),
        ),
        insertions=(
            InsertColumn(
                name="DRUG_NAME",
                anchor="DRUG_CODE",
                derive=translated("DRUG_CODE", "DRUG_CODE"),
            ),
            _INGREDIENT_NAME,
        ),
    ),
    TableKind.DRUG1: SheetSpec(
        kind=TableKind.DRUG1,
        renames=DRUG1_HEADER_RENAMES,
        translations=(
            ("DOSAGE_UNIT", "DOSAGE_UNIT"),
            ("ADMIN_ROUTE", "ADMIN_ROUTE"),
            ("DOSAGE_PERIOD_UNIT_TEXT", "TIME_UNIT"),
        ),
    ),
    TableKind.DRUG2: SheetSpec(
        kind=TableKind.DRUG2,
        renames=DRUG2_HEADER_RENAMES,
        insertions=(
            InsertColumn(
                name="INDICATION_NAME_ENG",
                anchor="INDICATION_CODE",
                derive=translated("INDICATION_CODE", "KCD"),
            ),
        ),
    ),
    TableKind.DRUG3: SheetSpec(
        kind=TableKind.DRUG3,
        renames=DRUG3_HEADER_RENAMES,
        translations=(("INGREDIENT_UNIT", "DOSAGE_UNIT"),),
        insertions=(_INGREDIENT_NAME,),
    ),
    TableKind.DRUG_EVENT: SheetSpec(
        kind=TableKind.DRUG_EVENT,
        renames=DRUG_EVENT_HEADER_RENAMES,
        translations=(("RECHALLENGE_ADR_REOCCUR", "RECHALLENGE_ADR_REOCCUR"),),
    ),
    TableKind.ASSESSMENT: SheetSpec(
        kind=TableKind.ASSESSMENT,
        renames=ASSESSMENT_HEADER_RENAMES,
        translations=(("CAUSALITY_ASSESSMENT", "CAUSALITY_ASSESSMENT"),),
    ),
    TableKind.GROUP: SheetSpec(
        kind=TableKind.GROUP,
        renames=GROUP_HEADER_RENAMES,
    ),
}


class SheetTransformer:
    """Applies the declared transformation of each table kind."""

    def __init__(self, code_tables: CodeTables, specs: Mapping[TableKind, SheetSpec] = SHEET_SPECS):
        self.code_tables = code_tables
        self.specs = specs

    def transform(self, table: SheetTable) -> SheetTable:
        """
        Transform one parsed table.

        :raises CodeTableLoadError: when a reference table needed by the sheet is unavailable.
        """
        spec = self.specs.get(table.kind)
        if spec is None:
            logger.debug(f"No transformation declared for {table.kind.value}; passing through.")
            return table.model_copy()
        logger.info(
            f"Transforming {table.kind.value} ({len(table.rows)} rows"
            f"{', from ' + table.source_name if table.source_name else ''})."
        )
        return transform_table(table, spec, self.code_tables)
