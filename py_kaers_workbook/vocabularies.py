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
This module declares the controlled vocabularies used to translate KAERS codes.

Two families exist:

* enumerated vocabularies, small fixed code lists that ship with the package;
* reference vocabularies, large dictionaries (drug products, ingredients, units,
  routes, dosage forms, disease classification, adverse-event terms) that are
  read from pipe-delimited files at run time. Only their file layout is
  declared here.
"""
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def _frozen(mapping: Dict[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


_TIME_UNITS = {
    "00109": "seconds",
    "00104": "minutes",
    "00105": "hours",
    "00107": "days",
    "00108": "weeks",
    "00106": "months",
    "00103": "years",
    "00009": "decades",
    "00010": "trimester",
    "00011": "periodically",
    "00012": "if necessary",
    "00013": "total",
}

ENUMERATED_VOCABULARIES: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {
        "REPORT_TYPE": _frozen(
            {
                "1": "Spontaneous",
                "2": "Clinical trial/study",
                "3": "Others",
            }
        ),
        "STUDY_TYPE": _frozen(
            {
                "1": "Clinical trial",
                "2": "Individual patient use",
                "3": "Other study",
            }
        ),
        "STUDY_TYPE_DETAIL": _frozen(
            {
                "1": "Re-examination-Post-marketing surveillance",
                "2": "Re-examination-Post-marketing clinical study",
                "3": "Re-examination-Special investigation",
                "4": "Others",
            }
        ),
        "NULLIFICATION_AMENDMENT": _frozen(
            {
                "1": "Delete",
                "2": "Amendment",
            }
        ),
        "PRIMARY_REPORTER": _frozen(
            {
                "1": "Doctor, Dentist, Oriental doctor",
                "2": "Pharmacist, Herbal pharmacist",
                "3": "Other HCP",
                "4": "Lawyer",
                "5": "Consumer or other non-HCP",
                "UNK": "Unknown",
            }
        ),
        "PRIMARY_REPORTER_OTHER_HCP": _frozen(
            {
                "1": "Nurse",
                "2": "Others",
            }
        ),
        "SENDER_TYPE": _frozen(
            {
                "1": "Pharmaceutical company",
                "2": "Competent authority",
                "3": "HCP",
                "4": "Regional pharmacovigilance center",
                "5": "WHO Uppsala Monitoring Centre",
                "6": "Others(eg. Distributor or other organization)",
                "7": "Patient/consumer",
            }
        ),
        "SENDER_TYPE_HCP_DETAIL": _frozen(
            {
                "1": "Hospital",
                "2": "Pharmacy",
                "3": "Public health center",
                "4": "Others",
            }
        ),
        "AGE_UNIT": _frozen(
            {
                "00105": "hours",
                "00107": "days",
                "00108": "weeks",
                "00106": "months",
                "00103": "years",
                "00009": "decades",
            }
        ),
        "PATIENT_AGE_GROUP": _frozen(
            {
                "0": "fetus",
                "1": "newborn(birth date~less than 28days)",
                "2": "infant(28days~less than 24 months)",
                "3": "children(24months~less than 12  years old)",
                "4": "adolescent(12 years~less than 19 years old)",
                "5": "adult(19 years~less than 65 years old)",
                "6": "geriatrics(more than 65 years old)",
            }
        ),
        "PATIENT_SEX": _frozen(
            {
                "1": "male",
                "2": "female",
            }
        ),
        "TIME_UNIT": _frozen(_TIME_UNITS),
        "ADR_OUTCOME": _frozen(
            {
                "1": "resolved",
                "2": "resolving",
                "3": "not resolved",
                "4": "resolved with sequelae",
                "5": "death due to AE/ADR",
                "0": "unknown",
            }
        ),
        "DRUG_GROUP": _frozen(
            {
                "1": "Suspected drug",
                "2": "Concomitant drug",
                "3": "Drug Interaction",
                "4": "Not administered",
            }
        ),
        "DRUG_ACTION_TAKEN": _frozen(
            {
                "1": "Drug withdrawn",
                "2": "Dose reduced",
                "3": "Dose increased",
                "4": "Dose not changed",
                "5": "Unknown",
                "6": "Not applicable",
            }
        ),
        "RECHALLENGE_ADR_REOCCUR": _frozen(
            {
                "1": "Rechallenged, AE reoccurred",
                "2": "Rechallenged, AE did not reoccur",
                "3": "Rechallenged, results unknown",
                "4": "Rechallenge not done",
            }
        ),
        "CAUSALITY_ASSESSMENT": _frozen(
            {
                "1": "Certain",
                "2": "Probable",
                "3": "Possible",
                "4": "Unlikely",
                "5": "Conditional/Unclassified",
                "6": "Unassessable/Unclassifiable",
                "7": "Not applicable",
            }
        ),
        "YES_NO": _frozen(
            {
                "Y": "Yes",
                "N": "No",
            }
        ),
    }
)

# Codes whose translated label other components compare against.
NULLIFICATION_DELETE_CODE = "1"
SUSPECTED_DRUG_CODE = "1"


class ReferenceTableSource(BaseModel):
    """
    Layout of a file-backed reference vocabulary.

    The file is UTF-8, pipe-delimited, with a header row. The key is built from
    `key_columns`; when there are several, each part is normalized on its own
    and the parts are joined with `separator`.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str
    key_columns: Tuple[str, ...]
    label_column: str
    key_widths: Tuple[Optional[int], ...] = Field(
        default=(),
        description="Zero-pad width per key part; None or missing means no padding.",
    )
    upper: bool = False
    strip_chars: str = ""
    separator: str = "-"

    def normalize_part(self, index: int, value: str) -> str:
        """Normalize one key part the same way for file keys and lookups."""
        part = value.strip()
        for char in self.strip_chars:
            part = part.replace(char, "")
        if self.upper:
            part = part.upper()
        width = self.key_widths[index] if index < len(self.key_widths) else None
        if width and part.isdigit():
            part = part.zfill(width)
        return part

    def make_key(self, parts: Tuple[str, ...]) -> str:
        """Build the normalized lookup key from its raw parts."""
        return self.separator.join(
            self.normalize_part(index, part) for index, part in enumerate(parts)
        )


REFERENCE_TABLES: Mapping[str, ReferenceTableSource] = MappingProxyType(
    {
        "DRUG_CODE": ReferenceTableSource(
            file_name="drug_code.txt",
            key_columns=("DRUG_CD",),
            label_column="DRUG_ENG_NM",
            key_widths=(9,),
        ),
        "INGREDIENT_CODE": ReferenceTableSource(
            file_name="ingredient_code.txt",
            key_columns=("INGR_CD",),
            label_column="INGR_ENG_NM",
            upper=True,
        ),
        "DOSAGE_UNIT": ReferenceTableSource(
            file_name="dosage_unit.txt",
            key_columns=("UNIT_CD",),
            label_column="UNIT_NM",
            key_widths=(5,),
        ),
        "ADMIN_ROUTE": ReferenceTableSource(
            file_name="admin_route.txt",
            key_columns=("ROUTE_CD",),
            label_column="ROUTE_ENG_NM",
            key_widths=(3,),
        ),
        "DOSAGE_FORM": ReferenceTableSource(
            file_name="dosage_form.txt",
            key_columns=("FORM_CD",),
            label_column="FORM_ENG_NM",
            key_widths=(3,),
        ),
        "KCD": ReferenceTableSource(
            file_name="kcd.txt",
            key_columns=("KCD_CD",),
            label_column="KCD_ENG_NM",
            upper=True,
            strip_chars=".",
        ),
        "WHOART": ReferenceTableSource(
            file_name="whoart.txt",
            key_columns=("ARRN", "SEQ"),
            label_column="WHOART_ENG_NM",
            key_widths=(4, 3),
        ),
    }
)
