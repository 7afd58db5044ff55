from __future__ import annotations

"""Built-in vocabulary tables.

Profiles in config/import.yml may replace any of these per counselling type.
Program patterns are regular expressions matched at the start of the cell
(case-insensitive); category tokens match the whole cell; quota markers match
anywhere in the cell.
"""

__all__ = [
    "DEFAULT_PROGRAM_PATTERNS",
    "DEFAULT_CATEGORY_TOKENS",
    "DEFAULT_QUOTA_MARKERS",
    "DEFAULT_TYPO_FIXES",
]

DEFAULT_PROGRAM_PATTERNS: tuple[str, ...] = (
    # degree titles
    r"M\.\s?D\.",
    r"M\.\s?S\.",
    r"M\.\s?CH\b",
    r"D\.\s?M\.",
    r"MD\b",
    r"MS\b",
    r"MCH\b",
    r"DM\b",
    r"MBBS\b",
    r"BDS\b",
    r"MDS\b",
    r"M\.D\.S\.",
    r"B\.D\.S\.",
    r"DNB\b",
    r"NBEMS\b",
    r"\(NBEMS\)",
    r"\(NBEMS-",
    r"DIPLOMA\b",
    r"DIP\.",
    # specialities that appear without a degree prefix
    r"GENERAL MEDICINE",
    r"GENERAL SURGERY",
    r"PAEDIATRICS",
    r"PEDIATRICS",
    r"OBSTETRICS",
    r"GYNAECOLOGY",
    r"PSYCHIATRY",
    r"DERMATOLOGY",
    r"ORTHOPAEDICS",
    r"ORTHOPEDICS",
    r"RADIO[- ]?DIAGNOSIS",
    r"ANAESTHESIOLOGY",
    r"ANESTHESIA",
    r"BIOCHEMISTRY",
    r"PHYSIOLOGY",
    r"ANATOMY",
    r"MICROBIOLOGY",
    r"PHARMACOLOGY",
    r"PATHOLOGY",
    r"FORENSIC MEDICINE",
    r"COMMUNITY MEDICINE",
    r"RESPIRATORY MEDICINE",
    r"TRANSFUSION MEDICINE",
    r"EMERGENCY MEDICINE",
    r"HOSPITAL ADMINISTRATION",
    r"CONSERVATIVE DENTISTRY",
    r"ORAL (?:AND MAXILLOFACIAL )?SURGERY",
    r"ORAL MEDICINE",
    r"ORAL PATHOLOGY",
    r"PROSTHODONTICS",
    r"PERIODONTOLOGY",
    r"PERIODONTICS",
    r"ORTHODONTICS",
    r"PEDODONTICS",
    r"PAEDODONTICS",
    r"PUBLIC HEALTH DENTISTRY",
)

DEFAULT_CATEGORY_TOKENS: tuple[str, ...] = (
    # AIQ
    "OPEN",
    "GENERAL",
    "UR",
    "OBC",
    "SC",
    "ST",
    "EWS",
    "PH",
    "PWD",
    "OPEN PWD",
    "OBC PWD",
    "SC PWD",
    "ST PWD",
    "EWS PWD",
    "GN",
    "GN PWD",
    "BC",
    "BC PWD",
    "UNRESERVED",
    "SCHEDULED CASTE",
    "SCHEDULED TRIBE",
    "OTHER BACKWARD CLASS",
    "ECONOMICALLY WEAKER SECTION",
    "PERSONS WITH DISABILITY",
    # KEA
    "GM",
    "GMP",
    "GMPH",
    "CAT1",
    "CAT2",
    "CAT3",
    "CAT4",
    "1G",
    "2AG",
    "2AH",
    "2BG",
    "3AG",
    "3BG",
    "SCG",
    "STG",
    "OPN",
    "MNG",
    "NRI",
    "ME",
    "MU",
)

DEFAULT_QUOTA_MARKERS: tuple[str, ...] = (
    "QUOTA",
    "SEATS",
    "MANAGEMENT",
    "PAID",
    "DEEMED",
    "ALL INDIA",
    "CENTRAL",
    "STATE",
    "GOVERNMENT",
    "PRIVATE",
    "INSTITUTIONAL",
    "ESIC",
    "AFMS",
    "IP UNIVERSITY",
    "KEA",
    "NON-RESIDENT",
    "MUSLIM MINORITY",
    "FOREIGN",
    "OVERSEAS",
    "INTERNATIONAL",
)

# Split-word artifacts seen in exported label text. Each replacement is
# shorter than its typo, so repeated normalization always stops.
DEFAULT_TYPO_FIXES: dict[str, str] = {
    "MANAGE MENT/PAI D SEATS QUOTA": "MANAGEMENT/PAID SEATS QUOTA",
    "MANAGE MENT/PAI D": "MANAGEMENT/PAID",
    "MANAGE MENT": "MANAGEMENT",
    "PAI D SEATS": "PAID SEATS",
    "PAI D": "PAID",
    "QUO TA": "QUOTA",
    "SEA TS": "SEATS",
    "DEEM ED": "DEEMED",
    "OPEN CATEGORY": "OPEN",
    "GENERAL CATEGORY": "GENERAL",
    "UR CATEGORY": "UR",
    "OBC CATEGORY": "OBC",
    "SC CATEGORY": "SC",
    "ST CATEGORY": "ST",
    "EWS CATEGORY": "EWS",
}
