"""
extractors.py

Field extractors for OCR text of Indian identity documents.

Every extractor is a pure function with the same signature:

    extractor(lines, raw_text, document_type) -> Optional[ExtractedField]

where ``lines`` is the output of normalizer.normalize_text and ``raw_text``
is the untouched OCR output. ``None`` means the field was not found.
Extractors never depend on each other's results; the Aadhaar heuristics
locate the lines they need (DOB, Aadhaar number, pincode) themselves.

Pattern scans look at the raw text first and at the normalized text
second, so character folding can rescue a value the raw text garbles.
"""

import logging
import math
import re
from typing import Callable, List, Optional, Sequence

from . import config
from .schemas import Confidence, DocumentType, ExtractedField, FieldKey

logger = logging.getLogger(__name__)

Extractor = Callable[[Sequence[str], str, DocumentType], Optional[ExtractedField]]

SOURCE_LABELS = {
    DocumentType.AADHAAR: "Aadhaar",
    DocumentType.PAN: "PAN Card",
    DocumentType.VOTER_ID: "Voter ID",
    DocumentType.DRIVING_LICENSE: "Driving License",
    DocumentType.PASSPORT: "Passport",
    DocumentType.OTHER: "Document",
}

# Card boilerplate that is never part of a person's name.
NAME_STOPWORDS = {
    "GOVERNMENT", "GOVT", "INDIA", "REPUBLIC", "OF", "THE", "AADHAAR",
    "AADHAR", "PAN", "CARD", "NUMBER", "DATE", "BIRTH", "DOB", "MALE",
    "FEMALE", "YEAR", "MONTH", "DAY", "HE", "HI", "H", "E", "INCOME",
    "TAX", "DEPARTMENT", "UNIQUE", "IDENTIFICATION", "AUTHORITY",
    "ELECTION", "COMMISSION", "ADDRESS", "NAME",
}

INDIAN_STATES = [
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh",
    "Goa", "Gujarat", "Haryana", "Himachal Pradesh", "Jharkhand",
    "Karnataka", "Kerala", "Madhya Pradesh", "Maharashtra", "Manipur",
    "Meghalaya", "Mizoram", "Nagaland", "Odisha", "Punjab", "Rajasthan",
    "Sikkim", "Tamil Nadu", "Telangana", "Tripura", "Uttar Pradesh",
    "Uttarakhand", "West Bengal",
    # Union territories
    "Andaman and Nicobar Islands", "Chandigarh",
    "Dadra and Nagar Haveli and Daman and Diu", "Delhi",
    "Jammu and Kashmir", "Ladakh", "Lakshadweep", "Puducherry",
]

# -----------------------------
# Patterns
# -----------------------------
_TWELVE_DIGITS = r"(\d{4}[ \t]?\d{4}[ \t]?\d{4})"
_DATE = r"(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})"

# The trailing guard keeps the first 12 digits of a 16-digit VID out.
AADHAAR_RE = re.compile(r"(?<!\d)(?<!\d[ \t])" + _TWELVE_DIGITS + r"(?![ \t]?\d)")
AADHAAR_LABEL_RE = re.compile(
    r"(?i:aadhaar|aadhar|आधार)(?i:\s*(?:no|number))?[\s:.]*"
    + _TWELVE_DIGITS
    + r"(?![ \t]?\d)"
)

PAN_RE = re.compile(r"\b([A-Z]{5}\d{4}[A-Z])\b")
PAN_LABEL_RE = re.compile(
    r"(?<![A-Za-z])(?i:permanent\s+account\s+number|pan|पैन)(?i:\s*(?:no|number|card))?"
    r"[\s:.]*([A-Za-z]{5}\d{4}[A-Za-z])\b"
)

DATE_RE = re.compile(r"(?<!\d)" + _DATE + r"(?!\d)")
DOB_LABEL_RE = re.compile(
    r"(?i:date\s+of\s+birth|year\s+of\s+birth|d\.?o\.?b|birth|जन्म\s*तिथि)[\s:./]*"
    r"(" + _DATE + r")(?!\d)"
)

PINCODE_RE = re.compile(r"(?<!\d)(\d{6})(?!\d)")
FEMALE_TOKEN_RE = re.compile(r"(?<![A-Za-z])[A-Za-z]{0,3}FEMALE[A-Za-z]{0,3}(?![A-Za-z])", re.I)
MALE_TOKEN_RE = re.compile(r"(?<![A-Za-z])[A-Za-z]{0,3}MALE[A-Za-z]{0,3}(?![A-Za-z])", re.I)
GENDER_LABEL_RE = re.compile(r"(?:gender|sex|लिंग)[\s:./]*(female|male|f|m)\b", re.I)
GENDER_WORD_RE = re.compile(r"\b(female|male)\b", re.I)
STANDALONE_GENDER_RE = re.compile(r"^([MF])$", re.I)

NAME_LABEL_RE = re.compile(r"(?<![A-Za-z])(?:name|नाम)[\s:]+([A-Z][a-zA-Z\s]{2,50})", re.I)
GENERIC_NAME_RE = re.compile(
    r"(?<![A-Za-z])(?i:name|नाम)[\s:]*([A-Z][A-Za-z]+(?:[ \t]+[A-Z][A-Za-z]+){1,3})"
)
RELATION_LABEL_RE = re.compile(r"(?:father|mother|husband|guardian)\W*s?\W*$", re.I)
FATHER_RE = re.compile(
    r"(?<![A-Za-z])(?i:father'?s?\s*name|father|[SD]\s*/\s*O|पिता(?:\s*का\s*नाम)?)[\s:.,]*"
    r"([A-Z][A-Za-z]+(?:[ \t]+[A-Z][A-Za-z]+){1,3})"
)
MOTHER_RE = re.compile(
    r"(?<![A-Za-z])(?i:mother'?s?\s*name|mother|माता(?:\s*का\s*नाम)?)[\s:.,]*"
    r"([A-Z][A-Za-z]+(?:[ \t]+[A-Z][A-Za-z]+){1,3})"
)

NOISE_PREFIX_RE = re.compile(r"^(?:El|La|Le|The|A|An|H|E)\s+", re.I)
NOISE_SUFFIX_RE = re.compile(r"\s+(?:HE|HI|H|E)$", re.I)
SHORT_FRAGMENT_RE = re.compile(r"^[A-Z]{1,2}\s[A-Z]{1,2}$")

ADDRESS_LABEL_RE = re.compile(r"(?i:address|पता)[\s:]*([A-Za-z0-9\s,./\-]{10,100})")
ADDRESS_PREFIX_RE = re.compile(r"^(?:address|पता)\s*:?\s*", re.I)
STATE_LABEL_RE = re.compile(r"(?<![A-Za-z])(?i:state)[ \t]*:?[ \t]*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)")
STATE_NAME_RE = re.compile(
    r"\b("
    + "|".join(re.escape(s) for s in sorted(INDIAN_STATES, key=len, reverse=True))
    + r")\b",
    re.I,
)
_STATE_BY_NAME = {name.casefold(): name for name in INDIAN_STATES}

MOBILE_LABEL_RE = re.compile(
    r"(?<![A-Za-z])(?i:mobile|mob|phone|ph|मोबाइल)(?i:\s*(?:no|number))?[\s:.]*"
    r"(?:\+?91[ \-]?|0)?([6-9]\d{4}[ \-]?\d{5})(?!\d)"
)
MOBILE_RE = re.compile(r"(?<![\d+])(?:\+91[ \-]?)?([6-9]\d{4}[ \-]?\d{5})(?!\d)")


# -----------------------------
# Helpers
# -----------------------------
def source_label(document_type: DocumentType) -> str:
    return SOURCE_LABELS.get(DocumentType(document_type), "Document")


def _field(key: FieldKey, value: str, confidence: Confidence, source: str) -> ExtractedField:
    return ExtractedField(key=key, value=value, confidence=confidence, source=source)


def _search_texts(lines: Sequence[str], raw_text: str) -> List[str]:
    """Texts to scan, raw OCR output first."""
    texts = []
    if raw_text and raw_text.strip():
        texts.append(raw_text)
    normalized = "\n".join(lines)
    if normalized and normalized != raw_text:
        texts.append(normalized)
    return texts


def _first_line(lines: Sequence[str], predicate: Callable[[str], bool]) -> int:
    for i, line in enumerate(lines):
        if predicate(line):
            return i
    return -1


def is_valid_date(day: int, month: int, year: int) -> bool:
    """
    Structural date check.

    Only ranges are validated; day-per-month and leap years are not,
    so 31/02/2000 passes.
    """
    return 1 <= day <= 31 and 1 <= month <= 12 and 1900 <= year <= 2100


def is_valid_pincode(pin: str) -> bool:
    return len(pin) == 6 and pin.isdigit() and 100000 <= int(pin) <= 999999


def format_aadhaar(digits: str) -> str:
    return f"{digits[0:4]} {digits[4:8]} {digits[8:12]}"


def _valid_date_in(line: str) -> Optional[str]:
    for match in DATE_RE.finditer(line):
        day, month, year = (int(part) for part in match.groups())
        if is_valid_date(day, month, year):
            return match.group(0)
    return None


def _has_aadhaar(line: str) -> bool:
    return AADHAAR_RE.search(line) is not None


def _has_date(line: str) -> bool:
    return DATE_RE.search(line) is not None


def _has_pincode(line: str) -> bool:
    return any(is_valid_pincode(m.group(1)) for m in PINCODE_RE.finditer(line))


def find_dob_line(lines: Sequence[str]) -> int:
    """Index of the first line holding a structurally valid date, or -1."""
    return _first_line(lines, lambda line: _valid_date_in(line) is not None)


def find_aadhaar_line(lines: Sequence[str]) -> int:
    return _first_line(lines, _has_aadhaar)


def find_pincode_line(lines: Sequence[str]) -> int:
    return _first_line(lines, _has_pincode)


def _follows_relation_label(text: str, start: int) -> bool:
    """True when a matched 'name' label is really "Father's Name" and the like."""
    return RELATION_LABEL_RE.search(text[max(0, start - 12):start]) is not None


def is_plausible_name(text: str) -> bool:
    """
    Check that a candidate looks like a person's name and not OCR garbage.

    Requires at least two words and 4-50 characters, rejects card
    boilerplate, dates and numbers, allows at most 20% non-alphabetic
    characters, and needs 70% of the words to be capitalized and 2-20
    characters long.
    """
    if not text or not text.strip():
        return False

    trimmed = text.strip()
    words = trimmed.split()
    if len(words) < 2 or len(trimmed) < 4 or len(trimmed) > 50:
        return False

    if (
        SHORT_FRAGMENT_RE.match(trimmed)
        or trimmed.upper() in NAME_STOPWORDS
        or trimmed.isdigit()
        or DATE_RE.search(trimmed)
        or re.search(r"\d{3,}", trimmed)
        or not re.match(r"[A-Z]", trimmed)
    ):
        return False

    non_alpha = len(re.findall(r"[^A-Za-z\s]", trimmed))
    if non_alpha / len(trimmed) > 0.2:
        return False

    valid_words = [w for w in words if 2 <= len(w) <= 20 and re.match(r"[A-Z]", w)]
    return len(valid_words) >= math.ceil(len(words) * 0.7)


# -----------------------------
# Identifiers
# -----------------------------
def extract_aadhaar_number(lines, raw_text, document_type) -> Optional[ExtractedField]:
    """12-digit Aadhaar number, rendered as XXXX XXXX XXXX."""
    for text in _search_texts(lines, raw_text):
        for pattern in (AADHAAR_LABEL_RE, AADHAAR_RE):
            for match in pattern.finditer(text):
                digits = re.sub(r"\s", "", match.group(1))
                if len(digits) == 12 and digits.isdigit():
                    return _field(
                        FieldKey.AADHAAR_NUMBER,
                        format_aadhaar(digits),
                        Confidence.HIGH,
                        SOURCE_LABELS[DocumentType.AADHAAR],
                    )
    return None


def extract_pan_number(lines, raw_text, document_type) -> Optional[ExtractedField]:
    for text in _search_texts(lines, raw_text):
        for pattern in (PAN_LABEL_RE, PAN_RE):
            match = pattern.search(text)
            if match:
                return _field(
                    FieldKey.PAN_NUMBER,
                    match.group(1).upper(),
                    Confidence.HIGH,
                    SOURCE_LABELS[DocumentType.PAN],
                )
    return None


def extract_date_of_birth(lines, raw_text, document_type) -> Optional[ExtractedField]:
    """First D/M/Y date (separators / - .) that passes is_valid_date."""
    for text in _search_texts(lines, raw_text):
        for pattern, offset in ((DOB_LABEL_RE, 1), (DATE_RE, 0)):
            for match in pattern.finditer(text):
                day, month, year = (int(g) for g in match.groups()[offset:offset + 3])
                if is_valid_date(day, month, year):
                    value = match.group(1) if offset else match.group(0)
                    return _field(
                        FieldKey.DATE_OF_BIRTH,
                        value,
                        Confidence.HIGH,
                        source_label(document_type),
                    )
    return None


def extract_pincode(lines, raw_text, document_type) -> Optional[ExtractedField]:
    """First standalone 6-digit token in [100000, 999999], labelled or not."""
    for text in _search_texts(lines, raw_text):
        for match in PINCODE_RE.finditer(text):
            pin = match.group(1)
            if is_valid_pincode(pin):
                return _field(
                    FieldKey.PINCODE, pin, Confidence.MEDIUM, source_label(document_type)
                )
            logger.debug("Rejected pincode candidate %s", pin)
    return None


def extract_mobile_number(lines, raw_text, document_type) -> Optional[ExtractedField]:
    for text in _search_texts(lines, raw_text):
        for pattern in (MOBILE_LABEL_RE, MOBILE_RE):
            match = pattern.search(text)
            if match:
                number = re.sub(r"[ \-]", "", match.group(1))
                return _field(
                    FieldKey.MOBILE_NUMBER, number, Confidence.MEDIUM, source_label(document_type)
                )
    return None


# -----------------------------
# Gender
# -----------------------------
def _gender_value(token: str) -> str:
    return "Female" if token.strip().upper().startswith("F") else "Male"


def _gender_in_line(line: str) -> Optional[str]:
    # FEMALE first: the MALE token pattern also matches "FE" + "MALE".
    if FEMALE_TOKEN_RE.search(line):
        return "Female"
    if MALE_TOKEN_RE.search(line):
        return "Male"

    match = GENDER_LABEL_RE.search(line)
    if match:
        return _gender_value(match.group(1))

    match = STANDALONE_GENDER_RE.match(line.strip())
    if match:
        return _gender_value(match.group(1))
    return None


def _gender_in_text(texts: Sequence[str]) -> Optional[str]:
    for pattern in (GENDER_LABEL_RE, GENDER_WORD_RE):
        for text in texts:
            match = pattern.search(text)
            if match:
                return _gender_value(match.group(1))
    return None


def extract_gender_aadhaar(lines, raw_text, document_type) -> Optional[ExtractedField]:
    """
    Gender on an Aadhaar card.

    The card prints gender on, just above, or a few lines below the DOB
    line, so that window is searched first with OCR-tolerant tokens
    ("wwMALE"). The window size comes from config.GENDER_WINDOW_BEFORE
    and config.GENDER_WINDOW_AFTER.
    """
    gender = None
    dob_index = find_dob_line(lines)
    if dob_index >= 0:
        start = max(0, dob_index - config.GENDER_WINDOW_BEFORE)
        end = min(len(lines), dob_index + config.GENDER_WINDOW_AFTER + 1)
        logger.debug("Searching gender in lines %d-%d around DOB line %d", start, end - 1, dob_index)
        for line in lines[start:end]:
            gender = _gender_in_line(line)
            if gender:
                break

    if not gender:
        gender = _gender_in_text(_search_texts(lines, raw_text))

    if not gender:
        return None
    return _field(FieldKey.GENDER, gender, Confidence.HIGH, source_label(document_type))


def extract_gender_generic(lines, raw_text, document_type) -> Optional[ExtractedField]:
    gender = _gender_in_text(_search_texts(lines, raw_text))
    if not gender:
        return None
    return _field(FieldKey.GENDER, gender, Confidence.HIGH, source_label(document_type))


# -----------------------------
# Names
# -----------------------------
def _name_from_label(lines: Sequence[str]) -> Optional[str]:
    for line in lines:
        for match in NAME_LABEL_RE.finditer(line):
            if _follows_relation_label(line, match.start()):
                continue
            cleaned = re.sub(r"\s+", " ", match.group(1))
            cleaned = re.sub(r"\d+$", "", cleaned).strip()
            if len(cleaned) >= 4 and len(cleaned.split()) >= 2:
                return cleaned
    return None


def _name_from_words(lines: Sequence[str]) -> Optional[str]:
    for line in lines:
        if _has_aadhaar(line) or _has_date(line):
            continue
        if len(line) < 4 or len(line) > 80:
            continue

        cleaned = NOISE_PREFIX_RE.sub("", line.strip())
        cleaned = NOISE_SUFFIX_RE.sub("", cleaned)
        cleaned = re.sub(r"^[A-Z]\s+", "", cleaned)
        cleaned = re.sub(r"\s+[A-Z]$", "", cleaned)

        words = [
            w for w in cleaned.split()
            if 2 <= len(w) <= 25
            and re.match(r"[A-Z]", w)
            and not w.isdigit()
            and w.upper() not in NAME_STOPWORDS
        ]
        if not 2 <= len(words) <= 5:
            continue

        candidate = " ".join(words)
        if not 4 <= len(candidate) <= 50:
            continue
        letters = len(re.findall(r"[A-Za-z]", candidate))
        if letters / len(candidate) >= 0.7:
            return candidate
    return None


def _name_from_longest_line(lines: Sequence[str]) -> Optional[str]:
    best = None
    for line in lines:
        if _has_aadhaar(line) or _has_date(line) or len(line) < 5:
            continue
        letter_ratio = len(re.findall(r"[A-Za-z\s]", line)) / len(line)
        if letter_ratio <= 0.8 or len(line.split()) < 2:
            continue
        cleaned = re.sub(r"\s+", " ", line.strip())
        if 5 <= len(cleaned) <= 50 and (best is None or len(cleaned) > len(best)):
            best = cleaned
    return best


def extract_name_aadhaar(lines, raw_text, document_type) -> Optional[ExtractedField]:
    """
    Full name on an Aadhaar card.

    The name is printed above both the DOB and the Aadhaar number, so
    only the lines before the earlier of the two are considered. Tries
    an explicit "Name:" label, then a word-level heuristic that strips
    OCR noise and card boilerplate, then the longest mostly-alphabetic
    line.
    """
    bounds = [i for i in (find_dob_line(lines), find_aadhaar_line(lines)) if i >= 0]
    candidates = lines[: min(bounds)] if bounds else list(lines)
    logger.debug("Searching name in %d candidate line(s)", len(candidates))

    for strategy in (_name_from_label, _name_from_words, _name_from_longest_line):
        name = strategy(candidates)
        if name:
            logger.debug("Name found via %s: %s", strategy.__name__, name)
            return _field(FieldKey.FULL_NAME, name, Confidence.HIGH, source_label(document_type))
    return None


def _labelled_name(pattern, lines: Sequence[str], raw_text: str, skip_relations: bool = False) -> Optional[str]:
    for text in _search_texts(lines, raw_text):
        for match in pattern.finditer(text):
            if skip_relations and _follows_relation_label(text, match.start()):
                continue
            candidate = match.group(1).strip()
            if is_plausible_name(candidate):
                return candidate
    return None


def extract_name_generic(lines, raw_text, document_type) -> Optional[ExtractedField]:
    name = _labelled_name(GENERIC_NAME_RE, lines, raw_text, skip_relations=True)
    if not name:
        return None
    return _field(FieldKey.FULL_NAME, name, Confidence.HIGH, source_label(document_type))


def extract_father_name(lines, raw_text, document_type) -> Optional[ExtractedField]:
    """Father's name from "Father's Name", "S/O" or "D/O" labels."""
    name = _labelled_name(FATHER_RE, lines, raw_text)
    if not name:
        return None
    return _field(FieldKey.FATHER_NAME, name, Confidence.MEDIUM, source_label(document_type))


def extract_mother_name(lines, raw_text, document_type) -> Optional[ExtractedField]:
    name = _labelled_name(MOTHER_RE, lines, raw_text)
    if not name:
        return None
    return _field(FieldKey.MOTHER_NAME, name, Confidence.MEDIUM, source_label(document_type))


# -----------------------------
# Address and state
# -----------------------------
def _is_address_line(line: str) -> bool:
    if len(line) < 10 or len(line) > 80:
        return False
    if line.isdigit() or SHORT_FRAGMENT_RE.match(line):
        return False
    if _has_aadhaar(line) or _has_date(line):
        return False
    if re.fullmatch(r"(?:MALE|FEMALE|M|F)", line, re.I):
        return False
    special = len(re.findall(r"[^A-Za-z0-9\s,.\-]", line))
    return special / len(line) < 0.3


def tidy_address(address: str) -> str:
    address = re.sub(r"\s+", " ", address)
    address = re.sub(r",\s*,", ",", address)
    address = re.sub(r"^[,\s]+", "", address)
    address = re.sub(r"[,\s]+$", "", address)
    return address.strip()


def _address_field(address: str, document_type: DocumentType) -> Optional[ExtractedField]:
    if len(address) < 10:
        return None
    confidence = Confidence.MEDIUM if len(address) > 20 else Confidence.LOW
    return _field(FieldKey.ADDRESS, address, confidence, source_label(document_type))


def extract_address_aadhaar(lines, raw_text, document_type) -> Optional[ExtractedField]:
    """
    Address on an Aadhaar card: the lines between the DOB line and the
    first line carrying a pincode.
    """
    dob_index = find_dob_line(lines)
    pin_index = find_pincode_line(lines)
    start = dob_index + 1 if dob_index >= 0 else 0
    end = pin_index if pin_index >= 0 else len(lines)

    address_lines = []
    for line in lines[start:end]:
        line = ADDRESS_PREFIX_RE.sub("", line)
        if _is_address_line(line):
            address_lines.append(line)

    if not address_lines:
        return None
    address = tidy_address(", ".join(address_lines[: config.ADDRESS_MAX_LINES]))
    return _address_field(address, document_type)


def extract_address_generic(lines, raw_text, document_type) -> Optional[ExtractedField]:
    for text in _search_texts(lines, raw_text):
        match = ADDRESS_LABEL_RE.search(text)
        if match:
            field = _address_field(tidy_address(match.group(1)), document_type)
            if field:
                return field
    return None


def lookup_state(text: str) -> Optional[str]:
    """Canonical state/UT name mentioned in text, if any."""
    match = STATE_NAME_RE.search(text or "")
    if not match:
        return None
    found = match.group(1)
    state = _STATE_BY_NAME.get(found.casefold())
    if state is None:
        # re.I also matches case variants that casefold() maps elsewhere.
        state = next(
            (name for name in INDIAN_STATES if re.fullmatch(re.escape(name), found, re.I)),
            None,
        )
    return state


def extract_state(
    lines,
    raw_text,
    document_type,
    address_extractor: Extractor = extract_address_generic,
) -> Optional[ExtractedField]:
    """
    State or union territory, only attempted once an address is found.

    ``address_extractor`` is the address strategy of the same document
    family; it is re-run here so the state extractor stays independent.
    """
    address = address_extractor(lines, raw_text, document_type)
    if address is None:
        return None

    texts = [address.value] + _search_texts(lines, raw_text)
    state = None
    for text in texts:
        match = STATE_LABEL_RE.search(text)
        if match:
            state = match.group(1)
            break
    if not state:
        for text in texts:
            state = lookup_state(text)
            if state:
                break

    if not state:
        return None
    return _field(FieldKey.STATE, state, Confidence.MEDIUM, source_label(document_type))
