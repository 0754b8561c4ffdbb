"""
Tests for the field extractors.
"""

import pytest

from KYC import config
from KYC.extractors import (
    extract_aadhaar_number,
    extract_address_aadhaar,
    extract_address_generic,
    extract_date_of_birth,
    extract_father_name,
    extract_gender_aadhaar,
    extract_gender_generic,
    extract_mobile_number,
    extract_mother_name,
    extract_name_aadhaar,
    extract_name_generic,
    extract_pan_number,
    extract_pincode,
    extract_state,
    find_dob_line,
    is_plausible_name,
    is_valid_date,
    lookup_state,
)
from KYC.normalizer import normalize_text
from KYC.schemas import Confidence, DocumentType, FieldKey

AADHAAR = DocumentType.AADHAAR
PAN = DocumentType.PAN
VOTER_ID = DocumentType.VOTER_ID

AADHAAR_TEXT = """Government of India
Rahul Sharma
DOB: 15/08/1990
Male
Address: S/O Ram Sharma,
House No 12, MG Road, Andheri East
Mumbai, Maharashtra - 400069
2345 6789 1234
"""


def run(extractor, text, document_type=DocumentType.OTHER):
    return extractor(normalize_text(text), text, document_type)


class TestAadhaarNumber:
    def test_plain_twelve_digits(self):
        field = run(extract_aadhaar_number, "Your number 234567891234 is linked")
        assert field.key == FieldKey.AADHAAR_NUMBER
        assert field.value == "2345 6789 1234"
        assert field.confidence == Confidence.HIGH
        assert field.source == "Aadhaar"

    def test_grouped_digits(self):
        assert run(extract_aadhaar_number, AADHAAR_TEXT, AADHAAR).value == "2345 6789 1234"

    def test_labelled_number(self):
        field = run(extract_aadhaar_number, "Aadhaar No.: 9876 5432 1098")
        assert field.value == "9876 5432 1098"

    def test_found_on_other_document_types(self):
        assert run(extract_aadhaar_number, "234567891234", PAN).value == "2345 6789 1234"

    def test_virtual_id_is_not_an_aadhaar_number(self):
        assert run(extract_aadhaar_number, "VID: 9123 4567 8901 2345") is None

    def test_ocr_confusion_rescued_by_normalization(self):
        assert run(extract_aadhaar_number, "2345 6789 I234").value == "2345 6789 1234"

    def test_too_few_digits(self):
        assert run(extract_aadhaar_number, "2345 6789 123") is None


class TestPanNumber:
    def test_bare_pan(self):
        field = run(extract_pan_number, "ABCDE1234F")
        assert field.value == "ABCDE1234F"
        assert field.confidence == Confidence.HIGH
        assert field.source == "PAN Card"

    def test_labelled_lowercase_pan_is_uppercased(self):
        assert run(extract_pan_number, "PAN: abcde1234f").value == "ABCDE1234F"

    def test_invalid_shape(self):
        assert run(extract_pan_number, "ABCD12345F") is None


class TestDateOfBirth:
    def test_labelled_date(self):
        field = run(extract_date_of_birth, "DOB: 15/08/1990", AADHAAR)
        assert field.value == "15/08/1990"
        assert field.confidence == Confidence.HIGH
        assert field.source == "Aadhaar"

    @pytest.mark.parametrize("value", ["12-05-1985", "1.1.1950", "15/08/1990"])
    def test_separators(self, value):
        assert run(extract_date_of_birth, f"Born {value}").value == value

    def test_invalid_dates_skipped_for_later_valid_one(self):
        text = "Issued 32/01/2000 ref 15/13/1990 DOB 05/06/1975"
        assert run(extract_date_of_birth, text).value == "05/06/1975"

    def test_year_out_of_range(self):
        assert run(extract_date_of_birth, "01/01/1899") is None
        assert run(extract_date_of_birth, "01/01/2101") is None

    def test_structural_check_only(self):
        # No day-per-month validation: 31 February passes.
        assert run(extract_date_of_birth, "DOB 31/02/2000").value == "31/02/2000"
        assert is_valid_date(31, 2, 2000)

    def test_source_for_generic_documents(self):
        assert run(extract_date_of_birth, "Date of Birth: 01/02/1980", VOTER_ID).source == "Voter ID"


class TestPincode:
    @pytest.mark.parametrize("pin", ["100000", "999999", "400069"])
    def test_accepts_valid(self, pin):
        field = run(extract_pincode, f"Pincode: {pin}")
        assert field.value == pin
        assert field.confidence == Confidence.MEDIUM

    def test_rejects_below_range(self):
        assert run(extract_pincode, "PIN 099999") is None

    def test_skips_invalid_for_later_valid(self):
        assert run(extract_pincode, "Code 012345, Pune 411001").value == "411001"

    def test_ignores_longer_digit_runs(self):
        assert run(extract_pincode, "234567891234") is None

    def test_first_valid_token_wins_over_later_label(self):
        text = "Sector 5, Pune 411001\nPIN Code: 560001"
        assert run(extract_pincode, text).value == "411001"


class TestMobileNumber:
    def test_labelled_with_country_code(self):
        field = run(extract_mobile_number, "Mobile: +91 98765 43210")
        assert field.value == "9876543210"
        assert field.confidence == Confidence.MEDIUM

    def test_bare_number(self):
        assert run(extract_mobile_number, "Contact 9123456780").value == "9123456780"

    def test_not_taken_from_aadhaar_number(self):
        assert run(extract_mobile_number, "987654321098") is None

    def test_must_start_with_six_to_nine(self):
        assert run(extract_mobile_number, "Phone 1234567890") is None


class TestGenderAadhaar:
    def test_gender_below_dob(self):
        field = run(extract_gender_aadhaar, AADHAAR_TEXT, AADHAAR)
        assert field.value == "Male"
        assert field.confidence == Confidence.HIGH

    def test_female_not_read_as_male(self):
        text = "Priya Verma\nDOB: 01/01/1995\nFEMALE"
        assert run(extract_gender_aadhaar, text, AADHAAR).value == "Female"

    def test_tolerates_stray_characters(self):
        text = "Rahul Sharma\nDOB: 01/01/1990\nwwMALEx"
        assert run(extract_gender_aadhaar, text, AADHAAR).value == "Male"

    def test_window_includes_lines_before_dob(self):
        text = "xxFEMALE\nPriya Verma\nDOB: 01/01/1995"
        assert run(extract_gender_aadhaar, text, AADHAAR).value == "Female"

    def test_standalone_letter(self):
        text = "Priya Verma\nDOB: 01/01/1995\nF"
        assert run(extract_gender_aadhaar, text, AADHAAR).value == "Female"

    def test_window_is_configurable(self, monkeypatch):
        filler = "\n".join(f"Filler line {i}" for i in range(6))
        text = f"Rahul Sharma\nDOB: 01/01/1990\n{filler}\nwwMALE"
        assert run(extract_gender_aadhaar, text, AADHAAR) is None

        monkeypatch.setattr(config, "GENDER_WINDOW_AFTER", 7)
        assert run(extract_gender_aadhaar, text, AADHAAR).value == "Male"

    @pytest.mark.parametrize("fillers, expected", [(4, "Male"), (5, None)])
    def test_window_ends_five_lines_after_dob(self, fillers, expected):
        filler = "\n".join(f"Filler line {i}" for i in range(fillers))
        text = f"Rahul Sharma\nDOB: 01/01/1990\n{filler}\nwwMALE"
        field = run(extract_gender_aadhaar, text, AADHAAR)
        assert (field.value if field else None) == expected

    def test_falls_back_to_label_without_dob(self):
        text = "Rahul Sharma\nGender: M"
        assert run(extract_gender_aadhaar, text, AADHAAR).value == "Male"

    def test_not_found(self):
        assert run(extract_gender_aadhaar, "Rahul Sharma\nDOB: 01/01/1990", AADHAAR) is None


class TestGenderGeneric:
    def test_label(self):
        assert run(extract_gender_generic, "Sex: F", VOTER_ID).value == "Female"

    def test_whole_word(self):
        assert run(extract_gender_generic, "Holder is MALE", PAN).value == "Male"

    def test_no_tolerant_tokens_for_generic(self):
        assert run(extract_gender_generic, "wwMALE", PAN) is None


class TestNameAadhaar:
    def test_name_above_dob(self):
        field = run(extract_name_aadhaar, AADHAAR_TEXT, AADHAAR)
        assert field.value == "Rahul Sharma"
        assert field.confidence == Confidence.HIGH
        assert field.source == "Aadhaar"

    def test_explicit_label(self):
        text = "Name: Priya Verma\nDOB: 01/01/1995"
        assert run(extract_name_aadhaar, text, AADHAAR).value == "Priya Verma"

    def test_strips_noise_prefix_and_suffix(self):
        text = "GOVERNMENT OF INDIA\nEl RAHUL KUMAR HE\nDOB: 01/01/1990"
        assert run(extract_name_aadhaar, text, AADHAAR).value == "RAHUL KUMAR"

    def test_longest_line_fallback(self):
        text = "ab cd\nrahul kumar sharma\nDOB: 01/01/1990"
        assert run(extract_name_aadhaar, text, AADHAAR).value == "rahul kumar sharma"

    def test_only_lines_before_dob(self):
        text = "DOB: 01/01/1990\nRahul Sharma"
        assert run(extract_name_aadhaar, text, AADHAAR) is None

    def test_aadhaar_line_bounds_search_when_earlier(self):
        text = "Rahul Sharma\n2345 6789 1234\nAnita Desai\nDOB: 01/01/1990"
        assert run(extract_name_aadhaar, text, AADHAAR).value == "Rahul Sharma"


class TestNameGeneric:
    PAN_TEXT = (
        "INCOME TAX DEPARTMENT\nGOVT. OF INDIA\nPermanent Account Number Card\n"
        "ABCDE1234F\nName\nRAHUL SHARMA\nFather's Name\nRAM SHARMA\n"
        "Date of Birth\n15/08/1990\n"
    )

    def test_labelled_name_on_pan_card(self):
        field = run(extract_name_generic, self.PAN_TEXT, PAN)
        assert field.value == "RAHUL SHARMA"
        assert field.source == "PAN Card"

    def test_fathers_name_not_taken_as_holder(self):
        text = "Father's Name: Ram Sharma\nDOB 01/01/1990"
        assert run(extract_name_generic, text, PAN) is None

    def test_implausible_capture_rejected(self):
        assert run(extract_name_generic, "Name: AB CD", VOTER_ID) is None

    def test_no_label(self):
        assert run(extract_name_generic, "Rahul Sharma", VOTER_ID) is None


class TestIsPlausibleName:
    @pytest.mark.parametrize("name", ["Rahul Sharma", "RAHUL KUMAR SHARMA", "Anita Desai"])
    def test_accepts(self, name):
        assert is_plausible_name(name)

    @pytest.mark.parametrize(
        "name",
        ["", "Rahul", "AB CD", "12345 678", "rahul sharma", "Ra$$ul Sh##ma", "Born 12/05/1990"],
    )
    def test_rejects(self, name):
        assert not is_plausible_name(name)


class TestRelativeNames:
    def test_father_from_pan_label(self):
        field = run(extract_father_name, TestNameGeneric.PAN_TEXT, PAN)
        assert field.value == "RAM SHARMA"
        assert field.confidence == Confidence.MEDIUM

    def test_father_from_son_of(self):
        assert run(extract_father_name, AADHAAR_TEXT, AADHAAR).value == "Ram Sharma"

    def test_mother(self):
        assert run(extract_mother_name, "Mother's Name: Sita Sharma").value == "Sita Sharma"

    def test_not_found(self):
        assert run(extract_mother_name, AADHAAR_TEXT, AADHAAR) is None


class TestAddressAadhaar:
    def test_lines_between_dob_and_pincode(self):
        field = run(extract_address_aadhaar, AADHAAR_TEXT, AADHAAR)
        assert field.value == "S/O Ram Sharma, House No 12, MG Road, Andheri East"
        assert field.confidence == Confidence.MEDIUM

    def test_at_most_five_lines(self):
        body = "\n".join(f"Street number {i} Lane" for i in range(7))
        text = f"DOB: 01/01/1990\n{body}\nPune 411001"
        field = run(extract_address_aadhaar, text, AADHAAR)
        assert field.value.count(",") == 4
        assert "Street number 5" not in field.value

    def test_short_address_is_low_confidence(self):
        text = "DOB: 01/01/1990\nGandhi Nagar\n411001"
        field = run(extract_address_aadhaar, text, AADHAAR)
        assert field.value == "Gandhi Nagar"
        assert field.confidence == Confidence.LOW

    def test_no_candidate_lines(self):
        text = "Rahul Sharma\nDOB: 01/01/1990\nMale\n2345 6789 1234"
        assert run(extract_address_aadhaar, text, AADHAAR) is None


class TestAddressGeneric:
    def test_labelled_address(self):
        text = "Name: Anita Desai\nAddress: 14 Park Street, Kolkata, West Bengal 700016"
        field = run(extract_address_generic, text, VOTER_ID)
        assert field.value == "14 Park Street, Kolkata, West Bengal 700016"
        assert field.confidence == Confidence.MEDIUM
        assert field.source == "Voter ID"

    def test_short_address_is_low_confidence(self):
        field = run(extract_address_generic, "Address: Lane 4, Pune", VOTER_ID)
        assert field.value == "Lane 4, Pune"
        assert field.confidence == Confidence.LOW

    def test_no_label(self):
        assert run(extract_address_generic, "14 Park Street, Kolkata", VOTER_ID) is None

    def test_rejected_when_tidied_below_ten_characters(self):
        assert run(extract_address_generic, "Address: Flat 2, , , , ,", VOTER_ID) is None


class TestState:
    def test_lookup_in_full_text(self):
        field = run(extract_state, AADHAAR_TEXT, AADHAAR)
        # Generic address strategy finds the "Address:" label here too.
        assert field.value == "Maharashtra"
        assert field.confidence == Confidence.MEDIUM

    def test_label_wins(self):
        text = "Address: 4 Hill Road, Bandra West\nState: Goa"
        assert run(extract_state, text, VOTER_ID).value == "Goa"

    def test_uppercase_state_is_canonicalized(self):
        text = "Address: 12 Anna Salai, CHENNAI, TAMIL NADU"
        assert run(extract_state, text, VOTER_ID).value == "Tamil Nadu"

    def test_requires_address(self):
        assert run(extract_state, "Born in Maharashtra", VOTER_ID) is None

    def test_union_territory(self):
        assert lookup_state("Sector 17, Chandigarh") == "Chandigarh"
        assert lookup_state("Nowhere") is None

    def test_unicode_case_variant_is_canonicalized(self):
        assert lookup_state("Guwahati, A\u017f\u017fam") == "Assam"


class TestFindDobLine:
    def test_first_valid_date_line(self):
        assert find_dob_line(["Rahul", "Ref 99/99/2000", "DOB 01/01/1990"]) == 2

    def test_missing(self):
        assert find_dob_line(["Rahul Sharma"]) == -1
