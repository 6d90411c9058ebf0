"""Domain tests for barcode / record id references."""

from uuid import uuid4

import pytest

from inventory.ledger.refs import ByBarcode, ByRecordId, is_record_id, parse_item_ref, record_id_ref


class TestIsRecordId:
    def test_canonical_uuid_is_a_record_id(self):
        assert is_record_id(str(uuid4()))

    def test_uppercase_uuid_is_a_record_id(self):
        assert is_record_id(str(uuid4()).upper())

    @pytest.mark.parametrize(
        "value",
        [
            "4006381333931",
            "12345678901234567890123456789012",  # 32 digits parse as hex, but are not canonical
            "not-a-uuid",
            "",
            None,
            42,
        ],
    )
    def test_other_values_are_not_record_ids(self, value):
        assert not is_record_id(value)


class TestParseItemRef:
    def test_digits_become_a_barcode_ref(self):
        assert parse_item_ref("4006381333931") == ByBarcode("4006381333931")

    def test_uuid_becomes_a_record_id_ref(self):
        record_id = str(uuid4())
        assert parse_item_ref(record_id) == ByRecordId(record_id)

    def test_uuid_ref_is_normalized_to_lowercase(self):
        record_id = str(uuid4())
        assert parse_item_ref(record_id.upper()) == ByRecordId(record_id)

    def test_tagged_refs_pass_through(self):
        ref = ByRecordId("not-checked")
        assert parse_item_ref(ref) is ref


class TestRecordIdRef:
    def test_record_id_is_normalized_to_lowercase(self):
        record_id = str(uuid4())
        assert record_id_ref(record_id.upper()) == ByRecordId(record_id)


class TestCriteria:
    def test_barcode_criteria(self):
        assert ByBarcode("123").criteria() == {"barcode": "123"}

    def test_record_id_criteria(self):
        assert ByRecordId("abc").criteria() == {"id": "abc"}
