# Overview: Pytest coverage for invoice number and member code allocation.

"""
Numbers come from per-name counter rows and are consumed only when the
allocating transaction commits.
"""

import pytest

from gymdesk.extensions import db
from gymdesk.services import sequence_service


class TestInvoiceNumbers:
    def test_sequential_within_year(self, db_session):
        sequence_service.ensure_sequence(sequence_service.invoice_sequence_name(2026))

        first = sequence_service.next_invoice_number(2026)
        db.session.commit()
        second = sequence_service.next_invoice_number(2026)
        db.session.commit()

        assert first == "INV-2026-0001"
        assert second == "INV-2026-0002"

    def test_each_year_restarts(self, db_session):
        sequence_service.next_invoice_number(2026)
        db.session.commit()

        assert sequence_service.next_invoice_number(2027) == "INV-2027-0001"
        db.session.commit()

    def test_rolled_back_number_is_reused(self, db_session):
        sequence_service.ensure_sequence(sequence_service.invoice_sequence_name(2026))

        sequence_service.next_invoice_number(2026)
        db.session.rollback()

        assert sequence_service.next_invoice_number(2026) == "INV-2026-0001"
        db.session.commit()

    def test_padding_grows_past_four_digits(self):
        assert sequence_service.format_invoice_number(2026, 12345) == "INV-2026-12345"


class TestMemberCodes:
    def test_prefix_and_padding(self, db_session):
        sequence_service.ensure_sequence(sequence_service.MEMBER_SEQUENCE)

        first = sequence_service.next_member_code()
        db.session.commit()
        second = sequence_service.next_member_code()
        db.session.commit()

        assert first == "NAZ-001"
        assert second == "NAZ-002"

    def test_uninitialized_sequence_raises(self, db_session):
        with pytest.raises(sequence_service.SequenceError):
            sequence_service.allocate("DOES-NOT-EXIST")
