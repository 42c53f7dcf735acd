"""
Fixtures for payment tests.

Fixtures:
    gateway: FakePaymentGateway
    notifier: RecordingDispatcher
    settlement: SettlementService wired to the fakes
    payout_accounts: PayoutAccountService wired to the fake gateway
    use_fake_services: Route the payment views to the fakes
    pending_lesson / paid_lesson / completed_paid_lesson: Lessons in settlement states
"""

import pytest

from lessons.tests.factories import LessonFactory
from notifications.tests.fakes import RecordingDispatcher
from payments.services import PayoutAccountService, SettlementService
from payments.tests.fakes import FakePaymentGateway


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def notifier():
    return RecordingDispatcher()


@pytest.fixture
def settlement(gateway, notifier):
    return SettlementService(gateway=gateway, notifier=notifier)


@pytest.fixture
def payout_accounts(gateway):
    return PayoutAccountService(gateway=gateway)


@pytest.fixture
def use_fake_services(monkeypatch, settlement, payout_accounts):
    monkeypatch.setattr("payments.views.get_settlement_service", lambda: settlement)
    monkeypatch.setattr("payments.views.get_payout_account_service", lambda: payout_accounts)


@pytest.fixture
def approved_lesson(student, teacher):
    return LessonFactory(student=student, approved=True, accepted_teacher=teacher)


@pytest.fixture
def pending_lesson(student, teacher):
    """Approved lesson with a payment awaiting the gateway callback."""
    return LessonFactory(
        student=student,
        approved=True,
        accepted_teacher=teacher,
        payment_pending=True,
    )


@pytest.fixture
def paid_lesson(student, teacher):
    return LessonFactory(student=student, approved=True, accepted_teacher=teacher, paid=True)


@pytest.fixture
def completed_paid_lesson(student, teacher):
    return LessonFactory(student=student, completed=True, accepted_teacher=teacher, paid=True)
