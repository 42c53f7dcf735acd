"""
Payments app: Paymob collection and teacher payouts.

This app handles:
- Hosted-checkout payment initiation for lessons
- Idempotent, HMAC-verified transaction callbacks
- Releasing collected payments to teachers, and retrying failed payouts
- Teacher payout account registration

Related apps:
    - lessons: Lesson carries the payment state machine
    - notifications: Payment and payout notifications

Usage:
    from payments.dependencies import get_settlement_service

    result = get_settlement_service().release_payment_to_teacher(lesson)
"""
