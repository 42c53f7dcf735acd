"""
State enums for the lesson lifecycle.

Three independent state machines live on a Lesson (see lessons.models):

    status:          pending -> approved -> completed
                     pending/approved -> canceled
    meeting_status:  upcoming -> ongoing -> finished
                     upcoming/ongoing -> canceled
    payment_status:  unpaid -> pending -> paid -> held -> released
                     pending -> unpaid (failed attempt)
                     held -> paid (payout failed, claim rolled back)

`refunded` exists for completeness; no operation reaches it.
"""

from django.db import models


class LessonStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    COMPLETED = "completed", "Completed"
    CANCELED = "canceled", "Canceled"


class RequestType(models.TextChoices):
    DIRECT = "direct", "Direct"
    OPEN = "open", "Open"


class MeetingStatus(models.TextChoices):
    UPCOMING = "upcoming", "Upcoming"
    ONGOING = "ongoing", "Ongoing"
    FINISHED = "finished", "Finished"
    CANCELED = "canceled", "Canceled"


class PaymentStatus(models.TextChoices):
    """
    Settlement state of a lesson.

    HELD marks a release in flight: the payout call has been claimed but
    not yet confirmed by the gateway.
    """

    UNPAID = "unpaid", "Unpaid"
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    HELD = "held", "Held"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"


class PaymentRecordStatus(models.TextChoices):
    """Status of the latest gateway payment attempt."""

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"


TERMINAL_STATUSES = (LessonStatus.COMPLETED, LessonStatus.CANCELED)

# Payment states in which money has been collected and must not be abandoned
SETTLED_PAYMENT_STATUSES = (PaymentStatus.PAID, PaymentStatus.HELD, PaymentStatus.RELEASED)

# Lesson states in which a successful payment may be confirmed
PAYABLE_LESSON_STATUSES = (LessonStatus.APPROVED, LessonStatus.COMPLETED)
