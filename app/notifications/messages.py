"""
Bilingual message catalogue.

Each notification type has an English and an Arabic title/body pair.
Bodies are str.format templates; the caller passes the context.

Usage:
    from notifications.messages import render_message

    title, body = render_message(
        "teacher_interest",
        "ar",
        {"teacher_name": "Omar Ali", "subject": "Math"},
    )
"""

from __future__ import annotations

DEFAULT_LANGUAGE = "en"


class MessageType:
    LESSON_REQUEST = "lesson_request"
    TEACHER_INTEREST = "teacher_interest"
    COUNTER_OFFER = "counter_offer"
    LESSON_APPROVED = "lesson_approved"
    LESSON_CANCELED = "lesson_canceled"
    LESSON_STARTED = "lesson_started"
    LESSON_ENDED = "lesson_ended"
    LESSON_COMPLETED = "lesson_completed"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    PAYOUT_RELEASED = "payout_released"
    REVIEW_RECEIVED = "review_received"


MESSAGES: dict[str, dict[str, tuple[str, str]]] = {
    MessageType.LESSON_REQUEST: {
        "en": (
            "New Lesson Request!",
            "Subject: {subject}\nPrice: {price}\nDate: {requested_date}\n"
            "From: {student_name}\n\nTap to view details.",
        ),
        "ar": (
            "طلب درس جديد!",
            "المادة: {subject}\nالسعر: {price}\nالتاريخ: {requested_date}\n"
            "من: {student_name}\n\nاضغط لعرض التفاصيل.",
        ),
    },
    MessageType.TEACHER_INTEREST: {
        "en": (
            "A teacher is interested in your lesson request!",
            "{teacher_name} is interested in teaching {subject}.",
        ),
        "ar": (
            "مدرس أبدى اهتمامه بطلب الحصة الخاص بك!",
            "{teacher_name} وافق على تدريس مادة {subject}.",
        ),
    },
    MessageType.COUNTER_OFFER: {
        "en": (
            "New price offer",
            "{teacher_name} offered {proposed_price} for {subject}. {offer_message}",
        ),
        "ar": (
            "عرض سعر جديد",
            "{teacher_name} عرض {proposed_price} لمادة {subject}. {offer_message}",
        ),
    },
    MessageType.LESSON_APPROVED: {
        "en": (
            "Congratulations! You've been selected to teach the lesson",
            "The student {student_name} has selected you to teach {subject}. "
            "Get ready to coordinate lesson details soon.",
        ),
        "ar": (
            "تهانينا! تم اختيارك لتدريس الحصة",
            "الطالب {student_name} اختارك لتدريس مادة {subject}. "
            "استعد للتنسيق معه لإتمام تفاصيل الحصة.",
        ),
    },
    MessageType.LESSON_CANCELED: {
        "en": (
            "Lesson canceled",
            "The {subject} lesson requested by {student_name} has been canceled.",
        ),
        "ar": (
            "تم إلغاء الحصة",
            "تم إلغاء حصة {subject} التي طلبها {student_name}.",
        ),
    },
    MessageType.LESSON_STARTED: {
        "en": (
            "The lesson has started!",
            "The online lesson is now live. Please join the room.",
        ),
        "ar": (
            "بدأت الحصة!",
            "بدأت الحصة الآن! يمكنك الانضمام إلى الغرفة.",
        ),
    },
    MessageType.LESSON_ENDED: {
        "en": (
            "The lesson has ended",
            "The online lesson has finished successfully.",
        ),
        "ar": (
            "انتهت الحصة",
            "انتهت الحصة بنجاح.",
        ),
    },
    MessageType.LESSON_COMPLETED: {
        "en": (
            "Lesson completed",
            "Your {subject} lesson is complete. You earned {points} points!",
        ),
        "ar": (
            "اكتملت الحصة",
            "اكتملت حصة {subject}. لقد ربحت {points} نقطة!",
        ),
    },
    MessageType.PAYMENT_RECEIVED: {
        "en": (
            "Payment successful",
            "Your payment of {amount} for {subject} was received.",
        ),
        "ar": (
            "تم الدفع بنجاح",
            "تم استلام دفعتك بقيمة {amount} لمادة {subject}.",
        ),
    },
    MessageType.PAYMENT_FAILED: {
        "en": (
            "Payment failed",
            "Your payment for {subject} did not go through. Please try again.",
        ),
        "ar": (
            "فشل الدفع",
            "لم تتم عملية الدفع لمادة {subject}. يرجى المحاولة مرة أخرى.",
        ),
    },
    MessageType.PAYOUT_RELEASED: {
        "en": (
            "Payment released",
            "{amount} for your {subject} lesson has been sent to your account.",
        ),
        "ar": (
            "تم تحويل المبلغ",
            "تم تحويل {amount} عن حصة {subject} إلى حسابك.",
        ),
    },
    MessageType.REVIEW_RECEIVED: {
        "en": (
            "New review",
            "{student_name} rated your {subject} lesson {rating}/5.",
        ),
        "ar": (
            "تقييم جديد",
            "قام {student_name} بتقييم حصة {subject} بـ {rating}/5.",
        ),
    },
}


class _Context(dict):
    # Missing placeholders render empty instead of raising KeyError
    def __missing__(self, key: str) -> str:
        return ""


def render_message(
    message_type: str,
    language: str | None,
    context: dict | None = None,
) -> tuple[str, str]:
    """
    Render the (title, body) pair for a message type.

    Unknown languages fall back to English.

    Raises:
        KeyError: If message_type is not in the catalogue
    """
    translations = MESSAGES[message_type]
    title, body = translations.get(language or DEFAULT_LANGUAGE, translations[DEFAULT_LANGUAGE])
    values = _Context(context or {})
    return title.format_map(values), body.format_map(values).strip()
