"""
Factory Boy factories for authentication models.

Shared by every app's tests: lessons, payments and reviews all need
students and teachers.

Usage:
    from authentication.tests.factories import StudentFactory, TeacherFactory

    student = StudentFactory()
    teacher = TeacherFactory(
        teacher_profile__subjects=["Math"],
        teacher_profile__hourly_price=90,
    )
    paid_out_teacher = TeacherFactory(teacher_profile__registered_payout=True)
"""

from decimal import Decimal

import factory

from authentication.models import (
    PayoutMethod,
    PayoutRegistrationStatus,
    StudentProfile,
    TeacherProfile,
    User,
    UserRole,
)


class UserFactory(factory.django.DjangoModelFactory):
    """
    Factory for User model.

    Goes through UserManager.create_user() so the password is hashed.
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    role = UserRole.STUDENT
    is_active = True

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        password = kwargs.pop("password", "TestPass123!")
        return model_class.objects.create_user(
            email=kwargs.pop("email"), password=password, **kwargs
        )


class TeacherProfileFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = TeacherProfile
        skip_postgeneration_save = True

    user = factory.SubFactory(UserFactory, role=UserRole.TEACHER)
    subjects = factory.LazyFunction(lambda: ["Math"])
    hourly_price = Decimal("100.00")

    class Params:
        registered_payout = factory.Trait(
            payout_method=PayoutMethod.WALLET,
            account_name="Teacher Wallet",
            payout_phone_number="01000000000",
            wallet_provider="vodafone",
            payout_recipient_id=factory.Sequence(lambda n: f"rcpt_{n}"),
            payout_registration_status=PayoutRegistrationStatus.REGISTERED,
        )


class StudentProfileFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = StudentProfile
        skip_postgeneration_save = True

    user = factory.SubFactory(UserFactory)


class StudentFactory(UserFactory):
    role = UserRole.STUDENT
    student_profile = factory.RelatedFactory(StudentProfileFactory, factory_related_name="user")


class TeacherFactory(UserFactory):
    email = factory.Sequence(lambda n: f"teacher{n}@example.com")
    role = UserRole.TEACHER
    teacher_profile = factory.RelatedFactory(
        TeacherProfileFactory, factory_related_name="user"
    )


class AdminFactory(UserFactory):
    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    role = UserRole.ADMIN
    is_staff = True
