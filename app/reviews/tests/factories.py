import factory

from lessons.tests.factories import LessonFactory
from reviews.models import Review


class ReviewFactory(factory.django.DjangoModelFactory):
    """Review of a completed lesson; student and teacher follow the lesson."""

    class Meta:
        model = Review

    lesson = factory.SubFactory(LessonFactory, completed=True)
    student = factory.SelfAttribute("lesson.student")
    teacher = factory.SelfAttribute("lesson.accepted_teacher")
    rating = 5
    comment = "Clear explanations"
