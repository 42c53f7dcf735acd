"""Manager for the email-login User model."""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Users are identified by email; there is no username.

        student = User.objects.create_user("s@example.com", "pw", role="student")
        matching = User.objects.teachers().filter(teacher_profile__hourly_price__lte=100)
    """

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("An email address is required")

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Staff superuser with the admin marketplace role."""
        extra_fields.update(is_staff=True, is_superuser=True)
        extra_fields.setdefault("role", "admin")
        return self.create_user(email, password, **extra_fields)

    def teachers(self):
        """Active teachers with their profile joined."""
        return self.filter(role="teacher", is_active=True).select_related("teacher_profile")
