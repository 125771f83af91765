"""
Custom user manager keyed on the identity provider's user id.

Related files:
    - models.py: User model that uses this manager

Note:
    Regular users never have a usable password; they authenticate with the
    identity provider's tokens. Only superusers created from the command
    line get a password, for the admin site.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Manager for User with external_id as the username field.

    Usage:
        user = User.objects.create_user(
            external_id="user_2abc",
            email="alice@example.com",
            display_name="Alice",
        )

        admin = User.objects.create_superuser(
            external_id="admin",
            email="admin@example.com",
            password="adminpassword",
        )
    """

    use_in_migrations = True

    def create_user(self, external_id, email="", password=None, **extra_fields):
        """
        Create and save a user.

        Args:
            external_id: Identity provider user id (required, unique)
            email: Primary email address (may be empty)
            password: Only meaningful for admin accounts
            **extra_fields: display_name, avatar_url, is_online, ...

        Returns:
            User: The created user instance

        Raises:
            ValueError: If external_id is not provided
        """
        if not external_id:
            raise ValueError("The external_id field must be set")

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(
            external_id=external_id,
            email=self.normalize_email(email) if email else "",
            **extra_fields,
        )

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, external_id, email="", password=None, **extra_fields):
        """
        Create and save a superuser.

        Raises:
            ValueError: If is_staff or is_superuser is not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("display_name", external_id)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(external_id, email, password, **extra_fields)
