# accounts/models.py

from django.db import models
from django.contrib.auth.models import (
    AbstractBaseUser,
    PermissionsMixin,
    BaseUserManager,
)

# ----------------------------------
# CUSTOM USER MANAGER
# ----------------------------------
# Creates staff accounts. Customers never log in; only the people
# who run the calendar (admins) have accounts.
class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        # Email is the login identifier; it must be provided
        if not email:
            raise ValueError("Email is required")

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)

        # Hash and set password securely
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email, password, **extra_fields)


# ----------------------------------
# CUSTOM USER MODEL
# ----------------------------------
# Email-based authentication user model with role support.
class User(AbstractBaseUser, PermissionsMixin):

    ADMIN = "admin"
    STAFF = "staff"

    # Only admins may block slots or touch bookings
    ROLE_CHOICES = (
        (ADMIN, "Admin"),
        (STAFF, "Staff"),
    )

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=255)
    phone_number = models.CharField(max_length=20, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=STAFF)

    # Standard Django auth flags
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    objects = UserManager()

    created_at = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["full_name"]

    @property
    def is_booking_admin(self):
        return self.is_active and (self.role == self.ADMIN or self.is_superuser)

    def __str__(self):
        return self.email
