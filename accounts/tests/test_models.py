"""Tests for User, UserManager and UserSettings."""
from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import TestCase

from accounts.models import UserSettings

User = get_user_model()


class UserManagerTests(TestCase):
    def test_create_user_normalizes_email(self) -> None:
        user = User.objects.create_user(email="Someone@EXAMPLE.com", password="pass")
        self.assertEqual(user.email, "Someone@example.com")
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_superuser)

    def test_create_user_requires_email(self) -> None:
        with self.assertRaises(ValueError):
            User.objects.create_user(email="", password="pass")

    def test_create_user_without_password_is_unusable(self) -> None:
        user = User.objects.create_user(email="nopass@example.com")
        self.assertFalse(user.has_usable_password())

    def test_create_superuser_sets_flags(self) -> None:
        admin = User.objects.create_superuser(email="admin@example.com", password="pass")
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)

    def test_create_superuser_rejects_non_staff(self) -> None:
        with self.assertRaises(ValueError):
            User.objects.create_superuser(email="admin@example.com", password="pass", is_staff=False)

    def test_email_unique(self) -> None:
        User.objects.create_user(email="dup@example.com", password="pass")
        with self.assertRaises(IntegrityError):
            User.objects.create_user(email="dup@example.com", password="pass")

    def test_str_is_email(self) -> None:
        user = User.objects.create_user(email="str@example.com", password="pass")
        self.assertEqual(str(user), "str@example.com")


class UserSettingsTests(TestCase):
    def test_default_chat_model_is_blank(self) -> None:
        user = User.objects.create_user(email="settings@example.com", password="pass")
        self.assertEqual(user.settings.chat_model, "")

    def test_str(self) -> None:
        user = User.objects.create_user(email="settings@example.com", password="pass")
        self.assertIn("settings@example.com", str(UserSettings.objects.get(user=user)))
