import os
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase

from core.apps import ensure_dev_superuser

User = get_user_model()


class EnsureDevSuperuserTests(TestCase):
    @mock.patch.dict(os.environ, {"DJANGO_USER_NAME": "admin@example.com", "DJANGO_PASSWORD": "pw"})
    def test_creates_superuser(self):
        ensure_dev_superuser()
        user = User.objects.get(email="admin@example.com")
        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_staff)
        self.assertTrue(user.check_password("pw"))

    @mock.patch.dict(os.environ, {"DJANGO_USER_NAME": "plain@example.com", "DJANGO_PASSWORD": "pw"})
    def test_promotes_existing_user(self):
        User.objects.create_user(email="plain@example.com", password="other")
        ensure_dev_superuser()
        user = User.objects.get(email="plain@example.com")
        self.assertTrue(user.is_superuser)
        self.assertTrue(user.check_password("other"))

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_noop_without_credentials(self):
        ensure_dev_superuser()
        self.assertFalse(User.objects.exists())
