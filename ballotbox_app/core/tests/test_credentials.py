from django.contrib.auth.hashers import check_password
from django.test import TestCase

from core.credentials import hash_identity_secret, verify_admin, verify_member
from core.errors import InvalidCredentialsError, NotEligibleError
from core.models import Member
from core.tests.utils_test_data import make_admin, make_member


class IdentitySecretHashTests(TestCase):
    def test_hash_is_salted_and_verifiable(self) -> None:
        first = hash_identity_secret("1-2345-6789")
        second = hash_identity_secret("1-2345-6789")

        self.assertNotEqual(first, second)
        self.assertNotIn("1-2345-6789", first)
        self.assertTrue(check_password("1-2345-6789", first))

    def test_surrounding_whitespace_is_ignored(self) -> None:
        self.assertTrue(check_password("1-2345-6789", hash_identity_secret("  1-2345-6789 ")))


class VerifyMemberTests(TestCase):
    def test_returns_member_for_matching_secret(self) -> None:
        member = make_member("1001", id_card="A-1")

        self.assertEqual(verify_member("1001", "A-1").pk, member.pk)
        self.assertEqual(verify_member(" 1001 ", " A-1 ").pk, member.pk)

    def test_wrong_secret_and_unknown_number_look_the_same(self) -> None:
        make_member("1001", id_card="A-1")

        with self.assertRaises(InvalidCredentialsError) as wrong_secret:
            verify_member("1001", "B-2")
        with self.assertRaises(InvalidCredentialsError) as unknown:
            verify_member("9999", "A-1")

        self.assertEqual(wrong_secret.exception.message, unknown.exception.message)

    def test_pending_fees_are_rejected_after_the_secret_matches(self) -> None:
        make_member("1002", id_card="A-2", fee_status=Member.FeeStatus.pending)

        with self.assertRaises(NotEligibleError):
            verify_member("1002", "A-2")
        with self.assertRaises(InvalidCredentialsError):
            verify_member("1002", "wrong")


class VerifyAdminTests(TestCase):
    def test_staff_user_with_correct_password(self) -> None:
        user = make_admin("committee", "pw-123456")

        self.assertEqual(verify_admin("committee", "pw-123456").pk, user.pk)

    def test_rejections(self) -> None:
        make_admin("committee", "pw-123456")
        make_admin("viewer", "pw-123456", is_staff=False)

        for username, password in [
            ("committee", "nope"),
            ("ghost", "pw-123456"),
            ("viewer", "pw-123456"),
        ]:
            with self.subTest(username=username):
                with self.assertRaisesMessage(InvalidCredentialsError, "Invalid administrator credentials"):
                    verify_admin(username, password)

    def test_inactive_admin_is_rejected(self) -> None:
        user = make_admin("committee", "pw-123456")
        user.is_active = False
        user.save(update_fields=["is_active"])

        with self.assertRaises(InvalidCredentialsError):
            verify_admin("committee", "pw-123456")
