from django.test import TestCase, override_settings

from core.ballots import coerce_pk, validate_ballot
from core.errors import (
    AlreadyVotedError,
    ElectionClosedError,
    InvalidSessionError,
    MissingEthicsAnswerError,
    MissingPresidentError,
    TooManyMembersError,
    UnknownCandidateError,
)
from core.tests.utils_test_data import (
    admin_token,
    make_admin,
    make_candidates,
    make_member,
    member_token,
    set_election,
)


class CoercePkTests(TestCase):
    def test_accepts_positive_integers_and_digit_strings(self) -> None:
        self.assertEqual(coerce_pk(5), 5)
        self.assertEqual(coerce_pk(" 12 "), 12)

    def test_rejects_everything_else(self) -> None:
        for value in [True, False, 0, -3, 1.5, "abc", "١٢", "", None, [], 2**63]:
            with self.subTest(value=value):
                self.assertIsNone(coerce_pk(value))


class ValidateBallotTests(TestCase):
    def setUp(self) -> None:
        self.a, self.b, self.c = make_candidates("A", "B", "C")
        self.member = make_member("1001")
        self.token = member_token(self.member)
        set_election(is_open=True)

    def _payload(self, **overrides):
        payload = {"president_id": self.a.pk, "member_ids": [self.b.pk], "ethics_accepted": True}
        payload.update(overrides)
        return payload

    def test_valid_ballot_is_normalized(self) -> None:
        ballot = validate_ballot(
            token=self.token,
            payload=self._payload(member_ids=[self.b.pk, self.a.pk, str(self.b.pk)]),
        )

        self.assertEqual(ballot.member_id, self.member.pk)
        self.assertEqual(ballot.president_id, self.a.pk)
        # The president counts as a member vote once; duplicates collapse.
        self.assertEqual(ballot.effective_member_ids, (self.a.pk, self.b.pk))
        self.assertTrue(ballot.ethics_accepted)

    def test_empty_member_choices_are_allowed(self) -> None:
        ballot = validate_ballot(token=self.token, payload=self._payload(member_ids=[], ethics_accepted=False))

        self.assertEqual(ballot.effective_member_ids, (self.a.pk,))
        self.assertFalse(ballot.ethics_accepted)

    def test_session_must_belong_to_a_member(self) -> None:
        admin = make_admin()

        for token in ["", "bogus", admin_token(admin)]:
            with self.subTest(token=token):
                with self.assertRaises(InvalidSessionError):
                    validate_ballot(token=token, payload=self._payload())

    def test_closed_election(self) -> None:
        set_election(is_open=False)

        with self.assertRaises(ElectionClosedError):
            validate_ballot(token=self.token, payload=self._payload())

    def test_member_who_already_voted(self) -> None:
        self.member.has_voted = True
        self.member.save(update_fields=["has_voted"])

        with self.assertRaises(AlreadyVotedError):
            validate_ballot(token=self.token, payload=self._payload())

    def test_member_removed_after_login(self) -> None:
        self.member.delete()

        with self.assertRaises(InvalidSessionError):
            validate_ballot(token=self.token, payload=self._payload())

    def test_missing_president(self) -> None:
        for president in [None, "", "  ", 0, False, [], {}]:
            with self.subTest(president=president):
                with self.assertRaises(MissingPresidentError):
                    validate_ballot(token=self.token, payload=self._payload(president_id=president))

    def test_member_choices_must_be_a_short_list(self) -> None:
        extra = make_candidates(*[f"X{i}" for i in range(11)])
        for member_ids in [[c.pk for c in extra], None, "1,2", {"a": 1}]:
            with self.subTest(member_ids=member_ids):
                with self.assertRaisesMessage(TooManyMembersError, "Up to 10 additional members"):
                    validate_ballot(token=self.token, payload=self._payload(member_ids=member_ids))

    def test_ten_member_choices_are_accepted(self) -> None:
        extra = make_candidates(*[f"X{i}" for i in range(10)])

        ballot = validate_ballot(token=self.token, payload=self._payload(member_ids=[c.pk for c in extra]))

        self.assertEqual(len(ballot.effective_member_ids), 11)

    @override_settings(BALLOT_MAX_MEMBER_CHOICES=1)
    def test_member_choice_limit_is_configurable(self) -> None:
        with self.assertRaisesMessage(TooManyMembersError, "Up to 1 additional members"):
            validate_ballot(token=self.token, payload=self._payload(member_ids=[self.b.pk, self.c.pk]))

    def test_ethics_answer_must_be_boolean(self) -> None:
        for answer in [None, "true", 1, 0]:
            with self.subTest(answer=answer):
                with self.assertRaises(MissingEthicsAnswerError):
                    validate_ballot(token=self.token, payload=self._payload(ethics_accepted=answer))

    def test_unknown_candidates(self) -> None:
        for overrides in [
            {"president_id": 999_999},
            {"member_ids": [self.b.pk, 999_999]},
            {"member_ids": ["not-an-id"]},
            {"president_id": True},
        ]:
            with self.subTest(overrides=overrides):
                with self.assertRaises(UnknownCandidateError):
                    validate_ballot(token=self.token, payload=self._payload(**overrides))

    def test_checks_run_in_order(self) -> None:
        # Closed election wins over every payload problem.
        set_election(is_open=False)
        with self.assertRaises(ElectionClosedError):
            validate_ballot(token=self.token, payload={})

        set_election(is_open=True)
        with self.assertRaises(MissingPresidentError):
            validate_ballot(token=self.token, payload={"member_ids": None})
        with self.assertRaises(TooManyMembersError):
            validate_ballot(token=self.token, payload={"president_id": 999_999})
        with self.assertRaises(MissingEthicsAnswerError):
            validate_ballot(token=self.token, payload={"president_id": 999_999, "member_ids": []})
