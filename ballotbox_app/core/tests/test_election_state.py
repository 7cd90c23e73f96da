from django.test import TestCase, override_settings

from core.election_state import (
    close_election,
    hide_results,
    open_election,
    reset_election,
    reveal_results,
    set_election_open,
)
from core.errors import ElectionOpenError
from core.models import Candidate, ElectionAuditLogEntry, ElectionConfig, Member
from core.tests.utils_test_data import make_candidates, make_member, set_election


class ElectionConfigSingletonTests(TestCase):
    def test_initial_state_is_closed_and_hidden(self) -> None:
        config = ElectionConfig.load()

        self.assertEqual(config.pk, ElectionConfig.SINGLETON_PK)
        self.assertEqual(config.as_dict(), {"is_open": False, "results_revealed": False})
        self.assertEqual(ElectionConfig.objects.count(), 1)


class ElectionTransitionTests(TestCase):
    def test_open_and_close_are_idempotent(self) -> None:
        self.assertTrue(open_election(actor="committee"))
        self.assertFalse(open_election(actor="committee"))
        self.assertTrue(ElectionConfig.load().is_open)

        self.assertTrue(close_election(actor="committee"))
        self.assertFalse(set_election_open(is_open=False, actor="committee"))
        self.assertFalse(ElectionConfig.load().is_open)

    def test_transitions_write_audit_entries_only_on_change(self) -> None:
        open_election(actor="committee")
        open_election(actor="committee")
        close_election(actor="other")

        entries = list(ElectionAuditLogEntry.objects.values_list("event_type", "actor"))
        self.assertEqual(entries, [("election_opened", "committee"), ("election_closed", "other")])

    def test_reopening_keeps_results_revealed(self) -> None:
        set_election(is_open=False, results_revealed=True)

        open_election(actor="committee")

        config = ElectionConfig.load()
        self.assertTrue(config.is_open)
        self.assertTrue(config.results_revealed)

    def test_reveal_and_hide(self) -> None:
        self.assertTrue(reveal_results(actor="committee"))
        self.assertFalse(reveal_results(actor="committee"))
        self.assertTrue(ElectionConfig.load().results_revealed)

        self.assertTrue(hide_results(actor="committee"))
        self.assertFalse(hide_results(actor="committee"))
        self.assertFalse(ElectionConfig.load().results_revealed)

    def test_reveal_is_refused_while_voting_is_open(self) -> None:
        set_election(is_open=True)

        with self.assertRaises(ElectionOpenError):
            reveal_results(actor="committee")
        self.assertFalse(ElectionConfig.load().results_revealed)

    @override_settings(ELECTION_ALLOW_REVEAL_WHILE_OPEN=True)
    def test_reveal_while_open_can_be_allowed(self) -> None:
        set_election(is_open=True)

        self.assertTrue(reveal_results(actor="committee"))
        self.assertTrue(ElectionConfig.load().results_revealed)


class ResetElectionTests(TestCase):
    def setUp(self) -> None:
        self.alice, self.bob = make_candidates("Alice", "Bob")
        Candidate.objects.filter(pk=self.alice.pk).update(president_votes=2, member_votes=3)
        self.voter = make_member("1", has_voted=True)
        Member.objects.filter(pk=self.voter.pk).update(ethics_accepted=False)
        self.idle = make_member("2")
        set_election(is_open=True, results_revealed=True)

    def test_reset_clears_everything(self) -> None:
        summary = reset_election(actor="committee")

        self.assertEqual(summary, {"candidates_reset": 1, "members_reset": 1})
        self.assertEqual(ElectionConfig.load().as_dict(), {"is_open": False, "results_revealed": False})
        self.assertFalse(Candidate.objects.exclude(president_votes=0, member_votes=0).exists())
        self.voter.refresh_from_db()
        self.assertFalse(self.voter.has_voted)
        self.assertIsNone(self.voter.ethics_accepted)
        # Candidates and members themselves survive.
        self.assertEqual(Candidate.objects.count(), 2)
        self.assertEqual(Member.objects.count(), 2)

    def test_reset_twice_is_harmless(self) -> None:
        reset_election(actor="committee")

        self.assertEqual(reset_election(actor="committee"), {"candidates_reset": 0, "members_reset": 0})
        self.assertEqual(ElectionAuditLogEntry.objects.filter(event_type="votes_reset").count(), 2)
