import json
import shutil
import tempfile
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from . import assignments, queries, workflow
from .exceptions import (
    Conflict,
    Fault,
    Forbidden,
    InvalidInput,
    InvalidState,
    NotFound,
    workflow_exception_handler,
)
from .models import Paper, ReviewAssignment
from .pagination import Pagination

User = get_user_model()

CONTRIBUTORS = [
    {"fullName": "Ada Lovelace", "affiliation": "Analytical Society",
        "country": "UK", "email": "ada@example.com"},
    {"fullName": "Alan Turing", "affiliation": "Bletchley Park",
        "country": "UK", "email": "alan@example.com"},
    {"fullName": "Grace Hopper", "affiliation": "US Navy",
        "country": "US", "email": "grace@example.com"},
]


def make_user(email, role, first_name="Test", last_name="User", **extra):
    return User.objects.create_user(
        email=email,
        password="Secretpass123",
        role=role,
        first_name=first_name,
        last_name=last_name,
        **extra,
    )


def make_paper(author, title="Soil Microbiome Dynamics", **extra):
    fields = {
        "manuscript_title": title,
        "manuscript_type": "Original research",
        "running_title": "Soil microbiome",
        "subject": "Ecology",
        "abstract": "We study soil.",
        "corresponding_author_name": "Ada Lovelace",
        "corresponding_author_email": "ada@example.com",
        "number_of_authors": 1,
        "authors": CONTRIBUTORS[:1],
        "reviewers": CONTRIBUTORS,
        "main_manuscript": "assets/main.pdf",
        "paper_status": Paper.Status.SUBMITTED,
        "status_history": [{"status": "submitted", "comment": "Paper submitted", "date": timezone.now().isoformat()}],
    }
    fields.update(extra)
    return Paper.objects.create(user=author, **fields)


class WorkflowFixtureMixin:
    def setUp(self):
        super().setUp()
        self.author = make_user(
            "author@example.com", User.Role.AUTHOR, "Ada", "Lovelace", title="Dr")
        self.editor = make_user(
            "editor@example.com", User.Role.CHIEF_EDITOR, "Chief", "Editor")
        self.head = make_user(
            "head1@example.com", User.Role.SECTION_HEAD, "Marie", "Curie")
        self.other_head = make_user(
            "head2@example.com", User.Role.SECTION_HEAD, "Pierre", "Curie")
        self.paper = make_paper(self.author)


class PaginationTests(TestCase):
    def test_page_math(self):
        meta = Pagination(offset=20, limit=10).metadata(25)
        self.assertEqual(meta["totalPages"], 3)
        self.assertEqual(meta["currentPage"], 3)
        self.assertEqual(meta["total"], 25)

    def test_defaults_and_validation(self):
        self.assertEqual(Pagination.from_params({}), Pagination(0, 10))
        with self.assertRaises(InvalidInput):
            Pagination.from_params({"offset": "-1"})
        with self.assertRaises(InvalidInput):
            Pagination.from_params({"limit": "0"})
        with self.assertRaises(InvalidInput):
            Pagination.from_params({"limit": "ten"})


class TransitionTests(WorkflowFixtureMixin, TestCase):
    def test_assign_creates_assignments_and_moves_to_under_review(self):
        result = workflow.transition_paper_status(
            self.paper.pk,
            self.editor.pk,
            "assigned",
            comment="Sending out",
            section_head_ids=[self.head.pk, self.other_head.pk],
        )
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.UNDER_REVIEW)
        self.assertEqual(
            self.paper.status_history[-1]["status"], self.paper.paper_status)
        self.assertEqual(self.paper.status_history[-1]["comment"], "Sending out")
        self.assertEqual(len(result.assignments), 2)
        rows = ReviewAssignment.objects.filter(paper=self.paper)
        self.assertEqual(rows.count(), 2)
        for row in rows:
            self.assertEqual(row.status, ReviewAssignment.Status.ASSIGNED)
            self.assertEqual(len(row.status_history), 1)
        seeded = ReviewAssignment.objects.get(section_head=self.head)
        self.assertEqual(
            seeded.status_history[0]["comment"], "Assigned to section head: Marie Curie")
        self.assertEqual(len(mail.outbox), 2)

    def test_assign_without_section_heads_is_invalid(self):
        for ids in (None, []):
            with self.assertRaises(InvalidInput):
                workflow.transition_paper_status(
                    self.paper.pk, self.editor.pk, "assigned", section_head_ids=ids)
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.SUBMITTED)
        self.assertEqual(len(self.paper.status_history), 1)

    def test_assign_stops_at_first_unknown_section_head(self):
        with self.assertRaises(NotFound):
            workflow.transition_paper_status(
                self.paper.pk,
                self.editor.pk,
                "assigned",
                section_head_ids=[self.head.pk, 999999, self.other_head.pk],
            )
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.SUBMITTED)
        # Earlier ids were committed before the failure; later ones never ran.
        self.assertTrue(ReviewAssignment.objects.filter(
            paper=self.paper, section_head=self.head).exists())
        self.assertFalse(ReviewAssignment.objects.filter(
            paper=self.paper, section_head=self.other_head).exists())

    def test_assign_rejects_users_that_are_not_section_heads(self):
        with self.assertRaises(NotFound):
            workflow.transition_paper_status(
                self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.author.pk])
        self.assertFalse(ReviewAssignment.objects.exists())

    def test_only_chief_editor_may_transition(self):
        with self.assertRaises(Forbidden):
            workflow.transition_paper_status(
                self.paper.pk, self.author.pk, "rejected")
        with self.assertRaises(Forbidden):
            workflow.transition_paper_status(
                self.paper.pk, self.head.pk, "acceptAndPublish")

    def test_missing_paper_or_actor(self):
        with self.assertRaises(NotFound):
            workflow.transition_paper_status(999999, self.editor.pk, "rejected")
        with self.assertRaises(NotFound):
            workflow.transition_paper_status(self.paper.pk, 999999, "rejected")

    def test_unknown_action_is_invalid(self):
        with self.assertRaises(InvalidInput):
            workflow.transition_paper_status(
                self.paper.pk, self.editor.pk, "withdrawn")

    def test_reject_uses_given_date(self):
        when = timezone.now() - timedelta(days=2)
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "rejected", comment="Out of scope", date=when)
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.REJECTED)
        self.assertEqual(self.paper.status_history[-1]["date"], when.isoformat())

    def test_redundant_transitions_are_permitted(self):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "acceptAndPublish")
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "acceptAndPublish")
        self.paper.refresh_from_db()
        self.assertEqual(
            [entry["status"] for entry in self.paper.status_history],
            ["submitted", "underReview", "underReview", "published", "published"],
        )

    def test_repeat_assignment_creates_duplicate_rows(self):
        assignments.create_assignment(self.paper, self.head)
        assignments.create_assignment(self.paper, self.head)
        self.assertEqual(
            ReviewAssignment.objects.filter(paper=self.paper, section_head=self.head).count(), 2)

    @patch("manuscripts.notifications.send_mail", side_effect=OSError("smtp down"))
    def test_mail_failure_does_not_fail_assignment(self, _send_mail):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.UNDER_REVIEW)


class DecisionTests(WorkflowFixtureMixin, TestCase):
    def test_decision_requires_under_review(self):
        assignment = assignments.create_assignment(self.paper, self.head)
        with self.assertRaises(InvalidState):
            workflow.record_section_head_decision(
                self.paper.pk, self.head.pk, "accepted")
        assignment.refresh_from_db()
        self.assertEqual(assignment.status, ReviewAssignment.Status.ASSIGNED)
        self.assertEqual(len(assignment.status_history), 1)

    def test_decision_updates_only_the_assignment(self):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        self.paper.refresh_from_db()
        history_before = list(self.paper.status_history)

        assignment = workflow.record_section_head_decision(
            self.paper.pk, self.head.pk, "rejected", comment="Weak methods")

        self.assertEqual(assignment.status, ReviewAssignment.Status.REJECTED)
        self.assertEqual(assignment.status_history[-1]["comment"], "Weak methods")
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.UNDER_REVIEW)
        self.assertEqual(self.paper.status_history, history_before)

    def test_decision_errors(self):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        with self.assertRaises(Forbidden):
            workflow.record_section_head_decision(
                self.paper.pk, self.editor.pk, "accepted")
        with self.assertRaises(NotFound):
            workflow.record_section_head_decision(999999, self.head.pk, "accepted")
        with self.assertRaises(InvalidInput):
            workflow.record_section_head_decision(
                self.paper.pk, self.head.pk, "maybe")
        with self.assertRaises(NotFound):
            workflow.record_section_head_decision(
                self.paper.pk, self.other_head.pk, "accepted")


class SubmissionRulesTests(WorkflowFixtureMixin, TestCase):
    def _data(self, **overrides):
        data = {
            "manuscript_title": "Tidal Energy",
            "manuscript_type": "Review",
            "running_title": "Tides",
            "subject": "Energy",
            "abstract": "Tides are predictable.",
            "corresponding_author_name": "Ada Lovelace",
            "corresponding_author_email": "ada@example.com",
            "number_of_authors": 1,
            "authors": CONTRIBUTORS[:1],
            "reviewers": CONTRIBUTORS,
            "main_manuscript": "assets/tides.pdf",
        }
        data.update(overrides)
        return data

    def test_submit_seeds_history(self):
        paper = workflow.submit_paper(self.author, self._data())
        self.assertEqual(paper.paper_status, Paper.Status.SUBMITTED)
        self.assertEqual(paper.status_history[-1]["status"], "submitted")
        self.assertFalse(paper.apcs)
        self.assertFalse(paper.studied_and_understood)

    def test_contributor_rules(self):
        with self.assertRaises(InvalidInput):
            workflow.submit_paper(self.author, self._data(authors=[]))
        with self.assertRaises(InvalidInput):
            workflow.submit_paper(self.author, self._data(
                authors=[{**CONTRIBUTORS[0], "country": " "}]))
        with self.assertRaises(InvalidInput):
            workflow.submit_paper(
                self.author, self._data(reviewers=CONTRIBUTORS[:2]))
        with self.assertRaises(InvalidInput):
            workflow.submit_paper(
                self.author, self._data(main_manuscript=""))

    def test_only_authors_submit(self):
        with self.assertRaises(Forbidden):
            workflow.submit_paper(self.editor, self._data())


class QueryTests(WorkflowFixtureMixin, TestCase):
    def test_assigned_view_deduplicates_section_heads(self):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned",
            section_head_ids=[self.head.pk, self.head.pk, self.other_head.pk])
        other = make_paper(self.author, title="Unassigned paper")

        data = queries.get_papers_by_status("assigned")

        self.assertEqual(data["pagination"]["total"], 1)
        paper = data["papers"][0]
        self.assertEqual(paper["id"], self.paper.pk)
        self.assertNotEqual(paper["id"], other.pk)
        self.assertEqual(
            sorted(head["id"] for head in paper["assignedTo"]),
            sorted([self.head.pk, self.other_head.pk]),
        )

    def test_status_keyword_mapping(self):
        make_paper(self.author, title="Published one",
                   paper_status=Paper.Status.PUBLISHED)
        data = queries.get_papers_by_status("accepted")
        self.assertEqual([p["manuScriptTitle"] for p in data["papers"]], ["Published one"])
        self.assertNotIn("assignedTo", data["papers"][0])
        with self.assertRaises(InvalidInput):
            queries.get_papers_by_status("underReview")

    def test_paper_id_without_status_attaches_assignments(self):
        assignments.create_assignment(self.paper, self.head)
        data = queries.get_papers_by_status(None, paper_id=str(self.paper.pk))
        self.assertEqual(len(data["papers"]), 1)
        self.assertEqual(data["papers"][0]["assignedTo"][0]["id"], self.head.pk)

    def test_section_head_queue(self):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        workflow.record_section_head_decision(
            self.paper.pk, self.head.pk, "accepted")

        data = queries.get_assigned_papers_for_section_head(self.head.pk)
        self.assertEqual(data["sectionHead"]["totalAssignedPapers"], 1)
        self.assertEqual(data["assignedPapers"][0]["reviewerStatus"], "accepted")
        self.assertNotIn("reviewers", data["assignedPapers"][0])

        filtered = queries.get_assigned_papers_for_section_head(
            self.head.pk, status="assigned")
        self.assertEqual(filtered["assignedPapers"], [])

    def test_section_head_queue_counts_papers_not_assignment_rows(self):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        decided = workflow.record_section_head_decision(
            self.paper.pk, self.head.pk, "accepted")

        data = queries.get_assigned_papers_for_section_head(self.head.pk)

        self.assertEqual(data["sectionHead"]["totalAssignedPapers"], 1)
        self.assertEqual(data["pagination"]["total"], 1)
        self.assertEqual(data["pagination"]["totalPages"], 1)
        self.assertEqual(len(data["assignedPapers"]), 1)
        self.assertEqual(data["assignedPapers"][0]["reviewerStatus"], "accepted")
        self.assertEqual(data["assignedPapers"][0]["assignmentId"], decided.pk)

        # The older duplicate row is still "assigned" but no longer current.
        still_assigned = queries.get_assigned_papers_for_section_head(
            self.head.pk, status="assigned")
        self.assertEqual(still_assigned["sectionHead"]["totalAssignedPapers"], 0)
        self.assertEqual(still_assigned["assignedPapers"], [])

    def test_section_head_queue_pages_over_distinct_papers(self):
        second = make_paper(self.author, title="Second paper")
        assignments.create_assignment(self.paper, self.head)
        assignments.create_assignment(second, self.head)
        assignments.create_assignment(self.paper, self.head)

        seen = []
        for offset in (0, 1):
            page = queries.get_assigned_papers_for_section_head(
                self.head.pk, pagination=Pagination(offset=offset, limit=1))
            self.assertEqual(page["pagination"]["total"], 2)
            self.assertEqual(page["pagination"]["totalPages"], 2)
            seen.extend(paper["id"] for paper in page["assignedPapers"])
        self.assertEqual(sorted(seen), sorted([self.paper.pk, second.pk]))

        past_end = queries.get_assigned_papers_for_section_head(
            self.head.pk, pagination=Pagination(offset=2, limit=1))
        self.assertEqual(past_end["assignedPapers"], [])

    def test_list_assignments_filters_rows(self):
        assignments.create_assignment(self.paper, self.head)
        assignments.create_assignment(self.paper, self.head)
        assignments.create_assignment(self.paper, self.other_head)

        rows, total = assignments.list_assignments(section_head_id=self.head.pk)
        self.assertEqual(total, 2)
        self.assertEqual({row.section_head_id for row in rows}, {self.head.pk})
        with self.assertRaises(InvalidInput):
            assignments.list_assignments(status="pending")

    def test_section_head_queue_errors(self):
        with self.assertRaises(InvalidInput):
            queries.get_assigned_papers_for_section_head(None)
        with self.assertRaises(NotFound):
            queries.get_assigned_papers_for_section_head(999999)

    def test_author_filters(self):
        make_paper(self.author, title="Glacier Retreat")
        data = queries.get_papers_for_author(
            user_id=self.author.pk, manuscript_title="glacier")
        self.assertEqual(len(data["papers"]), 1)
        self.assertEqual(data["papers"][0]["author"]["lastName"], "Lovelace")

        by_name = queries.get_papers_for_author(name="love", title="dr")
        self.assertEqual(by_name["pagination"]["total"], 2)

        with self.assertRaises(NotFound):
            queries.get_papers_for_author(name="nobody")

    def test_public_listing_splits_on_thirty_days(self):
        now = timezone.now()
        old = make_paper(self.author, title="Old", paper_status=Paper.Status.PUBLISHED,
                         created_at=now - timedelta(days=45))
        recent = make_paper(self.author, title="Recent", paper_status=Paper.Status.PUBLISHED,
                            created_at=now - timedelta(days=3))

        archive = queries.list_public_papers("archive")
        in_press = queries.list_public_papers("inPress")
        everything = queries.list_public_papers()

        self.assertEqual([p["id"] for p in archive["papers"]], [old.pk])
        self.assertEqual([p["id"] for p in in_press["papers"]], [recent.pk])
        self.assertEqual(everything["pagination"]["total"], 2)
        with self.assertRaises(InvalidInput):
            queries.list_public_papers("forthcoming")

    def test_public_listing_empty_is_not_found(self):
        with self.assertRaises(NotFound):
            queries.list_public_papers()


class AuthApiTests(APITestCase):
    def test_register_and_login_as_author(self):
        response = self.client.post(
            reverse("auth-register"),
            {
                "email": "newauthor@example.com",
                "password": "Secretpass123",
                "firstName": "New",
                "lastName": "Author",
                "phone": "+254700000000",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["role"], "author")
        self.assertNotIn("password", response.data)

        token = self.client.post(
            reverse("auth-token"),
            {"email": "newauthor@example.com", "password": "Secretpass123"},
            format="json",
        )
        self.assertEqual(token.status_code, status.HTTP_200_OK)
        self.assertEqual(AccessToken(token.data["access"])["role"], "author")
        self.assertEqual(token.data["user"]["email"], "newauthor@example.com")

    def test_duplicate_email_is_rejected(self):
        make_user("taken@example.com", User.Role.AUTHOR)
        response = self.client.post(
            reverse("auth-register"),
            {"email": "taken@example.com", "password": "Secretpass123",
                "firstName": "Again", "phone": "123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_anonymous_requests_are_unauthorized(self):
        response = self.client.get(reverse("user-profile"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class SectionHeadApiTests(WorkflowFixtureMixin, APITestCase):
    def test_chief_editor_creates_section_head_and_sends_credentials(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.post(
            reverse("section-head-list"),
            {"email": "newhead@example.com", "firstName": "Rosalind",
                "lastName": "Franklin", "phone": "555"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email="newhead@example.com")
        self.assertEqual(user.role, User.Role.SECTION_HEAD)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["newhead@example.com"])

        listing = self.client.get(reverse("section-head-list"), {"limit": 1})
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(listing.data["pagination"]["total"], 3)
        self.assertEqual(listing.data["pagination"]["totalPages"], 3)
        self.assertEqual(len(listing.data["sectionHeads"]), 1)

        bad = self.client.get(reverse("section-head-list"), {"offset": "-5"})
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(bad.data["code"], "invalid_input")

    def test_authors_cannot_create_section_heads(self):
        self.client.force_authenticate(user=self.author)
        response = self.client.post(
            reverse("section-head-list"),
            {"email": "sneaky@example.com", "firstName": "Sneaky"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_section_head_without_assignments_gets_empty_queue(self):
        self.client.force_authenticate(user=self.head)
        response = self.client.get(
            reverse("section-head-papers", args=[self.head.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["sectionHead"]["totalAssignedPapers"], 0)
        self.assertEqual(response.data["assignedPapers"], [])

    def test_section_head_cannot_read_another_queue(self):
        self.client.force_authenticate(user=self.head)
        response = self.client.get(
            reverse("section-head-papers", args=[self.other_head.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_chief_editor_reads_missing_section_head(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.get(reverse("section-head-papers", args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not_found")


class PaperApiTests(WorkflowFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)

    def _submission(self, **overrides):
        data = {
            "manuScriptTitle": "Coral Bleaching Trends",
            "manuScriptType": "Original research",
            "runningTitle": "Coral bleaching",
            "subject": "Marine biology",
            "abstract": "Reefs are warming.",
            "correspondingAuthorName": "Ada Lovelace",
            "correspondingAuthorEmail": "ada@example.com",
            "noOfAuthors": "1",
            "authors": json.dumps(CONTRIBUTORS[:1]),
            "reviewers": json.dumps(CONTRIBUTORS),
            "apcs": "true",
            "mainManuscript": SimpleUploadedFile("coral.pdf", b"%PDF-1.4", content_type="application/pdf"),
        }
        data.update(overrides)
        return data

    def test_author_submits_paper_with_files(self):
        self.client.force_authenticate(user=self.author)
        with override_settings(MEDIA_ROOT=self.media_root, FILES_BASE_URL="https://files.example.org/"):
            response = self.client.post(
                reverse("paper-list"), self._submission(), format="multipart")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        paper = response.data["paper"]
        self.assertEqual(paper["paperStatus"], "submitted")
        self.assertEqual(paper["userId"], self.author.pk)
        self.assertTrue(paper["apcs"])
        self.assertTrue(paper["mainManuscript"].startswith(
            "https://files.example.org/assets/"))
        self.assertIsNone(paper["coverLetter"])
        stored = Paper.objects.get(pk=paper["id"])
        self.assertTrue(stored.main_manuscript.name.startswith("assets/"))

    def test_submission_requires_three_reviewers(self):
        self.client.force_authenticate(user=self.author)
        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post(
                reverse("paper-list"),
                self._submission(reviewers=json.dumps(CONTRIBUTORS[:2])),
                format="multipart",
            )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_input")

    def test_submission_rejects_malformed_authors(self):
        self.client.force_authenticate(user=self.author)
        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post(
                reverse("paper-list"),
                self._submission(authors="not json"),
                format="multipart",
            )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("authors", response.data)

    def test_section_heads_cannot_submit(self):
        self.client.force_authenticate(user=self.head)
        response = self.client.post(reverse("paper-list"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_full_review_cycle(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.post(
            reverse("paper-status", args=[self.paper.pk]),
            {"action": "assigned", "comment": "To review",
                "sectionHeadIds": [self.head.pk, self.other_head.pk]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["paper"]["paperStatus"], "underReview")
        self.assertEqual(len(response.data["assignments"]), 2)

        self.client.force_authenticate(user=self.head)
        response = self.client.post(
            reverse("paper-decision", args=[self.paper.pk]),
            {"status": "accepted", "comment": "Sound work"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["assignment"]["status"], "accepted")
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.UNDER_REVIEW)
        other_row = ReviewAssignment.objects.get(
            paper=self.paper, section_head=self.other_head)
        self.assertEqual(other_row.status, ReviewAssignment.Status.ASSIGNED)

        self.client.force_authenticate(user=self.editor)
        response = self.client.post(
            reverse("paper-status", args=[self.paper.pk]),
            {"action": "acceptAndPublish"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.PUBLISHED)
        self.assertEqual(
            [entry["status"] for entry in self.paper.status_history],
            ["submitted", "underReview", "published"],
        )

        self.client.force_authenticate(user=None)
        public = self.client.get(reverse("paper-public"), {"type": "inPress"})
        self.assertEqual(public.status_code, status.HTTP_200_OK)
        self.assertEqual(public.data["papers"][0]["id"], self.paper.pk)

    def test_partial_assignment_is_visible_after_failure(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.post(
            reverse("paper-status", args=[self.paper.pk]),
            {"action": "assigned", "sectionHeadIds": [self.head.pk, 999999]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.paper.refresh_from_db()
        self.assertEqual(self.paper.paper_status, Paper.Status.SUBMITTED)
        self.assertEqual(
            ReviewAssignment.objects.filter(paper=self.paper).count(), 1)

    def test_transition_error_codes(self):
        self.client.force_authenticate(user=self.author)
        response = self.client.post(
            reverse("paper-status", args=[self.paper.pk]),
            {"action": "rejected"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.editor)
        response = self.client.post(
            reverse("paper-status", args=[self.paper.pk]),
            {"action": "assigned", "sectionHeadIds": []},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(
            reverse("paper-status", args=[999999]),
            {"action": "rejected"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_decision_on_submitted_paper_is_invalid_state(self):
        assignments.create_assignment(self.paper, self.head)
        self.client.force_authenticate(user=self.head)
        response = self.client.post(
            reverse("paper-decision", args=[self.paper.pk]),
            {"status": "accepted"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_state")

    def test_by_status_queue_for_chief_editor(self):
        workflow.transition_paper_status(
            self.paper.pk, self.editor.pk, "assigned", section_head_ids=[self.head.pk])
        self.client.force_authenticate(user=self.editor)
        response = self.client.get(
            reverse("paper-by-status"), {"status": "assigned", "limit": 5})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"], {
            "total": 1, "offset": 0, "limit": 5, "totalPages": 1, "currentPage": 1,
        })
        self.assertEqual(
            response.data["papers"][0]["assignedTo"][0]["email"], self.head.email)

        bad = self.client.get(reverse("paper-by-status"), {"status": "pending"})
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)

        self.client.force_authenticate(user=self.head)
        forbidden = self.client.get(reverse("paper-by-status"))
        self.assertEqual(forbidden.status_code, status.HTTP_403_FORBIDDEN)

    def test_author_lists_own_papers(self):
        other_author = make_user("other@example.com", User.Role.AUTHOR)
        make_paper(other_author, title="Someone else's")
        self.client.force_authenticate(user=self.author)
        response = self.client.get(reverse("paper-mine"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p["id"] for p in response.data["papers"]], [self.paper.pk])

        self.client.force_authenticate(user=other_author)
        response = self.client.get(
            reverse("paper-mine"), {"manuScriptTitle": "soil"})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_chief_editor_searches_by_author(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.get(
            reverse("paper-by-author"), {"name": "ada"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["papers"][0]["author"]["id"], self.author.pk)

    def test_paper_detail_visibility(self):
        url = reverse("paper-detail", args=[self.paper.pk])
        self.client.force_authenticate(user=self.author)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)

        stranger = make_user("stranger@example.com", User.Role.AUTHOR)
        self.client.force_authenticate(user=stranger)
        self.assertEqual(self.client.get(url).status_code,
                         status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.head)
        self.assertEqual(self.client.get(url).status_code,
                         status.HTTP_404_NOT_FOUND)
        assignments.create_assignment(self.paper, self.head)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)

        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get(url).status_code,
                         status.HTTP_404_NOT_FOUND)

    def test_assignment_listing_scoped_to_section_head(self):
        assignments.create_assignment(self.paper, self.head)
        assignments.create_assignment(self.paper, self.other_head)

        self.client.force_authenticate(user=self.editor)
        response = self.client.get(
            reverse("assignment-list"), {"paperId": self.paper.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"]["total"], 2)

        self.client.force_authenticate(user=self.head)
        response = self.client.get(
            reverse("assignment-list"), {"sectionHeadId": self.other_head.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [row["sectionHeadId"] for row in response.data["assignments"]], [self.head.pk])

    def test_assignment_listing_pagination(self):
        for _ in range(3):
            assignments.create_assignment(self.paper, self.head)
        self.client.force_authenticate(user=self.editor)

        response = self.client.get(
            reverse("assignment-list"), {"limit": 2, "offset": 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pagination"], {
            "total": 3, "offset": 2, "limit": 2, "totalPages": 2, "currentPage": 2,
        })
        self.assertEqual(len(response.data["assignments"]), 1)

        bad = self.client.get(reverse("assignment-list"), {"limit": "0"})
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(bad.data["code"], "invalid_input")

    @patch("manuscripts.workflow.transition_paper_status", side_effect=DatabaseError("disk full"))
    def test_database_errors_surface_as_generic_fault(self, _transition):
        self.client.force_authenticate(user=self.editor)
        with self.assertLogs("manuscripts.exceptions", level="ERROR"):
            response = self.client.post(
                reverse("paper-status", args=[self.paper.pk]),
                {"action": "rejected"},
                format="json",
            )
        self.assertEqual(response.status_code,
                         status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {
                         "detail": "Server error", "code": "fault"})


class ExceptionHandlerTests(TestCase):
    def test_error_kinds_map_to_status_codes(self):
        cases = [
            (NotFound("Paper not found"), 404),
            (Forbidden(), 403),
            (InvalidInput("bad"), 400),
            (InvalidState(), 400),
            (Conflict(), 409),
        ]
        for exc, expected in cases:
            response = workflow_exception_handler(exc, {})
            self.assertEqual(response.status_code, expected)
            self.assertEqual(response.data["code"], exc.kind)
            self.assertEqual(response.data["detail"], exc.message)
            self.assertFalse(hasattr(exc, "status_code"))

    def test_faults_hide_their_message(self):
        with self.assertLogs("manuscripts.exceptions", level="ERROR"):
            response = workflow_exception_handler(Fault("secret detail"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data, {"detail": "Server error", "code": "fault"})


class CreateChiefEditorCommandTests(TestCase):
    def test_creates_once(self):
        call_command("create_chief_editor", email="boss@example.com",
                     password="Secretpass123", stdout=StringIO())
        call_command("create_chief_editor", email="second@example.com",
                     password="Secretpass123", stdout=StringIO())
        editors = User.objects.filter(role=User.Role.CHIEF_EDITOR)
        self.assertEqual([user.email for user in editors], ["boss@example.com"])
        self.assertTrue(editors[0].check_password("Secretpass123"))
