"""Tests for the hiring pipeline service."""

import asyncio
from datetime import datetime, timedelta

import pytest
from conftest import (
    CANDIDATE,
    OTHER_CANDIDATE,
    OUTSIDER,
    RECRUITER,
    SECOND_RECRUITER,
    VIEWER,
)

from talentflow.core.exceptions import (
    AlreadyTerminalError,
    ConcurrentModificationError,
    DuplicateApplicationError,
    InterviewConflictError,
    InvalidTransitionError,
    JobClosedError,
    NotAuthorError,
    NotAuthorizedError,
    NotFoundError,
)

MORNING = datetime(2026, 3, 2, 10, 0)


class TestSubmitApplication:
    """Tests for candidate submission."""

    async def test_submit_creates_applied_application(self, pipeline, jobs, sink):
        """Test a new application starts in applied with one history entry."""
        application = await pipeline.submit_application(
            jobs["published"], CANDIDATE, cover_letter="Hi", resume_ref="s3://cv/1.pdf"
        )

        assert application.status == "applied"
        assert application.version == 1
        assert application.company_id == "acme"
        assert application.source == "talentflow_portal"
        assert application.resume_ref == "s3://cv/1.pdf"

        history = await pipeline.get_status_history(application.id, CANDIDATE)
        assert [(entry.status, entry.actor_id) for entry in history] == [
            ("applied", CANDIDATE)
        ]
        assert history[0].note == "Application submitted"
        assert [event.event for event in sink.events] == ["application_submitted"]

    async def test_duplicate_application(self, pipeline, jobs):
        await pipeline.submit_application(jobs["published"], CANDIDATE)
        with pytest.raises(DuplicateApplicationError):
            await pipeline.submit_application(jobs["published"], CANDIDATE)

    async def test_same_candidate_other_job(self, pipeline, jobs):
        await pipeline.submit_application(jobs["published"], CANDIDATE)
        other = await pipeline.submit_application(jobs["second"], CANDIDATE)
        assert other.job_id == jobs["second"]

    async def test_closed_job(self, pipeline, jobs):
        with pytest.raises(JobClosedError) as exc_info:
            await pipeline.submit_application(jobs["closed"], CANDIDATE)
        assert exc_info.value.job_status == "closed"

    async def test_unknown_job(self, pipeline, jobs):
        with pytest.raises(NotFoundError) as exc_info:
            await pipeline.submit_application(9999, CANDIDATE)
        assert exc_info.value.resource == "job"

    async def test_unresolvable_resume(self, pipeline, jobs, sink):
        """Test a resume reference outside document storage is refused."""
        with pytest.raises(NotFoundError) as exc_info:
            await pipeline.submit_application(
                jobs["published"], CANDIDATE, resume_ref="ftp://files/cv.pdf"
            )
        assert exc_info.value.resource == "document"
        assert sink.events == []

    async def test_source_tag_kept(self, pipeline, jobs):
        application = await pipeline.submit_application(
            jobs["published"], CANDIDATE, source="referral"
        )
        assert application.source == "referral"


class TestTransitionStatus:
    """Tests for single status changes."""

    async def test_skipping_stages_is_invalid(self, pipeline, submit):
        """Test applied straight to interview is refused."""
        application = await submit()
        with pytest.raises(InvalidTransitionError):
            await pipeline.transition_status(
                application.id, application.version, "interview", RECRUITER
            )

    async def test_walk_to_hired(self, pipeline, submit, advance, sink):
        """Test every forward stage in order, with history matching status."""
        application = await advance(await submit(), "hired")

        assert application.status == "hired"
        assert application.version == 6

        history = await pipeline.get_status_history(application.id, RECRUITER)
        assert [entry.status for entry in history] == [
            "applied",
            "screening",
            "shortlisted",
            "interview",
            "offered",
            "hired",
        ]
        assert [entry.version for entry in history] == [1, 2, 3, 4, 5, 6]
        assert len(sink.of_type("application_status_changed")) == 5

    async def test_stale_version(self, pipeline, submit):
        application = await submit()
        await pipeline.transition_status(application.id, 1, "screening", RECRUITER)
        with pytest.raises(ConcurrentModificationError):
            await pipeline.transition_status(application.id, 1, "rejected", RECRUITER)

    async def test_concurrent_transitions_single_winner(self, pipeline, submit):
        """Test racing transitions from the same version produce one winner."""
        application = await submit()

        results = await asyncio.gather(
            pipeline.transition_status(application.id, 1, "screening", RECRUITER),
            pipeline.transition_status(application.id, 1, "rejected", SECOND_RECRUITER),
            pipeline.transition_status(application.id, 1, "screening", SECOND_RECRUITER),
            return_exceptions=True,
        )

        winners = [result for result in results if not isinstance(result, Exception)]
        losers = [result for result in results if isinstance(result, Exception)]
        assert len(winners) == 1
        assert all(isinstance(error, ConcurrentModificationError) for error in losers)

        stored = await pipeline.get_application(application.id, RECRUITER)
        history = await pipeline.get_status_history(application.id, RECRUITER)
        assert stored.version == 2
        assert history[-1].status == stored.status == winners[0].status

    async def test_viewer_cannot_transition(self, pipeline, submit):
        application = await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.transition_status(application.id, 1, "screening", VIEWER)

    async def test_other_company_cannot_transition(self, pipeline, submit):
        application = await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.transition_status(application.id, 1, "rejected", OUTSIDER)

    async def test_recruiter_cannot_withdraw(self, pipeline, submit):
        """Test withdrawal through the status endpoint stays candidate-only."""
        application = await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.transition_status(application.id, 1, "withdrawn", RECRUITER)

    async def test_unknown_application(self, pipeline, jobs):
        with pytest.raises(NotFoundError):
            await pipeline.transition_status(404, 1, "screening", RECRUITER)

    async def test_rejection_cancels_active_interview(
        self, pipeline, submit, advance, sink
    ):
        """Test a terminal move frees the interviewer in the same transaction."""
        application = await advance(await submit(), "shortlisted")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )

        rejected = await pipeline.transition_status(
            application.id, application.version, "rejected", RECRUITER
        )
        assert rejected.status == "rejected"

        interviews = await pipeline.list_interviews(application.id, RECRUITER)
        assert interviews[0].id == interview.id
        assert interviews[0].status == "cancelled"
        assert interviews[0].cancel_reason == "application rejected"
        assert sink.of_type("interview_cancelled")[-1].interview_id == interview.id

        schedule = await pipeline.get_interviewer_schedule(
            "I1", RECRUITER, MORNING, MORNING + timedelta(hours=1)
        )
        assert schedule == []


class TestWithdrawApplication:
    """Tests for candidate withdrawal."""

    async def test_candidate_withdraws(self, pipeline, submit):
        application = await submit()
        withdrawn = await pipeline.withdraw_application(application.id, CANDIDATE)
        assert withdrawn.status == "withdrawn"
        assert withdrawn.version == 2

    async def test_withdraw_hired_is_terminal(self, pipeline, submit, advance):
        """Test withdrawing an already hired application."""
        application = await advance(await submit(), "hired")
        with pytest.raises(AlreadyTerminalError):
            await pipeline.withdraw_application(application.id, CANDIDATE)

    async def test_other_candidate_cannot_withdraw(self, pipeline, submit):
        application = await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.withdraw_application(application.id, OTHER_CANDIDATE)

    async def test_withdraw_with_stale_version(self, pipeline, submit):
        application = await submit()
        await pipeline.transition_status(application.id, 1, "screening", RECRUITER)
        with pytest.raises(ConcurrentModificationError):
            await pipeline.withdraw_application(
                application.id, CANDIDATE, expected_version=1
            )

    async def test_withdraw_via_transition(self, pipeline, submit):
        application = await submit()
        withdrawn = await pipeline.transition_status(
            application.id, 1, "withdrawn", CANDIDATE, "Accepted another offer"
        )
        assert withdrawn.status == "withdrawn"


class TestBulkTransition:
    """Tests for best-effort bulk status changes."""

    async def test_partial_failure_report(self, pipeline, submit, advance, jobs):
        """Test one hired application does not block the others."""
        a1 = await submit()
        a2 = await advance(await submit(OTHER_CANDIDATE), "hired")
        a3 = await pipeline.submit_application(jobs["second"], CANDIDATE)

        result = await pipeline.bulk_transition_status(
            [a1.id, a2.id, a3.id], "rejected", RECRUITER
        )

        assert result.succeeded == [a1.id, a3.id]
        assert list(result.failed) == [a2.id]
        assert isinstance(result.failed[a2.id], AlreadyTerminalError)

        assert (await pipeline.get_application(a1.id, RECRUITER)).status == "rejected"
        assert (await pipeline.get_application(a2.id, RECRUITER)).status == "hired"

    async def test_duplicates_processed_once(self, pipeline, submit):
        application = await submit()
        result = await pipeline.bulk_transition_status(
            [application.id, application.id], "screening", RECRUITER
        )
        assert result.succeeded == [application.id]
        assert result.failed == {}

    async def test_missing_and_foreign_items(self, pipeline, submit, jobs):
        own = await submit()
        foreign = await pipeline.submit_application(jobs["foreign"], OTHER_CANDIDATE)

        result = await pipeline.bulk_transition_status(
            [own.id, 777, foreign.id], "rejected", RECRUITER
        )

        assert result.succeeded == [own.id]
        assert isinstance(result.failed[777], NotFoundError)
        assert isinstance(result.failed[foreign.id], NotAuthorizedError)

    async def test_invalid_items_reported(self, pipeline, submit):
        application = await submit()
        result = await pipeline.bulk_transition_status(
            [application.id], "offered", RECRUITER
        )
        assert result.succeeded == []
        assert isinstance(result.failed[application.id], InvalidTransitionError)

    async def test_batch_size_limits(self, pipeline, jobs):
        with pytest.raises(ValueError):
            await pipeline.bulk_transition_status([], "rejected", RECRUITER)
        with pytest.raises(ValueError):
            await pipeline.bulk_transition_status(
                list(range(1, 200)), "rejected", RECRUITER
            )


class TestInterviews:
    """Tests for interview operations through the pipeline."""

    async def test_double_booking_conflict(self, pipeline, submit, advance):
        """Test overlapping bookings for one interviewer are refused."""
        first = await advance(await submit(), "shortlisted")
        second = await advance(await submit(OTHER_CANDIDATE), "shortlisted")

        booked = await pipeline.schedule_interview(first.id, RECRUITER, "I1", MORNING, 30)
        with pytest.raises(InterviewConflictError) as exc_info:
            await pipeline.schedule_interview(
                second.id, RECRUITER, "I1", MORNING + timedelta(minutes=15), 30
            )
        assert exc_info.value.clashing_interview_id == booked.id

    async def test_concurrent_bookings_never_overlap(self, pipeline, submit, advance):
        """Test racing bookings for the same slot leave one interview."""
        first = await advance(await submit(), "shortlisted")
        second = await advance(await submit(OTHER_CANDIDATE), "shortlisted")

        results = await asyncio.gather(
            pipeline.schedule_interview(first.id, RECRUITER, "I1", MORNING, 30),
            pipeline.schedule_interview(
                second.id, SECOND_RECRUITER, "I1", MORNING + timedelta(minutes=10), 30
            ),
            return_exceptions=True,
        )

        booked = [result for result in results if not isinstance(result, Exception)]
        errors = [result for result in results if isinstance(result, Exception)]
        assert len(booked) == 1
        assert len(errors) == 1
        assert isinstance(errors[0], InterviewConflictError)

        schedule = await pipeline.get_interviewer_schedule(
            "I1", RECRUITER, MORNING, MORNING + timedelta(hours=2)
        )
        assert [interview.id for interview in schedule] == [booked[0].id]

    async def test_complete_leaves_status(self, pipeline, submit, advance, sink):
        """Test completion keeps the application in interview until moved."""
        application = await advance(await submit(), "interview")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 45
        )

        done = await pipeline.complete_interview(
            interview.id, RECRUITER, feedback="Great system design", rating=4, decision="pass"
        )
        assert done.status == "completed"
        assert done.decision == "pass"

        current = await pipeline.get_application(application.id, RECRUITER)
        assert current.status == "interview"

        offered = await pipeline.transition_status(
            application.id, current.version, "offered", RECRUITER
        )
        assert offered.status == "offered"

        notes = await pipeline.list_notes(application.id, SECOND_RECRUITER)
        assert [note.content for note in notes] == ["Great system design"]
        assert len(sink.of_type("interview_completed")) == 1

    async def test_schedule_cancel_schedule_round_trip(self, pipeline, submit, advance):
        """Test cancellation frees the slot for the same interviewer."""
        application = await advance(await submit(), "shortlisted")
        first = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )
        await pipeline.cancel_interview(first.id, RECRUITER, "Interviewer sick")

        again = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )
        assert again.id != first.id
        assert again.status == "scheduled"

        notes = await pipeline.list_notes(application.id, RECRUITER)
        assert [note.content for note in notes] == ["Interview cancelled: Interviewer sick"]

    async def test_reschedule_records_reason(self, pipeline, submit, advance, sink):
        application = await advance(await submit(), "shortlisted")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )

        moved = await pipeline.reschedule_interview(
            interview.id, RECRUITER, MORNING + timedelta(days=1), reason="Candidate travel"
        )
        assert moved.id == interview.id
        assert moved.status == "rescheduled"
        assert moved.duration_minutes == 30
        assert moved.original_scheduled_at == MORNING

        notes = await pipeline.list_notes(application.id, RECRUITER)
        assert notes[-1].content == "Interview rescheduled: Candidate travel"
        assert sink.of_type("interview_rescheduled")[0].interview_id == interview.id

    async def test_viewer_cannot_schedule(self, pipeline, submit, advance):
        application = await advance(await submit(), "shortlisted")
        with pytest.raises(NotAuthorizedError):
            await pipeline.schedule_interview(application.id, VIEWER, "I1", MORNING, 30)

    async def test_missing_interview(self, pipeline, jobs):
        with pytest.raises(NotFoundError):
            await pipeline.cancel_interview(12345, RECRUITER)

    async def test_schedule_range_must_be_ordered(self, pipeline, jobs):
        with pytest.raises(ValueError):
            await pipeline.get_interviewer_schedule("I1", RECRUITER, MORNING, MORNING)

    async def test_schedule_hidden_from_other_companies(
        self, pipeline, submit, advance
    ):
        """Test only the interviewer and the hiring company see a booking."""
        application = await advance(await submit(), "shortlisted")
        booked = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )
        window = (MORNING, MORNING + timedelta(hours=1))

        assert await pipeline.get_interviewer_schedule("I1", OUTSIDER, *window) == []
        assert await pipeline.get_interviewer_schedule("I1", CANDIDATE, *window) == []

        for actor_id in ("I1", RECRUITER, VIEWER):
            schedule = await pipeline.get_interviewer_schedule("I1", actor_id, *window)
            assert [interview.id for interview in schedule] == [booked.id]

    async def test_reschedule_zero_duration_rejected(self, pipeline, submit, advance):
        application = await advance(await submit(), "shortlisted")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )

        with pytest.raises(ValueError):
            await pipeline.reschedule_interview(
                interview.id, RECRUITER, MORNING + timedelta(hours=2), 0
            )

        unchanged = await pipeline.list_interviews(application.id, RECRUITER)
        assert unchanged[0].scheduled_at == MORNING
        assert unchanged[0].duration_minutes == 30

    async def test_update_interview_keeps_slot(self, pipeline, submit, advance, sink):
        """Test editing logistics leaves window and status alone."""
        application = await advance(await submit(), "shortlisted")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30, meeting_link="https://meet/a"
        )

        updated = await pipeline.update_interview(
            interview.id,
            RECRUITER,
            interview_type="onsite",
            location="HQ, room 4",
            participants=["I2"],
        )

        assert updated.id == interview.id
        assert updated.status == "scheduled"
        assert updated.scheduled_at == MORNING
        assert updated.duration_minutes == 30
        assert updated.interview_type == "onsite"
        assert updated.location == "HQ, room 4"
        assert updated.meeting_link == "https://meet/a"
        assert updated.participants == ["I2"]
        assert sink.of_type("interview_updated")[0].interview_id == interview.id

    async def test_update_interview_requires_changes(self, pipeline, submit, advance):
        application = await advance(await submit(), "shortlisted")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )
        with pytest.raises(ValueError):
            await pipeline.update_interview(interview.id, RECRUITER)

    async def test_update_closed_interview(self, pipeline, submit, advance):
        application = await advance(await submit(), "shortlisted")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )
        await pipeline.cancel_interview(interview.id, RECRUITER)

        with pytest.raises(AlreadyTerminalError):
            await pipeline.update_interview(interview.id, RECRUITER, location="HQ")

    async def test_viewer_cannot_update_interview(self, pipeline, submit, advance):
        application = await advance(await submit(), "shortlisted")
        interview = await pipeline.schedule_interview(
            application.id, RECRUITER, "I1", MORNING, 30
        )
        with pytest.raises(NotAuthorizedError):
            await pipeline.update_interview(interview.id, VIEWER, location="HQ")


class TestListings:
    """Tests for candidate, job and bookmark listings."""

    async def test_my_applications(self, pipeline, submit, advance):
        first = await submit()
        second = await submit(job="second")
        await submit(OTHER_CANDIDATE)
        await advance(second, "screening")

        mine = await pipeline.list_my_applications(CANDIDATE)
        assert [application.id for application in mine] == [second.id, first.id]

        screening = await pipeline.list_my_applications(CANDIDATE, "screening")
        assert [application.id for application in screening] == [second.id]

    async def test_unknown_status_filter(self, pipeline, jobs):
        with pytest.raises(ValueError):
            await pipeline.list_my_applications(CANDIDATE, "archived")

    async def test_job_applications(self, pipeline, submit, jobs):
        first = await submit()
        other = await submit(OTHER_CANDIDATE)
        await submit(job="second")

        listed = await pipeline.list_job_applications(jobs["published"], VIEWER)
        assert {application.id for application in listed} == {first.id, other.id}

        applied = await pipeline.list_job_applications(
            jobs["published"], RECRUITER, "applied"
        )
        assert len(applied) == 2
        assert await pipeline.list_job_applications(
            jobs["published"], RECRUITER, "hired"
        ) == []

    async def test_job_applications_need_membership(self, pipeline, submit, jobs):
        await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.list_job_applications(jobs["published"], OUTSIDER)
        with pytest.raises(NotAuthorizedError):
            await pipeline.list_job_applications(jobs["published"], CANDIDATE)

    async def test_unknown_job(self, pipeline, jobs):
        with pytest.raises(NotFoundError):
            await pipeline.list_job_applications(9999, RECRUITER)

    async def test_bookmarked_applications(self, pipeline, submit):
        first = await submit()
        second = await submit(OTHER_CANDIDATE)
        await pipeline.set_bookmark(first.id, RECRUITER, True)
        await pipeline.set_bookmark(second.id, RECRUITER, True)
        await pipeline.set_bookmark(second.id, RECRUITER, False)
        await pipeline.set_bookmark(second.id, SECOND_RECRUITER, True)

        bookmarked = await pipeline.list_bookmarked_applications(RECRUITER)
        assert [application.id for application in bookmarked] == [first.id]
        assert await pipeline.list_bookmarked_applications(VIEWER) == []


class TestNotes:
    """Tests for notes through the pipeline."""

    async def test_author_updates_note(self, pipeline, submit):
        application = await submit()
        note = await pipeline.add_note(application.id, RECRUITER, "Strong Python")

        updated = await pipeline.update_note(note.id, RECRUITER, "Strong Python and Go")
        assert updated.id == note.id
        assert updated.content == "Strong Python and Go"
        assert updated.updated_at >= note.created_at

    async def test_only_author_updates(self, pipeline, submit):
        application = await submit()
        note = await pipeline.add_note(application.id, RECRUITER, "Looks good")
        with pytest.raises(NotAuthorError):
            await pipeline.update_note(note.id, SECOND_RECRUITER, "Overwritten")

    async def test_private_notes_hidden_from_others(self, pipeline, submit):
        application = await submit()
        await pipeline.add_note(application.id, RECRUITER, "Team note")
        await pipeline.add_note(application.id, RECRUITER, "Salary hunch", "private")

        mine = await pipeline.list_notes(application.id, RECRUITER)
        theirs = await pipeline.list_notes(application.id, SECOND_RECRUITER)
        assert [note.content for note in mine] == ["Team note", "Salary hunch"]
        assert [note.content for note in theirs] == ["Team note"]

    async def test_viewer_cannot_write_notes(self, pipeline, submit):
        application = await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.add_note(application.id, VIEWER, "Hello")

    async def test_empty_note_rejected(self, pipeline, submit):
        application = await submit()
        with pytest.raises(ValueError):
            await pipeline.add_note(application.id, RECRUITER, "   ")

    async def test_missing_note(self, pipeline, jobs):
        with pytest.raises(NotFoundError):
            await pipeline.update_note(31337, RECRUITER, "text")


class TestFlags:
    """Tests for bookmark and viewed flags."""

    async def test_mark_viewed_is_idempotent(self, pipeline, submit):
        """Test marking viewed twice leaves the first state untouched."""
        application = await submit()
        first = await pipeline.mark_viewed(application.id, VIEWER)
        second = await pipeline.mark_viewed(application.id, VIEWER)

        assert first.value is True
        assert second.value is True
        assert second.updated_at == first.updated_at

        flags = await pipeline.get_flags(application.id, VIEWER)
        assert list(flags) == ["viewed"]

    async def test_bookmark_last_write_wins(self, pipeline, submit):
        application = await submit()
        await pipeline.set_bookmark(application.id, RECRUITER, True)
        await pipeline.set_bookmark(application.id, RECRUITER, False)

        flags = await pipeline.get_flags(application.id, RECRUITER)
        assert flags["bookmark"].value is False

    async def test_flags_are_per_actor(self, pipeline, submit):
        application = await submit()
        await pipeline.set_bookmark(application.id, RECRUITER, True)

        assert await pipeline.get_flags(application.id, SECOND_RECRUITER) == {}

    async def test_outsider_cannot_flag(self, pipeline, submit):
        application = await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.mark_viewed(application.id, OUTSIDER)


class TestReads:
    """Tests for read access."""

    async def test_candidate_reads_own_application(self, pipeline, submit):
        application = await submit()
        fetched = await pipeline.get_application(application.id, CANDIDATE)
        assert fetched.id == application.id

    async def test_other_candidate_cannot_read(self, pipeline, submit):
        application = await submit()
        with pytest.raises(NotAuthorizedError):
            await pipeline.get_application(application.id, OTHER_CANDIDATE)

    async def test_viewer_reads_history(self, pipeline, submit):
        application = await submit()
        history = await pipeline.get_status_history(application.id, VIEWER)
        assert len(history) == 1
