"""Unit tests for vote service."""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from app.core.cache import global_cache
from app.core.constants import POLLS_CACHE_KEY
from app.core.errors import PollClosedError, PollNotFoundError, PollValidationError
from app.db.models import PollVote
from app.services.poll import load_polls, update_poll
from app.services.vote import get_user_votes, get_user_votes_bulk, submit_votes
from tests.utils import make_poll, vote_rows


@pytest.mark.unit
class TestSubmitVotes:
    """Test ballot replacement semantics."""

    def test_single_choice_keeps_first_selection(self, db_session, member):
        """Selecting A then B in a single-choice poll records only A."""
        poll = make_poll(db_session, member, poll_type="single")
        a, b, _ = poll.options

        recorded = submit_votes(db_session, poll.id, [a.id, b.id], member.user_id)

        assert recorded == [a.id]
        assert get_user_votes(db_session, poll.id, member.user_id) == [a.id]
        assert len(vote_rows(db_session, poll.id, member.user_id)) == 1

    def test_multiple_choice_records_exact_set(self, db_session, member):
        poll = make_poll(db_session, member, poll_type="multiple")
        a, _, c = poll.options

        recorded = submit_votes(db_session, poll.id, [c.id, a.id], member.user_id)

        assert recorded == [c.id, a.id]
        # Read back in display order
        assert get_user_votes(db_session, poll.id, member.user_id) == [a.id, c.id]

    def test_resubmission_replaces_previous_ballot(self, db_session, member):
        poll = make_poll(db_session, member, poll_type="multiple")
        a, b, c = poll.options

        submit_votes(db_session, poll.id, [a.id, b.id], member.user_id)
        submit_votes(db_session, poll.id, [c.id], member.user_id)

        assert get_user_votes(db_session, poll.id, member.user_id) == [c.id]

    def test_same_ballot_twice_is_idempotent(self, db_session, member):
        poll = make_poll(db_session, member, poll_type="multiple")
        a, b, _ = poll.options

        submit_votes(db_session, poll.id, [a.id, b.id], member.user_id)
        submit_votes(db_session, poll.id, [a.id, b.id], member.user_id)

        rows = vote_rows(db_session, poll.id, member.user_id)
        assert sorted(row.option_id for row in rows) == sorted([a.id, b.id])

    def test_sequential_revote_leaves_last_selection(self, db_session, member):
        """Changing a single-choice vote from A to B leaves exactly B."""
        poll = make_poll(db_session, member)
        a, b, _ = poll.options

        submit_votes(db_session, poll.id, [a.id], member.user_id)
        submit_votes(db_session, poll.id, [b.id], member.user_id)

        rows = vote_rows(db_session, poll.id, member.user_id)
        assert [row.option_id for row in rows] == [b.id]

    def test_duplicate_ids_collapsed(self, db_session, member):
        poll = make_poll(db_session, member, poll_type="multiple")
        a = poll.options[0]

        recorded = submit_votes(db_session, poll.id, [a.id, a.id], member.user_id)

        assert recorded == [a.id]
        assert len(vote_rows(db_session, poll.id, member.user_id)) == 1

    def test_empty_ballot_retracts_vote(self, db_session, member):
        poll = make_poll(db_session, member)
        submit_votes(db_session, poll.id, [poll.options[0].id], member.user_id)

        recorded = submit_votes(db_session, poll.id, [], member.user_id)

        assert recorded == []
        assert get_user_votes(db_session, poll.id, member.user_id) == []

    def test_other_members_untouched(self, db_session, member, other_member):
        poll = make_poll(db_session, member)
        a, b, _ = poll.options
        submit_votes(db_session, poll.id, [a.id], other_member.user_id)

        submit_votes(db_session, poll.id, [b.id], member.user_id)
        submit_votes(db_session, poll.id, [], member.user_id)

        assert get_user_votes(db_session, poll.id, other_member.user_id) == [a.id]

    def test_poll_not_found(self, db_session, member):
        with pytest.raises(PollNotFoundError):
            submit_votes(db_session, "missing", [], member.user_id)

    def test_option_from_another_poll_rejected(self, db_session, member):
        poll = make_poll(db_session, member)
        other = make_poll(db_session, member, title="Budget")
        submit_votes(db_session, poll.id, [poll.options[0].id], member.user_id)

        with pytest.raises(PollValidationError, match="Invalid option"):
            submit_votes(db_session, poll.id, [other.options[0].id], member.user_id)

        # Previous ballot survives the rejected submission
        assert get_user_votes(db_session, poll.id, member.user_id) == [poll.options[0].id]

    def test_unknown_id_after_clamp_is_ignored(self, db_session, member):
        """Only the first id of a single-choice ballot is checked and kept."""
        poll = make_poll(db_session, member, poll_type="single")
        a = poll.options[0]

        recorded = submit_votes(db_session, poll.id, [a.id, "not-an-option"], member.user_id)

        assert recorded == [a.id]

    def test_closed_poll_rejected(self, db_session, member):
        poll = make_poll(db_session, member)
        update_poll(db_session, poll.id, "Venue", ["A", "B"], member, is_active=False)
        reloaded = load_polls(db_session)[0]

        with pytest.raises(PollClosedError):
            submit_votes(db_session, poll.id, [reloaded.options[0].id], member.user_id)

    def test_past_end_date_rejected(self, db_session, member):
        end_date = datetime(2030, 1, 1, tzinfo=timezone.utc)
        poll = make_poll(db_session, member, end_date=end_date)

        with pytest.raises(PollClosedError, match="Voting has ended"):
            submit_votes(
                db_session, poll.id, [poll.options[0].id], member.user_id,
                now=end_date + timedelta(minutes=1),
            )

        # Before the deadline the ballot is accepted
        submit_votes(
            db_session, poll.id, [poll.options[0].id], member.user_id,
            now=end_date - timedelta(minutes=1),
        )
        assert get_user_votes(db_session, poll.id, member.user_id) == [poll.options[0].id]

    def test_end_date_not_enforced_when_disabled(self, db_session, member):
        end_date = datetime(2020, 1, 1, tzinfo=timezone.utc)
        poll = make_poll(db_session, member, end_date=end_date)

        with patch("app.services.vote.settings") as mock_settings:
            mock_settings.POLL_ENFORCE_END_DATE = False
            recorded = submit_votes(db_session, poll.id, [poll.options[0].id], member.user_id)

        assert recorded == [poll.options[0].id]

    def test_submit_invalidates_cache(self, db_session, member):
        poll = make_poll(db_session, member)
        load_polls(db_session)
        assert global_cache.get(POLLS_CACHE_KEY) is not None

        submit_votes(db_session, poll.id, [poll.options[0].id], member.user_id)

        assert global_cache.get(POLLS_CACHE_KEY) is None
        assert load_polls(db_session)[0].options[0].votes == [member.user_id]

    def test_failed_insert_keeps_previous_ballot(self, db_session, member):
        """Delete and insert commit together: a failed insert restores the old rows."""
        poll = make_poll(db_session, member)
        a, b, _ = poll.options
        submit_votes(db_session, poll.id, [a.id], member.user_id)

        with patch.object(db_session, "add_all", side_effect=RuntimeError("insert failed")):
            with pytest.raises(RuntimeError):
                submit_votes(db_session, poll.id, [b.id], member.user_id)

        assert get_user_votes(db_session, poll.id, member.user_id) == [a.id]


@pytest.mark.unit
class TestUserVotes:
    """Test reading a member's recorded selection."""

    def test_not_voted_returns_empty(self, db_session, member):
        poll = make_poll(db_session, member)

        assert get_user_votes(db_session, poll.id, member.user_id) == []

    def test_bypasses_poll_cache(self, db_session, member):
        """A fresh ballot is visible even while the poll list is cached."""
        poll = make_poll(db_session, member)
        cached = load_polls(db_session)

        db_session.add(PollVote(poll_id=poll.id, option_id=poll.options[1].id, user_id=member.user_id))
        db_session.commit()

        assert load_polls(db_session) is cached
        assert get_user_votes(db_session, poll.id, member.user_id) == [poll.options[1].id]

    def test_bulk_groups_by_poll(self, db_session, member, other_member):
        venue = make_poll(db_session, member, poll_type="multiple")
        budget = make_poll(db_session, member, title="Budget", options=["Yes", "No"])
        make_poll(db_session, member, title="Unvoted")

        submit_votes(db_session, venue.id, [venue.options[2].id, venue.options[0].id], member.user_id)
        submit_votes(db_session, budget.id, [budget.options[1].id], member.user_id)
        submit_votes(db_session, budget.id, [budget.options[0].id], other_member.user_id)

        votes = get_user_votes_bulk(db_session, member.user_id)

        assert votes == {
            venue.id: [venue.options[0].id, venue.options[2].id],
            budget.id: [budget.options[1].id],
        }
