"""
Dominion Ops - Proposal Validator Tests
=======================================
"""

import pytest

from conftest import make_submission
from dominion.core.proposals import ProposalValidator
from dominion.core.schemas import ProposalSubmission, StepTemplate


@pytest.fixture
def validator() -> ProposalValidator:
    return ProposalValidator(max_steps=20)


class TestProposalValidator:

    def test_valid_submission(self, validator):
        assert validator.validate(make_submission()) is None

    def test_missing_agent(self, validator):
        reason = validator.validate(make_submission(agent_id=None))
        assert reason.startswith("Invalid agent ID")

    @pytest.mark.parametrize("title", ["Hey", "x" * 201])
    def test_title_length(self, validator, title):
        assert validator.validate(make_submission(title=title)) == "Title must be 5-200 characters"

    def test_title_boundaries_accepted(self, validator):
        assert validator.validate(make_submission(title="x" * 5)) is None
        assert validator.validate(make_submission(title="x" * 200)) is None

    @pytest.mark.parametrize("description", ["too short", "d" * 1001])
    def test_description_length(self, validator, description):
        reason = validator.validate(make_submission(description=description))
        assert reason == "Description must be 10-1000 characters"

    @pytest.mark.parametrize("priority", [0, 101])
    def test_priority_range(self, validator, priority):
        reason = validator.validate(make_submission(priority=priority))
        assert reason == "Priority must be between 1-100"

    def test_priority_bounds_accepted(self, validator):
        assert validator.validate(make_submission(priority=1)) is None
        assert validator.validate(make_submission(priority=100)) is None

    def test_no_steps(self, validator):
        reason = validator.validate(make_submission(kinds=()))
        assert reason == "At least one step is required"

    def test_too_many_steps(self, validator):
        reason = validator.validate(make_submission(kinds=("crawl",) * 21))
        assert reason == "Maximum 20 steps allowed per proposal"

    def test_max_steps_accepted(self, validator):
        assert validator.validate(make_submission(kinds=("crawl",) * 20)) is None

    def test_unknown_kind_reports_position(self, validator):
        reason = validator.validate(make_submission(kinds=("crawl", "launch_rocket")))
        assert reason == "Invalid step kind at step 2: launch_rocket"

    def test_short_step_title(self, validator):
        submission = make_submission(
            proposed_steps=[StepTemplate(kind="crawl", title="ab")],
        )
        assert validator.validate(submission).startswith("Step 1 title must be 3-200")

    def test_first_failure_wins(self, validator):
        """Title is checked before description and steps."""
        submission = make_submission(title="Hey", description="short", kinds=())
        assert validator.validate(submission) == "Title must be 5-200 characters"

    def test_title_padding_counts_toward_length(self, validator):
        assert validator.validate(make_submission(title="Scan ")) is None

    @pytest.mark.parametrize("priority", [12.5, float("inf"), float("nan")])
    def test_fractional_priority(self, validator, priority):
        reason = validator.validate(make_submission(priority=priority))
        assert reason == "Priority must be between 1-100"

    def test_whole_float_priority_accepted(self, validator):
        assert validator.validate(make_submission(priority=50.0)) is None

    def test_null_steps(self, validator):
        reason = validator.validate(make_submission(proposed_steps=None))
        assert reason == "At least one step is required"

    def test_null_step_description_and_input(self, validator):
        submission = make_submission(
            proposed_steps=[
                StepTemplate(kind="crawl", title="Crawl listings", description=None, input_data=None),
            ],
            metadata=None,
        )
        assert validator.validate(submission) is None


class TestSubmissionSchema:
    """Submitted JSON is parsed without altering or pre-judging it."""

    def test_whitespace_kept(self):
        submission = ProposalSubmission.model_validate({
            "agent_id": " SEER ",
            "title": "  Market scan  ",
            "proposed_steps": [{"kind": "crawl", "title": " Crawl "}],
        })
        assert submission.agent_id == " SEER "
        assert submission.title == "  Market scan  "
        assert submission.proposed_steps[0].title == " Crawl "

    def test_nulls_and_fractional_priority_parse(self):
        submission = ProposalSubmission.model_validate({
            "priority": 12.5,
            "metadata": None,
            "proposed_steps": [
                {"kind": "crawl", "title": "Crawl", "description": None, "input_data": None},
            ],
        })
        assert submission.priority == 12.5
        assert submission.metadata is None
        assert submission.proposed_steps[0].description is None
