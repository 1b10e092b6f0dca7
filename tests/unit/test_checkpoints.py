"""
Unit tests for checkpoint <-> message conversion.
Tests ordering, role detection, skipped checkpoints and deduplication.
"""

from yc_advisor.graph.checkpoints import (
    checkpoint_to_message,
    reconstruct_messages,
    turn_checkpoints,
)
from yc_advisor.models.domain import Checkpoint, Message


class TestCheckpointToMessage:
    """Tests for reading a single checkpoint."""

    def test_start_marker_input_is_user(self, make_user_checkpoint):
        """Input written under the start marker should be the user's."""
        message = checkpoint_to_message(make_user_checkpoint(0, "hi"))

        assert message == Message(role="user", content="hi")

    def test_user_sender_is_user_under_any_key(self):
        """A payload sent by the user should be the user's whatever its key."""
        checkpoint = Checkpoint(
            step=3,
            source="loop",
            writes={"advisor": {"sender": "user", "messages": ["typed by user"]}},
        )

        assert checkpoint_to_message(checkpoint).role == "user"

    def test_other_writes_are_assistant(self, make_advisor_checkpoint):
        """Node output should be the assistant's."""
        message = checkpoint_to_message(make_advisor_checkpoint(1, "Welcome!"))

        assert message == Message(role="assistant", content="Welcome!")

    def test_start_marker_outside_input_source_is_assistant(self):
        """The start marker only marks user input on input checkpoints."""
        checkpoint = Checkpoint(
            step=2,
            source="loop",
            writes={"__start__": {"messages": [{"content": "echo"}]}},
        )

        assert checkpoint_to_message(checkpoint).role == "assistant"

    def test_only_first_write_is_read(self):
        """Later keys of `writes` should be ignored."""
        checkpoint = Checkpoint(
            step=1,
            source="loop",
            writes={
                "advisor": {"messages": [{"content": "first"}]},
                "other": {"sender": "user", "messages": [{"content": "second"}]},
            },
        )

        assert checkpoint_to_message(checkpoint) == Message(
            role="assistant", content="first"
        )

    def test_structured_content_is_flattened(self):
        """List content should be joined into text."""
        checkpoint = Checkpoint(
            step=1,
            source="loop",
            writes={
                "advisor": {
                    "messages": [
                        {
                            "kwargs": {
                                "content": [
                                    {"type": "text", "text": "Look at"},
                                    {"type": "image_url", "image_url": {"url": "x.png"}},
                                ]
                            }
                        }
                    ]
                }
            },
        )

        assert checkpoint_to_message(checkpoint).content == "Look at [Image: x.png]"

    def test_checkpoints_without_message_are_skipped(self):
        """No writes, empty payloads and empty text should produce nothing."""
        candidates = [
            Checkpoint(step=0),
            Checkpoint(step=1, writes={}),
            Checkpoint(step=2, writes={"advisor": None}),
            Checkpoint(step=3, writes={"advisor": {"messages": []}}),
            Checkpoint(step=4, writes={"advisor": {"messages": [{"content": ""}]}}),
            Checkpoint(step=5, writes={"advisor": {"sender": "advisor"}}),
        ]

        assert [checkpoint_to_message(cp) for cp in candidates] == [None] * 6

    def test_non_mapping_payload_is_treated_as_empty(self):
        """A malformed payload should be skipped, not rejected."""
        checkpoint = Checkpoint.model_validate(
            {"step": 0, "source": "input", "writes": {"__start__": "garbage"}}
        )

        assert checkpoint_to_message(checkpoint) is None


class TestReconstructMessages:
    """Tests for rebuilding a thread's messages."""

    def test_sorted_by_step(self, make_user_checkpoint, make_advisor_checkpoint):
        """Messages should follow step order, not storage order."""
        checkpoints = [
            make_advisor_checkpoint(3, "Second answer"),
            make_user_checkpoint(0, "hi"),
            make_user_checkpoint(2, "ok"),
            make_advisor_checkpoint(1, "Welcome!"),
        ]

        messages = reconstruct_messages(checkpoints)

        assert [(m.role, m.content) for m in messages] == [
            ("user", "hi"),
            ("assistant", "Welcome!"),
            ("user", "ok"),
            ("assistant", "Second answer"),
        ]

    def test_adjacent_duplicates_dropped(self, make_user_checkpoint):
        """A message equal to the previous one should appear once."""
        checkpoints = [make_user_checkpoint(0, "hi"), make_user_checkpoint(1, "hi")]

        assert reconstruct_messages(checkpoints) == [Message(role="user", content="hi")]

    def test_non_adjacent_duplicates_kept(
        self, make_user_checkpoint, make_advisor_checkpoint
    ):
        """Only consecutive repeats are collapsed."""
        checkpoints = [
            make_user_checkpoint(0, "hi"),
            make_advisor_checkpoint(1, "Welcome!"),
            make_user_checkpoint(2, "hi"),
        ]

        assert len(reconstruct_messages(checkpoints)) == 3

    def test_same_text_different_role_kept(
        self, make_user_checkpoint, make_advisor_checkpoint
    ):
        """Equality needs both role and content."""
        checkpoints = [make_user_checkpoint(0, "ok"), make_advisor_checkpoint(1, "ok")]

        assert len(reconstruct_messages(checkpoints)) == 2

    def test_empty_log(self):
        assert reconstruct_messages([]) == []


class TestTurnCheckpoints:
    """Tests for the checkpoints written by a turn."""

    def test_first_turn_starts_at_step_zero(self):
        user_cp, advisor_cp = turn_checkpoints(-1, "hi", "Welcome!")

        assert (user_cp.step, advisor_cp.step) == (0, 1)

    def test_steps_follow_last_step(self):
        user_cp, advisor_cp = turn_checkpoints(5, "ok", "Next")

        assert (user_cp.step, advisor_cp.step) == (6, 7)

    def test_written_turn_reads_back_as_pair(self):
        """Checkpoints of a turn should replay as the user/assistant pair."""
        checkpoints = list(turn_checkpoints(-1, "hi", "Welcome!"))

        assert reconstruct_messages(checkpoints) == [
            Message(role="user", content="hi"),
            Message(role="assistant", content="Welcome!"),
        ]

    def test_survives_json_storage(self):
        """Checkpoints should read back identically after a JSON round trip."""
        user_cp, advisor_cp = turn_checkpoints(1, "ok", "Next")
        stored = [
            Checkpoint.model_validate(cp.model_dump(mode="json"))
            for cp in (advisor_cp, user_cp)
        ]

        assert reconstruct_messages(stored) == [
            Message(role="user", content="ok"),
            Message(role="assistant", content="Next"),
        ]
