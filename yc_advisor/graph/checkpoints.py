"""
Checkpoint log <-> display messages.
Rebuilds the user/assistant message list of a thread from its persisted
checkpoints, and creates the checkpoints recorded for a new turn.
"""

from typing import Iterable
from langchain_core.load import dumpd
from langchain_core.messages import AIMessage, HumanMessage

from yc_advisor.models.domain import (
    ADVISOR_NODE,
    GRAPH_START_MARKER,
    USER_SENDER,
    Checkpoint,
    CheckpointWrite,
    Message,
)
from yc_advisor.utils.messages import fragment_text

INPUT_SOURCE = "input"
LOOP_SOURCE = "loop"


def checkpoint_to_message(checkpoint: Checkpoint) -> Message | None:
    """
    Reads the message written by one checkpoint, if it wrote any.

    Only the first entry of `writes` is considered. The message is the
    user's when its sender is the user, or when it is the input written under
    the graph start marker; anything else was written by the advisor.
    """
    if not checkpoint.writes:
        return None

    key = next(iter(checkpoint.writes))
    payload = checkpoint.writes[key]
    if payload is None or not payload.messages:
        return None

    content = fragment_text(payload.messages[0])
    if not content:
        return None

    is_user = payload.sender == USER_SENDER or (
        checkpoint.source == INPUT_SOURCE and key == GRAPH_START_MARKER
    )
    return Message(role="user" if is_user else "assistant", content=content)


def reconstruct_messages(checkpoints: Iterable[Checkpoint]) -> list[Message]:
    """
    Turns a thread's checkpoints into its ordered display messages.

    Checkpoints are sorted by step first, since stores return them in no
    particular order. A message equal in role and content to the one right
    before it is dropped.
    """
    messages: list[Message] = []
    for checkpoint in sorted(checkpoints, key=lambda cp: cp.step):
        message = checkpoint_to_message(checkpoint)
        if message is None:
            continue
        if messages and messages[-1] == message:
            continue
        messages.append(message)
    return messages


def turn_checkpoints(
    last_step: int, user_text: str, answer: str
) -> tuple[Checkpoint, Checkpoint]:
    """
    Builds the two checkpoints recording one turn: the user's input followed
    by the advisor's answer, at the next two steps after `last_step`.
    """
    user_checkpoint = Checkpoint(
        step=last_step + 1,
        source=INPUT_SOURCE,
        writes={
            GRAPH_START_MARKER: CheckpointWrite(
                sender=USER_SENDER, messages=[dumpd(HumanMessage(content=user_text))]
            )
        },
    )
    advisor_checkpoint = Checkpoint(
        step=last_step + 2,
        source=LOOP_SOURCE,
        writes={
            ADVISOR_NODE: CheckpointWrite(
                sender=ADVISOR_NODE, messages=[dumpd(AIMessage(content=answer))]
            )
        },
        parents={},
    )
    return user_checkpoint, advisor_checkpoint
