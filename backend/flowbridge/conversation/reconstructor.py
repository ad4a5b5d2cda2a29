# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Conversation Reconstructor

Replays a session's executions as ordered (input, output) turns.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from flowbridge.conversation.extraction import extract_input, extract_output
from flowbridge.conversation.models import Conversation, ConversationTurn
from flowbridge.core.errors import FlowBridgeError
from flowbridge.core.logging import get_service_logger
from flowbridge.engine.client import EngineClient
from flowbridge.engine.models import Execution
from flowbridge.utils.formatting import format_duration

logger = get_service_logger("conversation")


def _sort_key(execution: Execution) -> Tuple[bool, float]:
    """Ascending start time; executions without a start go last"""
    started = execution.started_at
    if started is None:
        return (True, 0.0)
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    return (False, started.timestamp())


def order_executions(executions: Sequence[Execution]) -> List[Execution]:
    return sorted(executions, key=_sort_key)


def conversation_status(turns: Sequence[ConversationTurn]) -> str:
    statuses = {t.status for t in turns}
    if "error" in statuses:
        return "error"
    if "running" in statuses:
        return "running"
    return "success"


class ConversationReconstructor:
    """
    Builds conversation turns from executions.

    Executions without a result are hydrated through the engine client when
    one is given; a failed fetch leaves that turn with placeholder text.
    """

    def __init__(self, engine: Optional[EngineClient] = None):
        self.engine = engine

    async def _hydrate(self, execution: Execution):
        if execution.result is not None or self.engine is None:
            return execution.result
        try:
            detail = await self.engine.get_execution_detail(execution.id)
            return detail.result
        except (FlowBridgeError, PydanticValidationError) as e:
            logger.warning(
                f"Could not load result for execution {execution.id}: {e}",
                extra={"execution_id": execution.id}
            )
            return None

    async def reconstruct(self, executions: Sequence[Execution]) -> List[ConversationTurn]:
        """
        Extract one turn per execution in chronological order.

        Args:
            executions: Executions of one session, any order

        Returns:
            Turns sorted ascending by start time
        """
        turns = []
        for execution in order_executions(executions):
            result = await self._hydrate(execution)
            turns.append(ConversationTurn(
                execution_id=execution.id,
                input=extract_input(result),
                output=extract_output(result),
                timestamp=execution.started_at,
                status=execution.status,
            ))

        logger.debug(f"Reconstructed {len(turns)} conversation turns")
        return turns

    async def build_conversation(self, session_id: str, executions: Sequence[Execution]) -> Conversation:
        """Turns plus session metadata (bounds, duration, message count, status)"""
        ordered = order_executions(executions)
        turns = await self.reconstruct(ordered)

        starts = [e.started_at for e in ordered if e.started_at is not None]
        ends = [e.stopped_at or e.started_at for e in ordered if (e.stopped_at or e.started_at) is not None]
        started_at = starts[0] if starts else None
        ended_at = _latest(ends)

        duration = 0
        if started_at is not None and ended_at is not None:
            try:
                duration = max(0, int((ended_at - started_at).total_seconds() * 1000))
            except TypeError:
                # naive/aware mix
                duration = 0

        return Conversation(
            session_id=session_id,
            turns=turns,
            message_count=len(turns),
            started_at=started_at,
            ended_at=ended_at,
            duration=duration,
            duration_display=format_duration(duration),
            status=conversation_status(turns),
        )


def _latest(moments: Sequence[datetime]) -> Optional[datetime]:
    if not moments:
        return None
    return max(moments, key=lambda m: m if m.tzinfo else m.replace(tzinfo=timezone.utc))
