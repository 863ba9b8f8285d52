"""Per-turn tool-call protocol.

Within one turn the agent may make any number of silent calls, at most one
search and at most one interactive call. An interactive call ends the turn:
no tool call and no assistant text may follow it. The model is told all of
this in its instructions, but it is enforced here.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from jobmatcher.errors import ProtocolViolation
from jobmatcher.models import ToolCall
from jobmatcher.tools import TOOLS, ToolKind, ToolSpec

MAX_SEARCHES_PER_TURN = 1


class TurnState(str, Enum):
    OPEN = "open"
    AWAITING_USER = "awaiting_user"


class TurnProtocol:
    def __init__(self, tools: dict[str, ToolSpec] | None = None) -> None:
        self.tools = tools if tools is not None else TOOLS
        self.state = TurnState.OPEN
        self.calls: list[ToolCall] = []
        self.searches = 0
        self.interactive: ToolCall | None = None
        self._call_ids: set[str] = set()

    def check_text(self, text: str | None) -> None:
        if text and text.strip() and self.interactive is not None:
            raise ProtocolViolation(
                f"Assistant text after interactive tool {self.interactive.name}",
                tool_name=self.interactive.name,
            )

    def check_call(self, call: ToolCall) -> tuple[ToolSpec, Any]:
        """Validate one call against the turn so far and record it."""
        if self.interactive is not None:
            raise ProtocolViolation(
                f"{call.name} called after interactive tool {self.interactive.name}; "
                "an interactive tool must be the last action of a turn",
                tool_name=call.name,
            )
        spec = self.tools.get(call.name)
        if spec is None:
            raise ProtocolViolation(f"Unknown tool {call.name!r}", tool_name=call.name)
        if call.id in self._call_ids:
            raise ProtocolViolation(f"Duplicate tool call id {call.id!r}", tool_name=call.name)

        args = spec.parse(call.arguments)

        if spec.kind is ToolKind.SEARCH:
            if self.searches >= MAX_SEARCHES_PER_TURN:
                raise ProtocolViolation("More than one search in a single turn", tool_name=call.name)
            self.searches += 1
        elif spec.kind is ToolKind.INTERACTIVE:
            self.interactive = call
            self.state = TurnState.AWAITING_USER

        self._call_ids.add(call.id)
        self.calls.append(call)
        return spec, args

    def check_reply(self, text: str | None, calls: list[ToolCall]) -> list[tuple[ToolCall, ToolSpec, Any]]:
        """Validate a whole model reply before any of its calls run.

        Reply text is treated as coming before the reply's tool calls.
        Raises ProtocolViolation on the first call that breaks the protocol;
        nothing from the reply may be executed in that case.
        """
        self.check_text(text)
        return [(call, *self.check_call(call)) for call in calls]
