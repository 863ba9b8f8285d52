"""Argument schemas for the agent's tools.

The JSON schema of each model is what the model provider sees as the tool's
parameters; the same model validates the arguments that come back. Field
names are part of the external contract with the chat UI and the agent
instructions, which is why some are camelCase.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ShiftName = Literal["morning", "afternoon", "evening", "overnight", "flexible"]


class ToolArgs(BaseModel):
    # A model-supplied user id (or anything else unexpected) is rejected, not ignored.
    model_config = ConfigDict(extra="forbid")


class NoArgs(ToolArgs):
    pass


class SearchFilterArgs(ToolArgs):
    second_chance_only: Optional[bool] = Field(None, description="Only show second-chance/fair-chance employers")
    city: Optional[str] = Field(None, description="Filter by city name")
    state: Optional[str] = Field(None, description="Filter by state (e.g., FL, CA)")
    bus_accessible: Optional[bool] = Field(None, description="Require bus accessibility")
    rail_accessible: Optional[bool] = Field(None, description="Require rail accessibility")
    urgent_only: Optional[bool] = Field(None, description="Only show urgent hiring")
    easy_apply_only: Optional[bool] = Field(None, description="Only show easy apply jobs")
    shifts: Optional[List[ShiftName]] = Field(None, description="Filter by shift availability")


class SearchJobsArgs(ToolArgs):
    query: str = Field(description="Search keywords: job titles, skills, company names, industries")
    limit: int = Field(5, ge=1, le=8, description="Number of results to return (max 8)")
    filters: Optional[SearchFilterArgs] = None


class SavePreferenceArgs(ToolArgs):
    clearOtherShifts: Optional[bool] = Field(
        None,
        description='Set true when user says "only", "just", or implies exclusivity. '
        "Clears all shifts not explicitly set to true.",
    )
    maxCommuteMinutes: Optional[Literal[10, 30, 60]] = Field(None, description="Maximum commute time in minutes")
    preferSecondChance: Optional[bool] = Field(None, description="Prioritize fair-chance employers")
    requirePublicTransit: Optional[bool] = Field(None, description="Must be accessible by public transit")
    requireSecondChance: Optional[bool] = Field(None, description="Only show fair-chance employers")
    shiftMorning: Optional[bool] = Field(None, description="Morning shift (6am-12pm)")
    shiftAfternoon: Optional[bool] = Field(None, description="Afternoon shift (12pm-6pm)")
    shiftEvening: Optional[bool] = Field(None, description="Evening shift (6pm-12am)")
    shiftOvernight: Optional[bool] = Field(None, description="Overnight shift (12am-6am)")
    shiftFlexible: Optional[bool] = Field(None, description="Flexible/any shift")


class QuestionOption(ToolArgs):
    id: str = Field(description="Unique identifier for this option")
    label: str = Field(description="Display text for this option")
    description: Optional[str] = Field(None, description="Additional context for the option")


class AskQuestionArgs(ToolArgs):
    question: str = Field(max_length=220, description="The question to ask the user")
    options: List[QuestionOption] = Field(
        min_length=2, max_length=8, description="2-8 quick-reply options. Each MUST have id and label."
    )
    preamble: Optional[str] = Field(
        None,
        max_length=800,
        description="Short context shown above the question. For post_search: summarize patterns only.",
    )
    allowFreeText: Optional[bool] = Field(
        None, description="Whether to allow the user to type their own answer (defaults to true)"
    )
    purpose: Optional[Literal["discovery", "post_search", "application", "other"]] = Field(
        None, description="Why you are asking"
    )


class CollectLocationArgs(ToolArgs):
    reason: str = Field(description="Why we need their location (shown to user)")


class CollectResumeArgs(ToolArgs):
    reason: str = Field(description="Why uploading helps (shown as card description)")


class AskPreferenceArgs(ToolArgs):
    preference: Literal["shift", "commute", "fairChance"] = Field(description="Which preference to collect")
    context: Optional[str] = Field(
        None, max_length=200, description="Brief context explaining why you need this (shown to user)"
    )


class TodoArgItem(ToolArgs):
    id: str = Field(description="Unique identifier for the todo item")
    content: str = Field(description="Brief description of the task (3-8 words)")
    status: Literal["pending", "in_progress", "completed", "cancelled"]
    priority: Literal["high", "medium", "low"] = "medium"


class TodoWriteArgs(ToolArgs):
    todos: List[TodoArgItem] = Field(description="The complete updated todo list")
