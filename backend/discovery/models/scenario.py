"""
Scenario Models - Persona definitions, the details to uncover, and hints.
"""

from typing import List, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RequiredDetail(BaseModel):
    """A piece of information the user is expected to elicit from the persona."""
    id: str
    label: str
    description: str = ""
    keywords: List[str] = Field(default_factory=list)  # matched case-insensitively
    priority: Literal["required", "optional"] = "required"


class ScenarioHint(BaseModel):
    """A contextual tip, activated by keyword, elapsed time, or manual request."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    trigger: Literal["keyword", "time", "manual"]
    keywords: Optional[List[str]] = None
    delay_seconds: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("delay_seconds", "delaySeconds")
    )
    text: str = Field(validation_alias=AliasChoices("text", "hint"))
    category: Literal["discovery", "technical", "relationship"] = "discovery"


class Scenario(BaseModel):
    """Full scenario record as held by the scenario store."""
    id: str
    name: str
    role: str
    company: str
    avatar_seed: str = ""
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    opening_line: str
    system_prompt: str
    max_turns: Optional[int] = None
    required_details: List[RequiredDetail] = Field(default_factory=list)
    hints: List[ScenarioHint] = Field(default_factory=list)

    def effective_max_turns(self, default: int) -> int:
        """Configured turn limit, or ``default`` when unset or zero."""
        return self.max_turns or default


class ScenarioSummary(BaseModel):
    """Public view of a scenario. Never carries the persona's system prompt."""
    id: str
    name: str
    role: str
    company: str
    avatar_seed: str
    difficulty: str
    opening_line: str
    max_turns: int
    required_details: List[RequiredDetail]
    hint_count: int

    @classmethod
    def from_scenario(cls, scenario: Scenario, default_max_turns: int) -> "ScenarioSummary":
        return cls(
            id=scenario.id,
            name=scenario.name,
            role=scenario.role,
            company=scenario.company,
            avatar_seed=scenario.avatar_seed,
            difficulty=scenario.difficulty,
            opening_line=scenario.opening_line,
            max_turns=scenario.effective_max_turns(default_max_turns),
            required_details=scenario.required_details,
            hint_count=len(scenario.hints),
        )
