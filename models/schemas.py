"""
Request and response shapes validated at the HTTP boundary.
"""
import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Category = Literal["Leak", "Odor", "Outage", "Billing", "Meter", "Other"]
Severity = Literal["Low", "Medium", "High"]

# ~120 words
MAX_TEXT_LENGTH = 600


class EnrichRequest(BaseModel):
    description: str = Field(min_length=1)
    address: Optional[str] = None


class Classification(BaseModel):
    category: Category
    severity: Severity
    summary: str = Field(max_length=MAX_TEXT_LENGTH)
    nextSteps: List[str]
    customerMessage: str = Field(max_length=MAX_TEXT_LENGTH)


class IncidentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    address: Optional[str] = None
    description: str = Field(min_length=1)
    category: Category
    severity: Severity
    summary: str
    next_steps: List[str] = Field(alias="nextSteps")
    customer_message: str = Field(alias="customerMessage")
    lat: Optional[float] = None
    lng: Optional[float] = None
    ai_suggestion_raw: Optional[Dict[str, Any]] = Field(default=None, alias="aiSuggestionRaw")
    # enrichment mode the suggestion came back with
    ai_mode: Optional[Literal["openai", "rules", "rules-fallback"]] = Field(default=None, alias="aiMode")

    @model_validator(mode="before")
    @classmethod
    def accept_serialized_steps(cls, data):
        # Older clients send the steps as a JSON-encoded string
        if isinstance(data, dict) and "nextSteps" not in data and "nextStepsJson" in data:
            data = dict(data)
            raw = data.pop("nextStepsJson")
            data["nextSteps"] = json.loads(raw) if isinstance(raw, str) else raw
        return data

    @field_validator("address")
    @classmethod
    def blank_address_is_none(cls, value):
        if value is not None and not value.strip():
            return None
        return value

    def incident_fields(self):
        return self.model_dump(exclude={"ai_suggestion_raw", "ai_mode"})


class ImportBundle(BaseModel):
    incident: Dict[str, Any]
    aiSuggestions: List[Dict[str, Any]] = []
    audits: List[Dict[str, Any]] = []
