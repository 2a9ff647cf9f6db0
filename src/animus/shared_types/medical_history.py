"""
Medical history and classification types.

A medical history entry is the server-persisted condition record derived
from a scan; the classification response is the recommendation service's
verdict on whether a scan describes a genuine medical condition.
"""

from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, field_validator

from animus.shared_types.scan import CamelModel, Urgency
from animus.utils.text_utils import coerce_text, optional_text


class MedicalHistoryEntry(CamelModel):
    """Server-side medical history record."""
    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    condition: str = ""
    description: str = ""
    date_diagnosed: Optional[str] = None
    is_active: bool = True
    reference_id: Optional[str] = None  # ScanRecord.id this entry was derived from (lookup only)
    created_at: Optional[str] = None

    @field_validator("condition", "description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("id", "reference_id", "date_diagnosed", "created_at", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        value = optional_text(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("is_active", mode="before")
    @classmethod
    def _active(cls, value: Any) -> Any:
        return True if value is None else value

    def to_create_payload(self) -> Dict[str, Any]:
        """Body for creating this entry; server-assigned fields are omitted."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id", "created_at"}, exclude_none=True)


class ClassificationResponse(CamelModel):
    """Recommendation service verdict for one scan."""
    urgency: Optional[Urgency] = None
    recommendations: str = ""
    insights: str = ""
    is_medical_condition: bool = False
    condition: Optional[str] = None

    @field_validator("urgency", mode="before")
    @classmethod
    def _urgency(cls, value: Any) -> Optional[Urgency]:
        return Urgency.parse(value)

    @field_validator("recommendations", "insights", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)

    @field_validator("condition", mode="before")
    @classmethod
    def _condition(cls, value: Any) -> Optional[str]:
        text = coerce_text(value)
        return text or None

    @field_validator("is_medical_condition", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> Any:
        # Wire value is 0|1; tolerate null and booleans
        if value is None or value == "":
            return False
        return value
