"""
Scan record types.

A scan record is one user-submitted health check plus its AI-derived analysis.
The scan payload is a tagged union over the six scan kinds, discriminated by
``scan_type`` (``scanType`` on the wire), so each kind carries its own typed
fields instead of an untyped bag of optional properties.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from animus.utils.text_utils import coerce_text, optional_text


class ScanType(str, Enum):
    """The six kinds of health check a user can record."""
    CARDIAC = "cardiac"
    SKIN = "skin"
    EYE = "eye"
    VITALS = "vitals"
    SYMPTOM = "symptom"
    MEDICAL_REPORT = "medical_report"

    @property
    def is_imaging(self) -> bool:
        return self in (ScanType.SKIN, ScanType.EYE, ScanType.MEDICAL_REPORT)


class Urgency(str, Enum):
    """Coarse triage label attached to some analyses."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: Any) -> Optional["Urgency"]:
        """Case-insensitive parse; anything unrecognized is None."""
        if isinstance(value, Urgency):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return None


class CamelModel(BaseModel):
    """Base model that reads and writes the camelCase keys used on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump with camelCase keys into JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")


class _ScanDataBase(CamelModel):
    # Keep keys the typed fields don't know (e.g. echoed analysis text in legacy records)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class CardiacScanData(_ScanDataBase):
    scan_type: Literal["cardiac"] = "cardiac"
    diagnosis: Optional[str] = None
    waveform_url: Optional[str] = None
    spectrogram_url: Optional[str] = None


class _ImagingScanData(_ScanDataBase):
    image_url: Optional[str] = None
    user_context: str = ""

    @field_validator("user_context", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)


class SkinScanData(_ImagingScanData):
    scan_type: Literal["skin"] = "skin"


class EyeScanData(_ImagingScanData):
    scan_type: Literal["eye"] = "eye"


class MedicalReportScanData(_ImagingScanData):
    scan_type: Literal["medical_report"] = "medical_report"


class VitalsScanData(_ScanDataBase):
    scan_type: Literal["vitals"] = "vitals"
    heart_rate: Optional[str] = None
    bp_systolic: Optional[str] = None
    bp_diastolic: Optional[str] = None
    o2: Optional[str] = None
    temperature: Optional[str] = None

    @field_validator("heart_rate", "bp_systolic", "bp_diastolic", "o2", "temperature", mode="before")
    @classmethod
    def _numeric_text(cls, value: Any) -> Any:
        value = optional_text(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def readings(self) -> Dict[str, str]:
        """Non-empty readings keyed by their camelCase name."""
        return {
            key: value
            for key, value in self.model_dump(by_alias=True, exclude={"scan_type"}).items()
            if value not in (None, "")
        }


class SymptomScanData(_ScanDataBase):
    scan_type: Literal["symptom"] = "symptom"
    symptoms: str = ""

    @field_validator("symptoms", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return coerce_text(value)


ScanData = Annotated[
    Union[
        CardiacScanData,
        SkinScanData,
        EyeScanData,
        MedicalReportScanData,
        VitalsScanData,
        SymptomScanData,
    ],
    Field(discriminator="scan_type"),
]

SCAN_DATA_MODELS: Dict[ScanType, type[_ScanDataBase]] = {
    ScanType.CARDIAC: CardiacScanData,
    ScanType.SKIN: SkinScanData,
    ScanType.EYE: EyeScanData,
    ScanType.MEDICAL_REPORT: MedicalReportScanData,
    ScanType.VITALS: VitalsScanData,
    ScanType.SYMPTOM: SymptomScanData,
}


class AnalysisResult(CamelModel):
    """
    Normalized AI response.

    Every field is always present: text fields default to "", lists to [],
    and confidence/urgency to None, so callers never branch on missing keys.
    """
    summary: str = ""
    analysis: str = ""
    short_summary: str = ""
    explanation: str = ""
    scan_details: str = ""
    insights: str = ""
    suggestions: str = ""
    ai: str = ""
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    top_conditions: List[str] = Field(default_factory=list)
    urgency: Optional[Urgency] = None

    @field_validator("urgency", mode="before")
    @classmethod
    def _urgency(cls, value: Any) -> Optional[Urgency]:
        return Urgency.parse(value)

    @property
    def display_summary(self) -> str:
        """Headline text: short summary, then summary, then analysis."""
        return self.short_summary or self.summary or self.analysis

    @property
    def classification_text(self) -> str:
        """Analysis text sent for classification (summary, analysis, explanation)."""
        parts: List[str] = []
        for text in (self.summary, self.analysis, self.explanation):
            if text and text not in parts:
                parts.append(text)
        return "\n\n".join(parts)

    @property
    def insight_text(self) -> str:
        """Follow-up guidance: insights, else legacy suggestions."""
        return self.insights or self.suggestions


class ScanRecord(CamelModel):
    """
    One scan and its analysis, as kept in local history.

    Records are immutable; the only later change is attaching the id of the
    medical history entry created for it, which produces a new copy.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    date: str
    scan_data: ScanData
    analysis_result: AnalysisResult = Field(default_factory=AnalysisResult)
    raw_response: Dict[str, Any] = Field(default_factory=dict)
    medical_history_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _tag_scan_data(cls, data: Any) -> Any:
        # Stored records may carry scanType only at the top level
        if not isinstance(data, dict):
            return data
        top_level_type = data.get("scanType", data.get("scan_type"))
        for key in ("scanData", "scan_data"):
            scan_data = data.get(key)
            if isinstance(scan_data, dict) and "scanType" not in scan_data:
                scan_type = scan_data.get("scan_type", top_level_type)
                tagged = {k: v for k, v in scan_data.items() if k != "scan_type"}
                tagged["scanType"] = getattr(scan_type, "value", scan_type)
                data = {**data, key: tagged}
        return data

    @field_validator("id", "medical_history_id", mode="before")
    @classmethod
    def _identifier(cls, value: Any) -> Any:
        return optional_text(value)

    @computed_field(alias="scanType")  # type: ignore[misc]
    @property
    def scan_type(self) -> ScanType:
        return ScanType(self.scan_data.scan_type)

    def with_medical_history_id(self, entry_id: Optional[str]) -> "ScanRecord":
        """Return a copy referencing the medical history entry created for this record."""
        return self.model_copy(update={"medical_history_id": entry_id})
