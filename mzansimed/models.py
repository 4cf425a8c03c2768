from typing import Optional, List, Union, Any
from pydantic import BaseModel, Field
from datetime import datetime
import uuid

from enum import Enum

from .constants import DEFAULT_LANGUAGE, TRANSLATED_PLACEHOLDER

# Structured fields in the order the entry form presents them.
FIELD_NAMES = ["name", "dosage", "frequency", "interval", "time_of_day", "precautions"]


class TabNotFoundError(LookupError):
    """A tab id that is not part of the session."""


class InstructionStatus(str, Enum):
    EMPTY = "Empty"
    PARTIAL = "Partial"
    GENERATED = "Generated"


class SupportedLanguage(str, Enum):
    ENGLISH = "English"
    AFRIKAANS = "Afrikaans"
    ISIXHOSA = "isiXhosa"
    ISIZULU = "isiZulu"


class MedicationFields(BaseModel):
    """Structured input of one prescription being authored."""
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    interval: str = ""
    time_of_day: str = Field("", alias="timeOfDay")
    precautions: List[str] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
        "validate_assignment": True,
    }

    def is_empty(self) -> bool:
        return not self.name and not self.dosage and not self.frequency

    def is_complete(self) -> bool:
        return bool(self.name and self.dosage and self.frequency)

    def display_name(self) -> str:
        """Medication name without its comma-separated qualifier."""
        return self.name.split(",")[0].strip()


class InstructionSections(BaseModel):
    medication_name: str = ""
    dosage_line: str = ""
    # Free text typed on the dosage line after the sentence's closing period
    dosage_trailing_text: str = ""
    time_of_day: str = ""
    precautions_header: str = ""
    precautions_list: List[str] = Field(default_factory=list)


class UserContent(BaseModel):
    """Free text around the generated sections, stored newline-terminated."""
    before_medication: str = ""
    after_medication: str = ""
    after_dosage: str = ""
    after_time_of_day: str = ""
    after_precautions: str = ""


class LastGenerated(BaseModel):
    english: str = ""
    translated: str = ""


class InstructionStructure(BaseModel):
    sections: InstructionSections = Field(default_factory=InstructionSections)
    user_content: UserContent = Field(default_factory=UserContent)
    last_generated: LastGenerated = Field(default_factory=LastGenerated)


class InstructionDisplay(BaseModel):
    english: str = ""
    translated: str = TRANSLATED_PLACEHOLDER
    selected_language: str = Field(DEFAULT_LANGUAGE, alias="selectedLanguage")
    translation_error: Optional[str] = Field(None, alias="translationError")

    model_config = {
        "populate_by_name": True,
    }


class MedicationTab(BaseModel):
    id: int
    name: str
    is_active: bool = Field(False, alias="isActive")
    fields: MedicationFields = Field(default_factory=MedicationFields, alias="formData")
    display: InstructionDisplay = Field(default_factory=InstructionDisplay, alias="instructions")
    status: InstructionStatus = InstructionStatus.EMPTY

    model_config = {
        "populate_by_name": True,
    }


class ActivePatient(BaseModel):
    id: Optional[str] = None
    initials: Optional[str] = None
    surname: Optional[str] = None
    home_language: Optional[str] = Field(None, alias="homeLanguage")
    cell_number: Optional[str] = Field(None, alias="cellNumber")

    model_config = {
        "populate_by_name": True,
        "extra": "allow"
    }


class MedicationSession(BaseModel):
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()), alias="sessionId")
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")
    updated_at: datetime = Field(default_factory=datetime.now, alias="updatedAt")

    # Fixed storage keys shared with the portal pages
    tabs: List[MedicationTab] = Field(default_factory=list, alias="medicationTabs")
    patient: Optional[ActivePatient] = Field(None, alias="patientData")
    next_tab_id: int = Field(1, alias="nextTabId")

    model_config = {
        "populate_by_name": True,
    }

    def active_tab(self) -> Optional[MedicationTab]:
        for tab in self.tabs:
            if tab.is_active:
                return tab
        return None

    def get_tab(self, tab_id: int) -> MedicationTab:
        for tab in self.tabs:
            if tab.id == tab_id:
                return tab
        raise TabNotFoundError(f"Medication tab {tab_id} does not exist in session {self.session_id}")


class MedicationRecord(BaseModel):
    """Medication payload handed to the records backend once a tab is finalized."""
    patient_id: Optional[str] = Field(None, alias="patientId")
    name: str
    dosage: str
    frequency: str
    interval: Optional[str] = None
    time_of_day: Optional[str] = Field(None, alias="timeOfDay")
    precautions: List[str] = Field(default_factory=list)
    english_instructions: str = Field("", alias="englishInstructions")
    translated_instructions: str = Field("", alias="translatedInstructions")
    target_language: Optional[str] = Field(None, alias="targetLanguage")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore"
    }


class SessionCreateRequest(BaseModel):
    patient: Optional[ActivePatient] = Field(None, alias="patientData")

    model_config = {
        "populate_by_name": True,
    }


class FieldUpdateRequest(BaseModel):
    value: Union[str, List[str]]


class InstructionEditRequest(BaseModel):
    text: str


class ResumeRequest(BaseModel):
    records: List[MedicationRecord]


class TranslateRequest(BaseModel):
    text: str
    type: str
    target_language: str = Field(..., alias="targetLanguage")

    model_config = {
        "populate_by_name": True,
    }


class BatchTranslateItem(BaseModel):
    text: Optional[str] = None
    type: Optional[str] = None


class BatchTranslateRequest(BaseModel):
    translations: List[BatchTranslateItem]
    target_language: str = Field(..., alias="targetLanguage")

    model_config = {
        "populate_by_name": True,
    }


class SendInstructionsRequest(BaseModel):
    template_name: Optional[str] = Field(None, alias="templateName")
    language_code: Optional[str] = Field(None, alias="languageCode")

    model_config = {
        "populate_by_name": True,
    }


def normalize_field_name(field: str) -> str:
    """Accept the portal's camelCase field names as well as our own."""
    if field == "timeOfDay":
        return "time_of_day"
    return field


def field_value_is_empty(value: Any) -> bool:
    if isinstance(value, list):
        return len(value) == 0
    return value is None or value == ""
