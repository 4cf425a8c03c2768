import os
import json
import logging
import jsonpatch
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from .models import (
    FIELD_NAMES,
    ActivePatient,
    InstructionDisplay,
    InstructionStatus,
    InstructionStructure,
    MedicationFields,
    MedicationRecord,
    MedicationSession,
    MedicationTab,
)
from .catalog import MedicationCatalog
from .composer import InstructionComposer, instruction_status
from .constants import DEFAULT_LANGUAGE, PLACEHOLDER_TEXTS, TRANSLATED_PLACEHOLDER
from .controller import SynchronizationController
from .field_clear import FieldClearHandler
from .messaging import InstructionDispatcher
from .parser import InstructionParser
from .renderer import InstructionRenderer
from .translator import InstructionTranslator
from .utils import expand_abbreviation
from .vocabulary import VocabularyLookup
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages medication-entry sessions: tabs, storage and instruction sync."""

    def __init__(self, storage_dir: Optional[str] = None, vocabulary: Optional[VocabularyLookup] = None,
                 catalog: Optional[MedicationCatalog] = None, dispatcher: Optional[InstructionDispatcher] = None):
        if storage_dir is None:
            storage_dir = os.getenv("STORAGE_DIR", os.path.join("data", "sessions"))
        self.storage_dir = storage_dir
        os.makedirs(storage_dir, exist_ok=True)

        # S3 Configuration
        self.s3_bucket = os.getenv("S3_BUCKET_NAME")
        self.s3_client = boto3.client('s3') if self.s3_bucket else None
        self.s3_prefix = "mzansimed"

        self.default_language = os.getenv("DEFAULT_LANGUAGE", DEFAULT_LANGUAGE)

        self.vocabulary = vocabulary or VocabularyLookup()
        self.catalog = catalog or MedicationCatalog()
        self.dispatcher = dispatcher or InstructionDispatcher()
        self.parser = InstructionParser(self.vocabulary.header_spellings())
        self.composer = InstructionComposer()
        self.renderer = InstructionRenderer()
        self.translator = InstructionTranslator(self.vocabulary)
        self.clear_handler = FieldClearHandler()

        # One live object per session so in-flight translations see later edits
        self._sessions: Dict[str, MedicationSession] = {}
        self._controllers: Dict[Tuple[str, int], SynchronizationController] = {}

    def _get_path(self, session_id: str) -> str:
        return os.path.join(self.storage_dir, f"{session_id}.json")

    def _s3_key(self, session_id: str) -> str:
        return f"{self.s3_prefix}/sessions/{session_id}.json"

    def _upload_to_s3(self, local_path: str, s3_key: str):
        """Mirror a file to S3 if configured; failures leave the local copy in place."""
        if self.s3_client and self.s3_bucket:
            try:
                self.s3_client.upload_file(local_path, self.s3_bucket, s3_key)
                logger.info(f"Uploaded {local_path} to s3://{self.s3_bucket}/{s3_key}")
            except (BotoCoreError, ClientError) as e:
                logger.error(f"S3 upload error for {s3_key}: {e}")

    def _download_from_s3(self, s3_key: str, local_path: str) -> bool:
        if self.s3_client and self.s3_bucket:
            try:
                self.s3_client.download_file(self.s3_bucket, s3_key, local_path)
                return True
            except ClientError as e:
                if e.response['Error']['Code'] in ("404", "NoSuchKey"):
                    return False
                logger.error(f"S3 download error for {s3_key}: {e}")
        return False

    def _new_tab(self, tab_id: int, is_active: bool) -> MedicationTab:
        return MedicationTab(
            id=tab_id,
            name=f"Medication {tab_id}",
            is_active=is_active,
            display=InstructionDisplay(selected_language=self.default_language),
        )

    # Storage

    def create_session(self, patient: Optional[ActivePatient] = None) -> MedicationSession:
        """Start a session holding one empty, active medication tab."""
        session = MedicationSession(patient=patient, tabs=[self._new_tab(1, True)], next_tab_id=2)
        self.save_session(session)
        logger.info(f"Created medication session {session.session_id}")
        return session

    def list_sessions(self) -> List[MedicationSession]:
        sessions = []
        for filename in os.listdir(self.storage_dir):
            if filename.endswith(".json"):
                try:
                    sessions.append(self.load_session(filename[:-len(".json")]))
                except (OSError, ValueError) as e:
                    logger.error(f"Error loading {filename}: {e}")
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    def save_session(self, session: MedicationSession):
        session.updated_at = datetime.now()
        self._sessions[session.session_id] = session
        local_path = self._get_path(session.session_id)
        with open(local_path, "w", encoding="utf-8") as f:
            f.write(session.model_dump_json(by_alias=True, indent=2))

        self._upload_to_s3(local_path, self._s3_key(session.session_id))

    def load_session(self, session_id: str) -> MedicationSession:
        if session_id in self._sessions:
            return self._sessions[session_id]

        path = self._get_path(session_id)
        if not os.path.exists(path):
            if not self._download_from_s3(self._s3_key(session_id), path):
                raise FileNotFoundError(f"Session {session_id} not found locally or in S3")

        with open(path, "r", encoding="utf-8") as f:
            session = MedicationSession.model_validate(json.load(f))
        self._sessions[session_id] = session
        return session

    def set_patient(self, session_id: str, patient: ActivePatient) -> MedicationSession:
        session = self.load_session(session_id)
        session.patient = patient
        self.save_session(session)
        return session

    # Tabs

    def add_tab(self, session_id: str) -> MedicationSession:
        """Append an empty tab and make it the active one."""
        session = self.load_session(session_id)
        for tab in session.tabs:
            tab.is_active = False
        tab = self._new_tab(session.next_tab_id, True)
        session.tabs.append(tab)
        session.next_tab_id += 1
        self.save_session(session)
        logger.info(f"Added medication tab {tab.id} to session {session_id}")
        return session

    def switch_tab(self, session_id: str, tab_id: int) -> MedicationSession:
        session = self.load_session(session_id)
        session.get_tab(tab_id)
        for tab in session.tabs:
            tab.is_active = tab.id == tab_id
        self.save_session(session)
        return session

    def delete_tab(self, session_id: str, tab_id: int) -> MedicationSession:
        """Remove a tab; the first remaining tab takes over if it was active."""
        session = self.load_session(session_id)
        if len(session.tabs) <= 1:
            raise ValueError("A session must keep at least one medication tab.")

        tab = session.get_tab(tab_id)
        session.tabs = [t for t in session.tabs if t.id != tab_id]
        if tab.is_active:
            session.tabs[0].is_active = True
        self._controllers.pop((session_id, tab_id), None)
        self.save_session(session)
        logger.info(f"Deleted medication tab {tab_id} from session {session_id}")
        return session

    def controller_for(self, session: MedicationSession, tab: MedicationTab) -> SynchronizationController:
        key = (session.session_id, tab.id)
        controller = self._controllers.get(key)
        if controller is None or controller.tab is not tab:
            controller = SynchronizationController(
                tab,
                self.vocabulary,
                parser=self.parser,
                composer=self.composer,
                renderer=self.renderer,
                translator=self.translator,
                clear_handler=self.clear_handler,
            )
            self._controllers[key] = controller
        return controller

    def language_for(self, session: MedicationSession, tab: MedicationTab) -> str:
        if session.patient and session.patient.home_language:
            return session.patient.home_language
        return tab.display.selected_language

    # Instruction editing

    async def update_field(self, session_id: str, tab_id: int, field: str, value: Any) -> MedicationTab:
        session = self.load_session(session_id)
        tab = session.get_tab(tab_id)
        controller = self.controller_for(session, tab)
        await controller.update_field(field, value, self.language_for(session, tab))
        self.save_session(session)
        return tab

    async def patch_fields(self, session_id: str, tab_id: int, operations: List[Dict[str, Any]]) -> MedicationTab:
        """Apply RFC 6902 operations to a tab's fields, one field edit per change."""
        session = self.load_session(session_id)
        tab = session.get_tab(tab_id)

        current = tab.fields.model_dump(by_alias=True)
        try:
            patched = jsonpatch.JsonPatch(operations).apply(current)
        except (jsonpatch.JsonPatchException, jsonpatch.JsonPointerException) as e:
            raise ValueError(f"Invalid field patch: {e}")
        updated = MedicationFields.model_validate(patched)

        controller = self.controller_for(session, tab)
        language = self.language_for(session, tab)
        for field in FIELD_NAMES:
            value = getattr(updated, field)
            if value != getattr(tab.fields, field):
                await controller.update_field(field, value, language)
        self.save_session(session)
        return tab

    async def expand_abbreviation(self, session_id: str, tab_id: int, field: str) -> MedicationTab:
        """Expand shorthand in a field (Enter in the entry form)."""
        session = self.load_session(session_id)
        tab = session.get_tab(tab_id)
        if field not in FIELD_NAMES:
            raise ValueError(f"Unknown medication field '{field}'.")

        expanded = expand_abbreviation(field, getattr(tab.fields, field))
        if expanded is None:
            return tab
        return await self.update_field(session_id, tab_id, field, expanded)

    def edit_instructions(self, session_id: str, tab_id: int, kind: str, text: str) -> MedicationTab:
        session = self.load_session(session_id)
        tab = session.get_tab(tab_id)
        controller = self.controller_for(session, tab)
        if kind == "english":
            controller.edit_english(text)
        elif kind == "translated":
            controller.edit_translated(text)
        else:
            raise ValueError(f"Unknown instruction pane '{kind}'; expected 'english' or 'translated'.")
        self.save_session(session)
        return tab

    async def refresh_translations(self, session_id: str) -> MedicationSession:
        """Re-translate every generated tab, e.g. after the patient language changed."""
        session = self.load_session(session_id)
        for tab in session.tabs:
            if tab.status == InstructionStatus.GENERATED:
                controller = self.controller_for(session, tab)
                await controller.refresh_translation(self.language_for(session, tab))
        self.save_session(session)
        return session

    def get_structure(self, session_id: str, tab_id: int) -> InstructionStructure:
        session = self.load_session(session_id)
        tab = session.get_tab(tab_id)
        return self.controller_for(session, tab).structure

    # Saved records

    def resume_from_records(self, session_id: str, records: List[MedicationRecord]) -> MedicationSession:
        """Seed tabs from saved medications; their texts are shown as saved."""
        session = self.load_session(session_id)
        if not records:
            raise ValueError("No saved medications to resume from.")

        fallback_language = (session.patient.home_language if session.patient else None) or self.default_language
        tabs = []
        for index, record in enumerate(records, start=1):
            fields = MedicationFields(
                name=record.name,
                dosage=record.dosage,
                frequency=record.frequency,
                interval=record.interval or "",
                time_of_day=record.time_of_day or "",
                precautions=list(record.precautions),
            )
            tabs.append(MedicationTab(
                id=index,
                name=fields.display_name() or f"Medication {index}",
                is_active=index == 1,
                fields=fields,
                display=InstructionDisplay(
                    english=record.english_instructions,
                    translated=record.translated_instructions or TRANSLATED_PLACEHOLDER,
                    selected_language=record.target_language or fallback_language,
                ),
                status=instruction_status(fields),
            ))

        for key in [key for key in self._controllers if key[0] == session_id]:
            del self._controllers[key]
        session.tabs = tabs
        session.next_tab_id = len(tabs) + 1
        self.save_session(session)
        return session

    def export_records(self, session_id: str) -> List[MedicationRecord]:
        """Medication records for every tab whose instructions were generated."""
        session = self.load_session(session_id)
        patient_id = session.patient.id if session.patient else None
        records = []
        for tab in session.tabs:
            if tab.status != InstructionStatus.GENERATED:
                continue
            translated = tab.display.translated
            records.append(MedicationRecord(
                patient_id=patient_id,
                name=tab.fields.name,
                dosage=tab.fields.dosage,
                frequency=tab.fields.frequency,
                interval=tab.fields.interval or None,
                time_of_day=tab.fields.time_of_day or None,
                precautions=list(tab.fields.precautions),
                english_instructions=tab.display.english,
                translated_instructions="" if translated in PLACEHOLDER_TEXTS else translated,
                target_language=tab.display.selected_language,
            ))
        return records

    # Output

    async def send_instructions(self, session_id: str, tab_id: int, template_name: Optional[str] = None,
                                language_code: Optional[str] = None) -> Dict[str, Any]:
        session = self.load_session(session_id)
        tab = session.get_tab(tab_id)
        if not session.patient or not session.patient.cell_number:
            raise ValueError("The active patient has no cell number to send instructions to.")

        to = session.patient.cell_number
        if template_name:
            return await self.dispatcher.send_template(to, template_name, language_code or "en")

        translated = tab.display.translated
        if translated in PLACEHOLDER_TEXTS or tab.display.translation_error:
            body = tab.display.english
        else:
            body = f"{translated}\n\n{tab.display.english}"
        if not body:
            raise ValueError(f"Medication tab {tab_id} has no instructions to send.")
        return await self.dispatcher.send_text(to, body)

    def render_session(self, session_id: str) -> str:
        session = self.load_session(session_id)
        return self.renderer.render_html(session)
