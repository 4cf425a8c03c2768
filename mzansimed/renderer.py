from pathlib import Path
from typing import List, Optional
from jinja2 import Environment, FileSystemLoader, select_autoescape
from .models import InstructionStructure, MedicationSession
from .constants import PLACEHOLDER_TEXTS

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"


def _slot_lines(text: str) -> List[str]:
    if not text:
        return []
    if text.endswith("\n"):
        text = text[:-1]
    return text.split("\n")


class InstructionRenderer:
    """Turns instruction structures back into text and renders the review page."""

    def __init__(self, template_dir: Optional[str] = None):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def reassemble(self, structure: InstructionStructure) -> str:
        """Join sections and user content in their fixed order.

        A blank line always separates the precautions block from whatever
        precedes it; the parser strips that line again.
        """
        sections = structure.sections
        user = structure.user_content
        lines: List[str] = []

        lines.extend(_slot_lines(user.before_medication))
        if sections.medication_name:
            lines.append(sections.medication_name)
        lines.extend(_slot_lines(user.after_medication))

        if sections.dosage_line:
            trailing = f" {sections.dosage_trailing_text}" if sections.dosage_trailing_text else ""
            lines.append(sections.dosage_line + trailing)
        elif sections.dosage_trailing_text:
            lines.append(sections.dosage_trailing_text)
        lines.extend(_slot_lines(user.after_dosage))

        if sections.time_of_day:
            lines.append(sections.time_of_day)
        lines.extend(_slot_lines(user.after_time_of_day))

        if sections.precautions_header or sections.precautions_list:
            if lines:
                lines.append("")
            if sections.precautions_header:
                lines.append(sections.precautions_header)
            lines.extend(sections.precautions_list)
        lines.extend(_slot_lines(user.after_precautions))

        return "\n".join(lines)

    def render_html(self, session: MedicationSession) -> str:
        """Render every tab of a session for a final check before saving."""
        medications = []
        for tab in session.tabs:
            translated = tab.display.translated
            medications.append({
                "id": tab.id,
                "name": tab.name,
                "status": tab.status.value,
                "language": tab.display.selected_language,
                "english": tab.display.english,
                "translated": "" if translated in PLACEHOLDER_TEXTS else translated,
                "error": tab.display.translation_error,
                "active": tab.is_active,
            })

        template = self.env.get_template("check_instructions.html")
        return template.render(
            session=session,
            patient=session.patient,
            medications=medications,
        )
