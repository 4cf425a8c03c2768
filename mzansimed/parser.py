import re
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .constants import BULLET, DOSAGE_MARKER, STATIC_TRANSLATIONS, TIME_MARKER
from .models import InstructionSections, InstructionStructure, UserContent

# A period that closes the dosage sentence; "2.5ml" does not end it.
SENTENCE_END = re.compile(r"\.(?=\s|$)")


class LineKind(Enum):
    DOSAGE = "dosage"
    TIME_OF_DAY = "time_of_day"
    PRECAUTIONS_HEADER = "precautions_header"
    PRECAUTION = "precaution"
    MEDICATION_NAME = "medication_name"
    TEXT = "text"


class Cursor(Enum):
    """Where unrecognised lines go; each value names a UserContent slot."""
    BEFORE_MEDICATION = "before_medication"
    AFTER_MEDICATION = "after_medication"
    AFTER_DOSAGE = "after_dosage"
    AFTER_TIME_OF_DAY = "after_time_of_day"
    PRECAUTIONS = "after_precautions"


class _ScanState:
    def __init__(self):
        self.cursor = Cursor.BEFORE_MEDICATION
        self.sections = InstructionSections()
        self.slots: Dict[Cursor, List[str]] = {cursor: [] for cursor in Cursor}


def split_dosage_line(line: str) -> Tuple[str, str]:
    """Split a dosage line into the generated sentence and trailing user text."""
    match = SENTENCE_END.search(line)
    if match is None:
        return line, ""
    return line[:match.end()], line[match.end():].lstrip()


def resplit_dosage(sections: InstructionSections, generated: Iterable[str]) -> InstructionSections:
    """Re-split a parsed dosage line against sentences known to be generated.

    A dosage value such as "1 tsp. syrup" puts a sentence-ending period
    inside the generated sentence; a known sentence at the start of the line
    is taken whole and only the rest counts as trailing text.
    """
    if not sections.dosage_line:
        return sections
    line = sections.dosage_line
    if sections.dosage_trailing_text:
        line = f"{line} {sections.dosage_trailing_text}"
    for sentence in sorted({s for s in generated if s}, key=len, reverse=True):
        if line == sentence or line.startswith(sentence + " "):
            return sections.model_copy(update={
                "dosage_line": sentence,
                "dosage_trailing_text": line[len(sentence):].lstrip(),
            })
    return sections


class InstructionParser:
    """Decomposes instruction text into generated sections and user content.

    Total: any string decomposes. Lines are classified by the first matching
    predicate in `priority`; anything unmatched is user content for the slot
    under the cursor, blank lines included.
    """

    def __init__(self, header_spellings: Optional[Iterable[str]] = None):
        if header_spellings is None:
            header_spellings = STATIC_TRANSLATIONS["precautionsHeader"].values()
        self.header_spellings = {spelling.strip().lower() for spelling in header_spellings}
        self.priority: List[Tuple[LineKind, Callable[[str, _ScanState], bool]]] = [
            (LineKind.DOSAGE, self._is_dosage),
            (LineKind.TIME_OF_DAY, self._is_time_of_day),
            (LineKind.PRECAUTIONS_HEADER, self._is_precautions_header),
            (LineKind.PRECAUTION, self._is_precaution),
            (LineKind.MEDICATION_NAME, self._is_medication_name),
        ]

    def _is_dosage(self, line: str, state: _ScanState) -> bool:
        return line.startswith(DOSAGE_MARKER) and not state.sections.dosage_line

    def _is_time_of_day(self, line: str, state: _ScanState) -> bool:
        return line.startswith(TIME_MARKER) and not state.sections.time_of_day

    def _is_precautions_header(self, line: str, state: _ScanState) -> bool:
        return line.lower() in self.header_spellings and not state.sections.precautions_header

    def _is_precaution(self, line: str, state: _ScanState) -> bool:
        return state.cursor == Cursor.PRECAUTIONS and line.startswith(BULLET)

    def _is_medication_name(self, line: str, state: _ScanState) -> bool:
        return state.cursor == Cursor.BEFORE_MEDICATION and bool(line)

    def classify(self, line: str, state: _ScanState) -> LineKind:
        stripped = line.strip()
        for kind, predicate in self.priority:
            if predicate(stripped, state):
                return kind
        return LineKind.TEXT

    def parse(self, text: str) -> InstructionStructure:
        if not text:
            return InstructionStructure()

        state = _ScanState()
        for line in text.split("\n"):
            kind = self.classify(line, state)
            stripped = line.strip()

            if kind == LineKind.MEDICATION_NAME:
                state.sections.medication_name = stripped
                state.cursor = Cursor.AFTER_MEDICATION
            elif kind == LineKind.DOSAGE:
                dosage_line, trailing = split_dosage_line(stripped)
                state.sections.dosage_line = dosage_line
                state.sections.dosage_trailing_text = trailing
                state.cursor = Cursor.AFTER_DOSAGE
            elif kind == LineKind.TIME_OF_DAY:
                state.sections.time_of_day = stripped
                state.cursor = Cursor.AFTER_TIME_OF_DAY
            elif kind == LineKind.PRECAUTIONS_HEADER:
                # Drop the blank separator line written before the block
                pending = state.slots[state.cursor]
                if pending and pending[-1] == "":
                    pending.pop()
                state.sections.precautions_header = stripped
                state.cursor = Cursor.PRECAUTIONS
            elif kind == LineKind.PRECAUTION:
                state.sections.precautions_list.append(stripped)
            else:
                state.slots[state.cursor].append(line)

        user_content = UserContent(**{
            cursor.value: "".join(f"{line}\n" for line in lines)
            for cursor, lines in state.slots.items()
        })
        return InstructionStructure(sections=state.sections, user_content=user_content)
