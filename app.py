from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Body
from fastapi.responses import HTMLResponse
from mzansimed.models import (
    ActivePatient,
    BatchTranslateRequest,
    FieldUpdateRequest,
    InstructionEditRequest,
    ResumeRequest,
    SendInstructionsRequest,
    SessionCreateRequest,
    TabNotFoundError,
    TranslateRequest,
    normalize_field_name,
)
from mzansimed.manager import SessionManager
from mzansimed.vocabulary import LookupUnavailable
import httpx
import logging
import os
import uvicorn
from typing import Any, Dict, List
from dotenv import load_dotenv

from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("mzansimed")

manager = SessionManager()


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await manager.vocabulary.preload()
    except LookupUnavailable as e:
        logger.error(f"Vocabulary preload failed, translations will degrade: {e}")
    yield


app = FastAPI(title="MzansiMed Instructions", lifespan=lifespan)

# Portals are served from other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check for load balancers."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "vocabularyReady": manager.vocabulary.ready,
    }

# Vocabulary


@app.get("/translations/options")
async def get_all_translation_options():
    """Every vocabulary category plus the static words."""
    return {"success": True, "data": manager.vocabulary.all_options()}


@app.get("/translations/{category}/options")
async def get_translation_options(category: str):
    try:
        return {"success": True, "data": manager.vocabulary.options(category)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.post("/translations/translate")
async def translate_text(req: TranslateRequest):
    try:
        translated = await manager.vocabulary.translate(req.text, req.type, req.target_language)
        return {
            "success": True,
            "data": {
                "originalText": req.text,
                "translatedText": translated,
                "targetLanguage": req.target_language,
            },
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.post("/translations/translate/batch")
async def translate_batch(req: BatchTranslateRequest):
    items = [item.model_dump() for item in req.translations]
    results = await manager.vocabulary.translate_batch(items, req.target_language)
    return {"success": True, "data": results}


@app.post("/translations/cache/clear")
async def clear_translation_cache():
    manager.vocabulary.clear_cache()
    return {"success": True, "message": "Translation cache cleared"}

# Medication catalog


@app.get("/medication-options")
async def get_medication_options():
    try:
        medications = manager.catalog.all()
        return {"success": True, "data": medications, "total": len(medications)}
    except LookupUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/medication-options/search")
async def search_medication_options(q: str = "", limit: int = 50):
    try:
        names = manager.catalog.suggest(q, limit=limit)
        return {"success": True, "data": names, "total": len(names)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

# Sessions and tabs


@app.get("/sessions")
async def get_sessions():
    """List all medication sessions."""
    return manager.list_sessions()


@app.post("/sessions")
async def create_session(req: SessionCreateRequest):
    """Start a medication-entry session."""
    try:
        return manager.create_session(req.patient)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    try:
        return manager.load_session(session_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@app.put("/sessions/{session_id}/patient")
async def set_patient(session_id: str, patient: ActivePatient):
    """Set the active patient and re-translate generated instructions."""
    try:
        manager.set_patient(session_id, patient)
        return await manager.refresh_translations(session_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@app.post("/sessions/{session_id}/resume")
async def resume_session(session_id: str, req: ResumeRequest):
    """Load previously saved medications into the session's tabs."""
    try:
        return manager.resume_from_records(session_id, req.records)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/sessions/{session_id}/records")
async def export_records(session_id: str):
    try:
        return manager.export_records(session_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@app.post("/sessions/{session_id}/tabs")
async def add_tab(session_id: str):
    try:
        return manager.add_tab(session_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@app.post("/sessions/{session_id}/tabs/{tab_id}/activate")
async def activate_tab(session_id: str, tab_id: int):
    try:
        return manager.switch_tab(session_id, tab_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.delete("/sessions/{session_id}/tabs/{tab_id}")
async def delete_tab(session_id: str, tab_id: int):
    try:
        return manager.delete_tab(session_id, tab_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.put("/sessions/{session_id}/tabs/{tab_id}/fields/{field}")
async def update_field(session_id: str, tab_id: int, field: str, req: FieldUpdateRequest):
    """Structured field edit; regenerates the instructions when possible."""
    try:
        return await manager.update_field(session_id, tab_id, normalize_field_name(field), req.value)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.patch("/sessions/{session_id}/tabs/{tab_id}/fields")
async def patch_fields(session_id: str, tab_id: int, operations: List[Dict[str, Any]] = Body(...)):
    """JSON Patch over the tab's fields."""
    try:
        return await manager.patch_fields(session_id, tab_id, operations)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/sessions/{session_id}/tabs/{tab_id}/expand/{field}")
async def expand_field(session_id: str, tab_id: int, field: str):
    try:
        return await manager.expand_abbreviation(session_id, tab_id, normalize_field_name(field))
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.put("/sessions/{session_id}/tabs/{tab_id}/instructions/{kind}")
async def edit_instructions(session_id: str, tab_id: int, kind: str, req: InstructionEditRequest):
    """Direct edit of the English or translated instructions."""
    try:
        return manager.edit_instructions(session_id, tab_id, kind, req.text)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/sessions/{session_id}/tabs/{tab_id}/structure")
async def get_structure(session_id: str, tab_id: int):
    """The retained section/user-content view of the English instructions."""
    try:
        return manager.get_structure(session_id, tab_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/sessions/{session_id}/tabs/{tab_id}/send")
async def send_instructions(session_id: str, tab_id: int, req: SendInstructionsRequest):
    """Send a tab's instructions to the patient over WhatsApp."""
    try:
        result = await manager.send_instructions(session_id, tab_id, req.template_name, req.language_code)
        return {"success": True, "data": result}
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except TabNotFoundError:
        raise HTTPException(status_code=404, detail="Medication tab not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except httpx.HTTPError as e:
        raise HTTPException(status_code=502, detail=f"WhatsApp API error: {e}")


@app.get("/view/{session_id}", response_class=HTMLResponse)
async def view_session(session_id: str):
    """Review page with every tab's English and translated instructions."""
    try:
        return manager.render_session(session_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
