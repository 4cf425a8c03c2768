import os
import logging
from typing import Any, Dict, Optional
import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://graph.facebook.com/v22.0"


class InstructionDispatcher:
    """Sends medication instructions to a patient over the WhatsApp Cloud API."""

    def __init__(self, token: Optional[str] = None, phone_number_id: Optional[str] = None,
                 api_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.token = token or os.getenv("WHATSAPP_TOKEN")
        self.phone_number_id = phone_number_id or os.getenv("WHATSAPP_PHONE_NUMBER_ID")
        self.api_url = (api_url or os.getenv("WHATSAPP_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.token and self.phone_number_id)

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.configured:
            raise RuntimeError("WhatsApp messaging is not configured (WHATSAPP_TOKEN / WHATSAPP_PHONE_NUMBER_ID)")

        url = f"{self.api_url}/{self.phone_number_id}/messages"
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(transport=self.transport, timeout=30.0) as client:
            response = await client.post(url, json=payload, headers=headers)
        response.raise_for_status()
        logger.info(f"Sent WhatsApp {payload['type']} message to {payload['to'][-4:].rjust(len(payload['to']), '*')}")
        return response.json()

    async def send_template(self, to: str, template_name: str, language_code: str) -> Dict[str, Any]:
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": language_code},
            },
        }
        return await self._post(payload)

    async def send_text(self, to: str, body: str) -> Dict[str, Any]:
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": body},
        }
        return await self._post(payload)
