"""Gemini adapter — implements LLMPort via google-generativeai."""

from datetime import datetime
from typing import Optional

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory

from stage_agent.config import CONFIG

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
}


class LLMConfigurationError(RuntimeError):
    """Raised when Gemini is called without an API key."""


class GeminiAdapter:
    """Single request/response text completion. Implements LLMPort protocol."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key if api_key is not None else CONFIG["gemini_api_key"]
        self.model = model or CONFIG["gemini_model"]
        self._configured = False

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _ensure_configured(self):
        if not self.api_key:
            raise LLMConfigurationError("GEMINI_API_KEY is not configured")
        if not self._configured:
            genai.configure(api_key=self.api_key)
            self._configured = True

    async def execute(
        self,
        message: str,
        system_prompt: Optional[str] = None,
        session_id: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str:
        # Each call is stateless; the conversation lives in AdvisorSession.
        _ = session_id
        self._ensure_configured()

        generation = CONFIG["generation"]
        client = genai.GenerativeModel(
            model or self.model,
            system_instruction=system_prompt or None,
            safety_settings=SAFETY_SETTINGS,
            generation_config=genai.GenerationConfig(
                temperature=generation["temperature"],
                top_k=generation["top_k"],
                top_p=generation["top_p"],
                max_output_tokens=generation["max_output_tokens"],
            ),
        )

        print(f"[{datetime.now().isoformat()}] Executing with Gemini ({model or self.model})")
        response = await client.generate_content_async(message)
        text = (response.text or "").strip()
        if not text:
            raise Exception("Gemini returned empty response")
        print(f"[{datetime.now().isoformat()}] Completed")
        return text
