"""
Gemini image generation for cover backgrounds.

``CoverGenerator.generate`` is the only boundary to the image model: it
returns raw image bytes or raises ``GenerationError``.  Every failure of the
underlying client (network, quota, refused prompt, text-only answer) is
converted to that one exception type here.
"""

import base64
import logging
import os
import re

from google import genai
from google.genai import types as genai_types

from cover_crop_tool.config import (
    API_KEY_ENV_VARS, MODEL_ENV_VAR,
    GENERATION_MODEL_DEFAULT, GENERATION_ASPECT_RATIO, GENERATION_TIMEOUT_MS,
)
from cover_crop_tool.errors import GenerationError
from cover_crop_tool.image_io import ReferenceImage

logger = logging.getLogger(__name__)

_CJK_RE = re.compile(r"[\u4e00-\u9fa5]")

_COVER_PROMPT = """Create a high-quality WeChat Official Account cover image (2.35:1 ratio).

Subject: {subject}

Layout Requirements:
1. IMPORTANT: The image will be cropped to a very wide aspect ratio (2.35:1) for the article header.
2. IMPORTANT: Ensure the main subject is centered and vertically compact so it is visible in the wide crop.
3. Ensure there are interesting details on the sides, but keep the focal point central.
4. Style: Professional, commercial, high-resolution.
5. NO TEXT: Do NOT generate any text, letters, or characters inside the image itself unless the user explicitly requested 'signage', 'logo' or 'typography' in the prompt. The user will add a clean text overlay separately.
"""

NO_IMAGE_MESSAGE = "The model generated text instead of an image. Please try refining your prompt."


def build_prompt(subject: str) -> str:
    """Wrap the user's subject in cover-layout instructions."""
    prompt = _COVER_PROMPT.format(subject=subject.strip())
    if _CJK_RE.search(subject):
        prompt += "\n\nNote: The user prompt contains Chinese."
    return prompt


def _api_key_from_env() -> str:
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name, "").strip()
        if value:
            return value
    return ""


class CoverGenerator:
    """
    Thin wrapper around the google-genai client.

    Environment Variables:
        GEMINI_API_KEY / API_KEY: API key (first non-empty wins)
        COVER_TOOL_MODEL: model name override
    """

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self._api_key = api_key if api_key is not None else _api_key_from_env()
        self.model = model or os.getenv(MODEL_ENV_VAR, "").strip() or GENERATION_MODEL_DEFAULT
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self._api_key:
                raise GenerationError(
                    f"No API key configured. Set {' or '.join(API_KEY_ENV_VARS)}."
                )
            self._client = genai.Client(
                api_key=self._api_key,
                http_options={"timeout": GENERATION_TIMEOUT_MS},
            )
        return self._client

    def _build_contents(self, prompt: str, reference: ReferenceImage | None) -> list:
        parts = []
        if reference is not None:
            parts.append(genai_types.Part.from_bytes(data=reference.data, mime_type=reference.mime_type))
        parts.append(genai_types.Part.from_text(text=build_prompt(prompt)))
        return parts

    def generate(self, prompt: str, reference: ReferenceImage | None = None) -> bytes:
        """Generate one image; returns its bytes or raises GenerationError."""
        client = self._get_client()
        logger.info(
            "Generating cover with %s (reference: %s)",
            self.model, reference.mime_type if reference else "none",
        )
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=self._build_contents(prompt, reference),
                config=genai_types.GenerateContentConfig(
                    response_modalities=["IMAGE", "TEXT"],
                    image_config=genai_types.ImageConfig(aspect_ratio=GENERATION_ASPECT_RATIO),
                ),
            )
        except Exception as exc:
            logger.error("Generation call failed: %s", exc)
            raise GenerationError(str(exc) or "Failed to generate image.") from exc

        data = _first_image(response)
        if not data:
            logger.warning("Generation returned no image part")
            raise GenerationError(NO_IMAGE_MESSAGE)
        logger.info("Generation returned %d bytes", len(data))
        return data


def _first_image(response) -> bytes | None:
    """Return the first inline image payload in a response, if any."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline and inline.data:
                data = inline.data
                if isinstance(data, str):
                    data = base64.b64decode(data)
                return data
    return None
