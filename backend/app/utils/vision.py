import base64
import logging
from typing import Any, Dict, List, Sequence

from openai import AsyncOpenAI, OpenAIError

from app.exceptions import VisionAPIError
from app.models.listing import Photo

logger = logging.getLogger(__name__)


def encode_photo(photo: Photo) -> Dict[str, Any]:
    """Inline image content part for a chat completion."""
    encoded_image = base64.b64encode(photo.content).decode("utf-8")
    return {
        "type": "image_url",
        "image_url": {
            "url": f"data:{photo.mime_type};base64,{encoded_image}"
        }
    }


class VisionClient:
    """Sends a prompt plus every photo of one item to the vision model in a single request."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o",
        max_tokens: int = 2000,
        temperature: float = 0.1,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings) -> "VisionClient":
        settings.validate_for_analysis()
        return cls(
            client=AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout),
            model=settings.openai_model,
            max_tokens=settings.openai_max_tokens,
            temperature=settings.openai_temperature,
        )

    def build_messages(self, prompt: str, photos: Sequence[Photo]) -> List[Dict[str, Any]]:
        return [
            {
                "role": "user",
                "content": [{"type": "text", "text": prompt}] + [encode_photo(photo) for photo in photos]
            }
        ]

    async def describe(self, prompt: str, photos: Sequence[Photo]) -> str:
        """Return the model's raw text answer."""
        logger.info(f"Calling {self.model} with {len(photos)} photo(s), prompt length {len(prompt)}")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(prompt, photos),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise VisionAPIError(f"OpenAI API error: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise VisionAPIError("OpenAI returned an empty response")

        raw = response.choices[0].message.content
        logger.debug(f"Raw model response: {raw}")
        return raw
