import base64
import logging
import time
from typing import Callable, List, Optional, Sequence
from pydantic import BaseModel, Field
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception
from google import genai
from google.genai import types

from pipeline_errors import GenerationFailed, InvalidArgument
from prompt_composer import (
    compose_background_prompt,
    compose_decoration_prompt,
    compose_illustration_prompt,
)


logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
FAST_IMAGE_MODEL = "imagen-4.0-fast-generate-001"

# Supported output sizes and the aspect ratio Imagen renders them at
SIZE_ASPECT_RATIOS = {
    "1024x1024": "1:1",
    "1792x1024": "16:9",
    "1024x1792": "9:16",
}
QUALITIES = ("standard", "high")
STYLE_HINTS = {
    "natural": "Render with natural, true-to-life color and soft, even lighting.",
    "vivid": "Render with vivid, saturated color and dramatic lighting.",
}


class GeneratedImage(BaseModel):
    url: str
    revised_prompt: Optional[str] = None
    mime_type: str = "image/png"


class ImageRequest(BaseModel):
    prompt: str
    size: str = "1024x1024"
    quality: str = "high"
    style_hint: str = "natural"
    n: int = Field(1, ge=1)


def is_rate_limit_error(exception: BaseException) -> bool:
    """Check if the exception is a rate limit or quota violation error."""
    error_msg = str(exception)
    return (
        "429" in error_msg
        or "RATELIMIT_EXCEEDED" in error_msg
        or "RESOURCE_EXHAUSTED" in error_msg
        or "quota" in error_msg.lower()
        or "rate limit" in error_msg.lower()
        or getattr(exception, 'status', None) == 429
        or getattr(exception, 'code', None) == 429
    )


def to_data_url(image_bytes: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class ImageSynthesisClient:
    """
    Text-to-image client backed by Imagen through the google-genai SDK.

    Imagen returns image bytes inline; they are surfaced as data: URLs so the
    download stage treats every synthesized image the same way.
    """

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        model: str = DEFAULT_IMAGE_MODEL,
        fast_model: str = FAST_IMAGE_MODEL,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        if client is None:
            http_options = {'api_version': '', 'base_url': base_url} if base_url else None
            client = genai.Client(api_key=api_key, http_options=http_options)
        self.client = client
        self.model = model
        self.fast_model = fast_model

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=2, max=64),
        retry=retry_if_exception(is_rate_limit_error),
        reraise=True
    )
    def _request_images(self, model: str, prompt: str, aspect_ratio: str, n: int):
        return self.client.models.generate_images(
            model=model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=n,
                aspect_ratio=aspect_ratio,
                include_rai_reason=True,
            )
        )

    def generate_image(
        self,
        prompt: str,
        size: str = "1024x1024",
        quality: str = "high",
        style_hint: str = "natural",
        n: int = 1
    ) -> GeneratedImage:
        """
        Generate one image for a prompt.

        Args:
            prompt: Text prompt
            size: One of SIZE_ASPECT_RATIOS
            quality: "standard" (fast model) or "high"
            style_hint: "natural" or "vivid"
            n: Number of candidates to request; the first is returned

        Returns:
            GeneratedImage with a data: URL and the service-enhanced prompt if any

        Raises:
            InvalidArgument: On unsupported parameters
            GenerationFailed: If the service returned no usable image
        """
        if not prompt or not prompt.strip():
            raise InvalidArgument("prompt must not be empty")
        if size not in SIZE_ASPECT_RATIOS:
            raise InvalidArgument(f"Unsupported size '{size}'. Expected one of: {', '.join(SIZE_ASPECT_RATIOS)}")
        if quality not in QUALITIES:
            raise InvalidArgument(f"Unsupported quality '{quality}'. Expected one of: {', '.join(QUALITIES)}")
        if style_hint not in STYLE_HINTS:
            raise InvalidArgument(f"Unsupported style hint '{style_hint}'. Expected one of: {', '.join(STYLE_HINTS)}")
        if n < 1:
            raise InvalidArgument("n must be at least 1")

        model = self.model if quality == "high" else self.fast_model
        full_prompt = f"{prompt}\n\n{STYLE_HINTS[style_hint]}"

        logger.info(f"[IMAGE GENERATION] Calling {model} ({size}, {quality}, {style_hint})...")
        response = self._request_images(model, full_prompt, SIZE_ASPECT_RATIOS[size], n)

        generated = getattr(response, 'generated_images', None) or []
        if not generated:
            raise GenerationFailed("No image generated by the synthesis service")

        first = generated[0]
        image = getattr(first, 'image', None)
        image_bytes = getattr(image, 'image_bytes', None) if image else None
        if not image_bytes:
            reason = getattr(first, 'rai_filtered_reason', None)
            detail = f" (filtered: {reason})" if reason else ""
            raise GenerationFailed(f"Synthesis service returned an empty image{detail}")

        mime_type = getattr(image, 'mime_type', None) or "image/png"
        logger.info(f"[IMAGE GENERATION] Received {len(image_bytes)} bytes ({mime_type})")

        return GeneratedImage(
            url=to_data_url(image_bytes, mime_type),
            revised_prompt=getattr(first, 'enhanced_prompt', None),
            mime_type=mime_type,
        )

    def batch_generate(
        self,
        requests: Sequence[ImageRequest],
        delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep
    ) -> List[GeneratedImage]:
        """
        Generate images one after another, pausing between calls for rate limits.

        A failing request is logged and skipped; only successes are returned.
        """
        results: List[GeneratedImage] = []

        for i, request in enumerate(requests):
            if i > 0 and delay > 0:
                sleep(delay)
            try:
                results.append(self.generate_image(
                    prompt=request.prompt,
                    size=request.size,
                    quality=request.quality,
                    style_hint=request.style_hint,
                    n=request.n,
                ))
            except Exception as e:
                logger.error(f"[IMAGE GENERATION] Request {i + 1}/{len(requests)} failed: {type(e).__name__}: {e}")

        logger.info(f"[IMAGE GENERATION] Batch finished: {len(results)}/{len(requests)} succeeded")
        return results

    def generate_background(
        self,
        event_type: str,
        style: str,
        colors: Sequence[str],
        mood: str
    ) -> GeneratedImage:
        return self.generate_image(compose_background_prompt(event_type, style, colors, mood))

    def generate_decoration(self, kind: str, style: str, color: str) -> GeneratedImage:
        """Decorations are small accents, so the fast model is good enough"""
        return self.generate_image(compose_decoration_prompt(kind, style, color), quality="standard")

    def generate_illustration(self, theme: str, style: str, elements: Sequence[str]) -> GeneratedImage:
        return self.generate_image(compose_illustration_prompt(theme, style, elements))

    def batch_generate_backgrounds(
        self,
        backgrounds: Sequence[dict],
        delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep
    ) -> List[GeneratedImage]:
        """
        Args:
            backgrounds: Dicts with event_type, style, colors and mood
        """
        requests = [
            ImageRequest(prompt=compose_background_prompt(
                b["event_type"], b["style"], b["colors"], b["mood"]
            ))
            for b in backgrounds
        ]
        return self.batch_generate(requests, delay=delay, sleep=sleep)
