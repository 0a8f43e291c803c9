"""
Template generation orchestrator.

Coordinates the AI template generation pipeline:
1. Composes an invitation prompt for a (category, subcategory, style) slot
2. Synthesizes artwork with the image model
3. Downloads, normalizes to print size and derives a thumbnail
4. Uploads both renditions to object storage

Each template either succeeds or comes back as a failed result; a single
failure never aborts the surrounding batch.
"""

import itertools
import logging
import random
import re
import threading
import time
from enum import Enum
from typing import Callable, List, Optional

from image_processor import derive_thumbnail, fetch_bytes, process_downloaded, render_gradient_placeholder
from image_synthesis import ImageSynthesisClient
from object_storage import template_object_key
from pipeline_errors import GenerationFailed, InvalidArgument
from prompt_composer import compose_invitation_prompt
from template_catalog import TemplateCatalog, default_catalog
from template_schema import (
    BatchProgress,
    ColorPalette,
    CostEstimate,
    FontPairing,
    GenerationConfig,
    GenerationPlan,
    GenerationResult,
    TemplateMetadata,
)


logger = logging.getLogger(__name__)

# Planning figures per synthesized image
UNIT_COST = 0.08
SECONDS_PER_IMAGE = 10

ProgressCallback = Callable[[BatchProgress], None]


class TemplateStage(Enum):
    PENDING = "Pending"
    PROMPT_COMPOSED = "Prompt composition"
    SYNTHESIZING = "Synthesis"
    DOWNLOADING = "Download"
    POST_PROCESSING = "Post-processing"
    UPLOADING = "Upload"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    encoded = ""
    while value:
        value, remainder = divmod(value, 36)
        encoded = digits[remainder] + encoded
    return encoded


def estimate_cost(
    template_count: int,
    unit_cost: float = UNIT_COST,
    seconds_per_image: int = SECONDS_PER_IMAGE
) -> CostEstimate:
    """
    Rough cost and wall-clock figures for an AI-backed run.

    For planning only; actual billing comes from the provider.
    """
    if template_count < 0:
        raise InvalidArgument("template_count must not be negative")

    total_seconds = template_count * seconds_per_image
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    total_cost = round(template_count * unit_cost, 2)

    return CostEstimate(
        unit_cost=unit_cost,
        estimated_seconds=total_seconds,
        estimated_wall_clock=f"{hours}h {minutes}m",
        total_cost=total_cost,
    )


class TemplateOrchestrator:
    """
    Drives template generation runs.

    One orchestrator run owns its results and progress; callers must not run
    two batches that could regenerate the same template id concurrently.
    """

    def __init__(
        self,
        storage,
        synthesis: Optional[ImageSynthesisClient] = None,
        catalog: Optional[TemplateCatalog] = None,
        rng: Optional[random.Random] = None,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.time,
        sleep: Optional[Callable[[float], None]] = None,
        fetch: Callable[[str], bytes] = fetch_bytes,
    ):
        self.storage = storage
        self.synthesis = synthesis
        self.catalog = catalog or default_catalog()
        self.rng = rng or random.Random()
        self.cancel_event = cancel_event or threading.Event()
        self.clock = clock
        self.fetch = fetch
        self._sleep = sleep or self._wait
        self._sequence = itertools.count()

    def _wait(self, seconds: float) -> None:
        # Event.wait returns early once cancel() is called
        if seconds > 0:
            self.cancel_event.wait(seconds)

    def cancel(self) -> None:
        """
        Stop the current run at the next iteration boundary.

        The flag is cleared when the next run starts, so cancelling only
        affects a run that is already in progress.
        """
        self.cancel_event.set()

    def reset(self) -> None:
        """Clear a previous cancel()"""
        self.cancel_event.clear()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def build_template_id(self, category: str, subcategory: str, style: str) -> str:
        """
        Unique id per attempt: the slot plus a process-wide sequence number and
        a millisecond timestamp, so retries of the same slot never collide.
        """
        sequence = _base36(next(self._sequence))
        stamp = _base36(int(self.clock() * 1000))
        raw = f"tmpl_{category}_{subcategory}_{style}_{sequence}_{stamp}"
        return re.sub(r"[^a-z0-9_]", "_", raw.lower())

    def generate_single_template(
        self,
        category: str,
        subcategory: str,
        style: str,
        palette: ColorPalette,
        fonts: FontPairing,
        use_ai_synthesis: bool = True
    ) -> GenerationResult:
        """
        Generate, post-process and upload one template.

        Never raises for pipeline errors; they come back as a failed result
        whose error names the stage that failed.
        """
        template_id = self.build_template_id(category, subcategory, style)
        stage = TemplateStage.PENDING

        try:
            if use_ai_synthesis:
                stage = TemplateStage.PROMPT_COMPOSED
                prompt = compose_invitation_prompt(
                    category,
                    subcategory,
                    style,
                    palette.colors,
                    self.catalog.mood_for(style),
                    self.catalog.elements_for(category),
                )

                stage = TemplateStage.SYNTHESIZING
                if self.synthesis is None:
                    raise GenerationFailed("No image synthesis client configured")
                image = self.synthesis.generate_image(
                    prompt=prompt,
                    size="1024x1024",
                    quality="high",
                    style_hint="natural",
                )

                stage = TemplateStage.DOWNLOADING
                original = self.fetch(image.url)

                stage = TemplateStage.POST_PROCESSING
                processed = process_downloaded(original)
                full_size, thumbnail = processed.full_size, processed.thumbnail
            else:
                stage = TemplateStage.POST_PROCESSING
                full_size = render_gradient_placeholder(palette.colors)
                thumbnail = derive_thumbnail(full_size)

            stage = TemplateStage.UPLOADING
            full_size_url = self.storage.put(
                template_object_key(category, subcategory, template_id, "full"), full_size, "image/png"
            )
            thumbnail_url = self.storage.put(
                template_object_key(category, subcategory, template_id, "thumb"), thumbnail, "image/png"
            )

            stage = TemplateStage.SUCCEEDED
            logger.info(f"[TEMPLATE] {template_id} stored")
            return GenerationResult.succeeded(
                template_id=template_id,
                full_size_url=full_size_url,
                thumbnail_url=thumbnail_url,
                metadata=TemplateMetadata(
                    category=category,
                    subcategory=subcategory,
                    style=style,
                    colors=palette.colors,
                    fonts=(fonts.heading, fonts.body),
                ),
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"[TEMPLATE] Failed to generate template {template_id} at {stage.value}: {type(e).__name__}: {message}")
            return GenerationResult.failed(template_id, f"{stage.value} failed: {message}")

    def generate_category_templates(
        self,
        category_key: str,
        config: Optional[GenerationConfig] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> List[GenerationResult]:
        """
        Generate every subcategory x style slot of one category, in catalog order.

        Raises:
            InvalidArgument: For an unknown category, or AI synthesis requested
                without a synthesis client
        """
        config = config or GenerationConfig()
        category = self.catalog.get_category(category_key)
        self._require_synthesis(config)
        self.reset()

        total = len(category.subcategories) * len(self.catalog.styles[:config.styles_per_category])
        return self._run_category(category_key, config, on_progress, [], total)

    def _require_synthesis(self, config: GenerationConfig) -> None:
        if config.use_ai_synthesis and self.synthesis is None:
            raise InvalidArgument("AI synthesis requested but no synthesis client is configured")

    def _run_category(
        self,
        category_key: str,
        config: GenerationConfig,
        on_progress: Optional[ProgressCallback],
        run_results: List[GenerationResult],
        total: int
    ) -> List[GenerationResult]:
        """
        Appends each result to run_results as well, so progress always
        counts against the whole run.
        """
        category = self.catalog.get_category(category_key)
        styles = self.catalog.styles[:config.styles_per_category]
        results: List[GenerationResult] = []
        failed = sum(1 for r in run_results if not r.success)

        for subcategory in category.subcategories:
            for style in styles:
                if self.cancelled:
                    logger.warning(f"[BATCH] Cancelled in {category_key} after {len(run_results)}/{total} templates")
                    return results

                palette = self.rng.choice(self.catalog.palettes)
                fonts = self.rng.choice(self.catalog.font_pairings)

                result = self.generate_single_template(
                    category_key,
                    subcategory,
                    style,
                    palette,
                    fonts,
                    config.use_ai_synthesis,
                )
                results.append(result)
                run_results.append(result)
                if not result.success:
                    failed += 1

                if on_progress:
                    on_progress(BatchProgress(
                        total=total,
                        completed=len(run_results),
                        failed=failed,
                        current_category=category_key,
                        current_subcategory=subcategory,
                        results=tuple(run_results),
                    ))

                # Only synthesis calls are rate limited
                if config.use_ai_synthesis and len(results) % config.batch_size == 0:
                    self._sleep(config.delay_between_batches)

        return results

    def _resolve_categories(self, config: GenerationConfig) -> List[str]:
        keys = list(config.categories) if config.categories is not None else self.catalog.category_keys
        for key in keys:
            self.catalog.get_category(key)
        return keys

    def generate_all_templates(
        self,
        config: Optional[GenerationConfig] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> List[GenerationResult]:
        """
        Generate every configured category in order.

        Progress is reported against whole-run totals rather than per-category ones.
        """
        config = config or GenerationConfig()
        keys = self._resolve_categories(config)
        self._require_synthesis(config)
        self.reset()

        total = self.get_generation_plan(config).total_templates
        all_results: List[GenerationResult] = []

        for index, category_key in enumerate(keys):
            if self.cancelled:
                logger.warning(f"[BATCH] Cancelled before {category_key}; {len(all_results)}/{total} templates done")
                break

            logger.info(f"[BATCH] Starting generation for category: {category_key}")
            self._run_category(category_key, config, on_progress, all_results, total)

            if config.use_ai_synthesis and index < len(keys) - 1:
                self._sleep(config.delay_between_categories)

        failed = sum(1 for r in all_results if not r.success)
        logger.info(f"[BATCH] Finished: {len(all_results) - failed} succeeded, {failed} failed")
        return all_results

    def generate_gradient_templates(
        self,
        config: Optional[GenerationConfig] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> List[GenerationResult]:
        """Placeholder-only run: no synthesis cost, no throttling"""
        config = (config or GenerationConfig()).model_copy(update={"use_ai_synthesis": False})
        return self.generate_all_templates(config, on_progress)

    def get_generation_plan(self, config: Optional[GenerationConfig] = None) -> GenerationPlan:
        config = config or GenerationConfig()
        keys = self._resolve_categories(config)
        styles_per_subcategory = min(config.styles_per_category, len(self.catalog.styles))
        subcategories = sum(len(self.catalog.get_category(key).subcategories) for key in keys)
        total_templates = subcategories * styles_per_subcategory

        return GenerationPlan(
            categories=len(keys),
            subcategories=subcategories,
            styles_per_subcategory=styles_per_subcategory,
            total_templates=total_templates,
            estimated_cost=estimate_cost(total_templates),
        )
