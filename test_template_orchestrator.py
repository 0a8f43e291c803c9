import re
import threading
import time
from unittest.mock import MagicMock

import pytest

from conftest import make_png
from image_synthesis import GeneratedImage
from pipeline_errors import DownloadFailed, GenerationFailed, InvalidArgument, UploadFailed
from template_catalog import default_catalog
from template_orchestrator import TemplateOrchestrator, estimate_cost
from template_schema import ColorPalette, FontPairing, GenerationConfig


PALETTE = ColorPalette(name="Classic Gold", colors=("#D4AF37", "#1C1917", "#FAFAF9"))
FONTS = FontPairing(heading="Playfair Display", body="Source Serif Pro")


@pytest.fixture
def synthesis():
    client = MagicMock()
    client.generate_image.return_value = GeneratedImage(url="https://images.example.com/generated.png")
    return client


@pytest.fixture
def fetch():
    return MagicMock(return_value=make_png(64, 64))


@pytest.fixture
def sleep():
    return MagicMock()


@pytest.fixture
def orchestrator(storage, synthesis, fetch, sleep, small_catalog, rng):
    return TemplateOrchestrator(
        storage,
        synthesis=synthesis,
        catalog=small_catalog,
        rng=rng,
        clock=lambda: 1700000000.0,
        sleep=sleep,
        fetch=fetch,
    )


def test_placeholder_path_never_calls_synthesis(orchestrator, synthesis, fetch, storage):
    result = orchestrator.generate_single_template(
        "wedding", "ceremony", "minimalist", PALETTE, FONTS, use_ai_synthesis=False
    )

    assert result.success
    synthesis.generate_image.assert_not_called()
    fetch.assert_not_called()
    assert sorted(storage.objects) == [
        f"templates/wedding/ceremony/{result.template_id}_full.png",
        f"templates/wedding/ceremony/{result.template_id}_thumb.png",
    ]


def test_ai_path_uploads_both_renditions(orchestrator, synthesis, fetch, storage):
    result = orchestrator.generate_single_template("wedding", "reception", "vintage", PALETTE, FONTS)

    assert result.success
    assert result.error is None
    assert result.full_size_url.endswith(f"{result.template_id}_full.png")
    assert result.thumbnail_url.endswith(f"{result.template_id}_thumb.png")
    assert result.metadata.colors == PALETTE.colors
    assert result.metadata.fonts == ("Playfair Display", "Source Serif Pro")

    kwargs = synthesis.generate_image.call_args.kwargs
    assert kwargs["size"] == "1024x1024"
    assert kwargs["quality"] == "high"
    assert "Primary #D4AF37" in kwargs["prompt"]
    fetch.assert_called_once_with("https://images.example.com/generated.png")
    assert storage.objects[f"templates/wedding/reception/{result.template_id}_full.png"][1] == "image/png"


@pytest.mark.parametrize("stage, error, expected", [
    ("synthesis", GenerationFailed("No image generated"), "Synthesis failed: No image generated"),
    ("fetch", DownloadFailed("Failed to download image: 404 Not Found", status_code=404), "Download failed: Failed to download image: 404"),
    ("storage", UploadFailed("S3 upload failed", key="k"), "Upload failed: S3 upload failed"),
])
def test_stage_failures_become_failed_results(orchestrator, synthesis, fetch, storage, stage, error, expected):
    if stage == "synthesis":
        synthesis.generate_image.side_effect = error
    elif stage == "fetch":
        fetch.side_effect = error
    else:
        storage.put = MagicMock(side_effect=error)

    result = orchestrator.generate_single_template("wedding", "ceremony", "vintage", PALETTE, FONTS)

    assert not result.success
    assert result.error.startswith(expected)
    assert result.full_size_url is None and result.thumbnail_url is None


def test_undecodable_download_fails_at_post_processing(orchestrator, fetch):
    fetch.return_value = b"not an image"
    result = orchestrator.generate_single_template("wedding", "ceremony", "vintage", PALETTE, FONTS)
    assert result.error.startswith("Post-processing failed")


def test_template_ids_are_unique_per_attempt(orchestrator):
    ids = {orchestrator.build_template_id("wedding", "save-the-date", "art-deco") for _ in range(50)}
    assert len(ids) == 50
    for template_id in ids:
        assert re.fullmatch(r"tmpl_wedding_save_the_date_art_deco_[a-z0-9]+_[a-z0-9]+", template_id)


def test_category_batch_continues_past_failures(orchestrator, synthesis):
    ok = GeneratedImage(url="https://images.example.com/ok.png")
    synthesis.generate_image.side_effect = [ok, GenerationFailed("No image generated"), ok, ok]
    config = GenerationConfig(styles_per_category=2, batch_size=10)

    results = orchestrator.generate_category_templates("wedding", config)

    assert len(results) == 4
    assert [r.success for r in results] == [True, False, True, True]
    assert results[1].error == "Synthesis failed: No image generated"


def test_category_batch_iterates_subcategory_then_style(orchestrator):
    config = GenerationConfig(styles_per_category=3, use_ai_synthesis=False)
    results = orchestrator.generate_category_templates("wedding", config)

    slots = [(r.metadata.subcategory, r.metadata.style) for r in results]
    assert slots == [
        ("ceremony", "minimalist"), ("ceremony", "vintage"), ("ceremony", "elegant"),
        ("reception", "minimalist"), ("reception", "vintage"), ("reception", "elegant"),
    ]


def test_batches_are_throttled_only_with_ai(orchestrator, sleep):
    config = GenerationConfig(styles_per_category=3, batch_size=2, delay_between_batches=2.0)
    orchestrator.generate_category_templates("wedding", config)
    assert [c.args[0] for c in sleep.call_args_list] == [2.0, 2.0, 2.0]

    sleep.reset_mock()
    orchestrator.generate_category_templates("wedding", config.model_copy(update={"use_ai_synthesis": False}))
    sleep.assert_not_called()


def test_progress_is_monotonic_within_a_category(orchestrator, synthesis):
    ok = GeneratedImage(url="https://images.example.com/ok.png")
    synthesis.generate_image.side_effect = [ok, GenerationFailed("No image generated"), ok, ok]
    snapshots = []

    orchestrator.generate_category_templates(
        "wedding", GenerationConfig(styles_per_category=2, batch_size=10), snapshots.append
    )

    assert [p.completed for p in snapshots] == [1, 2, 3, 4]
    assert [p.failed for p in snapshots] == [0, 1, 1, 1]
    assert all(p.total == 4 for p in snapshots)
    assert [len(p.results) for p in snapshots] == [1, 2, 3, 4]
    assert snapshots[-1].current_subcategory == "reception"


def test_unknown_category_fails_before_any_work(orchestrator, synthesis, storage):
    with pytest.raises(InvalidArgument):
        orchestrator.generate_category_templates("quinceanera", GenerationConfig())
    with pytest.raises(InvalidArgument):
        orchestrator.generate_all_templates(GenerationConfig(categories=["wedding", "quinceanera"]))
    synthesis.generate_image.assert_not_called()
    assert storage.objects == {}


def test_ai_run_requires_synthesis_client(storage, small_catalog):
    orchestrator = TemplateOrchestrator(storage, catalog=small_catalog)
    with pytest.raises(InvalidArgument):
        orchestrator.generate_category_templates("wedding", GenerationConfig())


def test_generate_all_reports_whole_run_progress(orchestrator):
    snapshots = []
    results = orchestrator.generate_all_templates(
        GenerationConfig(styles_per_category=2, use_ai_synthesis=False), snapshots.append
    )

    assert len(results) == 8
    assert all(p.total == 8 for p in snapshots)
    assert [p.completed for p in snapshots] == list(range(1, 9))
    assert [p.current_category for p in snapshots] == ["wedding"] * 4 + ["birthday"] * 4
    assert list(snapshots[-1].results) == results


def test_inter_category_delay_is_skipped_after_last_category(orchestrator, sleep):
    config = GenerationConfig(styles_per_category=1, batch_size=10, delay_between_categories=5.0)
    orchestrator.generate_all_templates(config)
    assert [c.args[0] for c in sleep.call_args_list] == [5.0]


def test_gradient_run_ignores_ai_flag(orchestrator, synthesis, sleep):
    results = orchestrator.generate_gradient_templates(GenerationConfig(categories=["birthday"], styles_per_category=1))
    assert len(results) == 2
    assert all(r.success for r in results)
    synthesis.generate_image.assert_not_called()
    sleep.assert_not_called()


def test_cancel_returns_partial_results(orchestrator):
    def stop_after_first(progress):
        orchestrator.cancel()

    results = orchestrator.generate_all_templates(
        GenerationConfig(styles_per_category=2, use_ai_synthesis=False), stop_after_first
    )

    assert len(results) == 1
    assert orchestrator.cancelled


def test_progress_callback_errors_propagate(orchestrator):
    def broken(progress):
        raise RuntimeError("UI went away")

    with pytest.raises(RuntimeError):
        orchestrator.generate_category_templates(
            "birthday", GenerationConfig(styles_per_category=1, use_ai_synthesis=False), broken
        )


def test_estimate_cost():
    estimate = estimate_cost(100)
    assert estimate.total_cost == 8.0
    assert estimate.estimated_seconds == 1000
    assert estimate.estimated_wall_clock == "0h 16m"
    assert estimate_cost(0).total_cost == 0
    with pytest.raises(InvalidArgument):
        estimate_cost(-1)


def test_generation_plan(storage):
    orchestrator = TemplateOrchestrator(storage, catalog=default_catalog())
    plan = orchestrator.get_generation_plan(GenerationConfig(categories=["wedding"], styles_per_category=5))

    assert plan.categories == 1
    assert plan.subcategories == 10
    assert plan.total_templates == 50
    assert plan.estimated_cost.total_cost == 4.0


def test_generation_plan_caps_styles_at_catalog_size(orchestrator):
    plan = orchestrator.get_generation_plan(GenerationConfig(styles_per_category=10))
    assert plan.styles_per_subcategory == 3
    assert plan.total_templates == 12


def test_cancel_interrupts_pacing_delay(storage, synthesis, fetch, small_catalog, rng):
    orchestrator = TemplateOrchestrator(storage, synthesis=synthesis, catalog=small_catalog, rng=rng, fetch=fetch)
    config = GenerationConfig(styles_per_category=3, batch_size=1, delay_between_batches=30)
    timer = threading.Timer(0.3, orchestrator.cancel)

    started = time.monotonic()
    timer.start()
    try:
        results = orchestrator.generate_category_templates("wedding", config)
    finally:
        timer.cancel()

    assert time.monotonic() - started < 10
    assert len(results) == 1
    assert orchestrator.cancelled


def test_next_run_clears_previous_cancel(orchestrator):
    orchestrator.cancel()
    config = GenerationConfig(categories=["birthday"], styles_per_category=1, use_ai_synthesis=False)

    assert len(orchestrator.generate_all_templates(config)) == 2
    assert not orchestrator.cancelled

    orchestrator.cancel()
    assert len(orchestrator.generate_category_templates("birthday", config)) == 2


def test_whole_run_progress_counts_earlier_failures(orchestrator, synthesis):
    ok = GeneratedImage(url="https://images.example.com/ok.png")
    synthesis.generate_image.side_effect = [GenerationFailed("No image generated"), ok, ok, ok]
    snapshots = []

    orchestrator.generate_all_templates(
        GenerationConfig(styles_per_category=1, batch_size=10), snapshots.append
    )

    assert [p.failed for p in snapshots] == [1, 1, 1, 1]
    assert [p.current_category for p in snapshots] == ["wedding", "wedding", "birthday", "birthday"]


def test_progress_snapshots_are_independent(orchestrator):
    snapshots = []
    orchestrator.generate_category_templates(
        "birthday", GenerationConfig(styles_per_category=1, use_ai_synthesis=False), snapshots.append
    )

    assert isinstance(snapshots[0].results, tuple)
    assert len(snapshots[0].results) == 1
    assert snapshots[1].results[0] == snapshots[0].results[0]
