"""
Deterministic template generator.

Expands the catalog into template metadata records without any network
calls. Ids are a pure function of (category, subcategory, style, index), so
re-running the expansion yields the same ids and catalogs can be diffed.
Colours, fonts, premium flag and popularity come from the injected random
source.
"""

import logging
import math
import random
import re
from datetime import date
from typing import List, Optional

from template_catalog import TemplateCatalog, default_catalog
from template_schema import GeneratedTemplate, TemplateStats


logger = logging.getLogger(__name__)

PREMIUM_THRESHOLD = 0.7  # ~30% premium
POPULARITY_MIN = 60
POPULARITY_MAX = 99


def generate_template_id(category: str, subcategory: str, style: str, index: int) -> str:
    return re.sub(r"\s+", "-", f"{category}-{subcategory}-{style}-{index}".lower())


def format_subcategory(subcategory: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in subcategory.split("-"))


def generate_template_name(
    subcategory: str,
    style: str,
    catalog: TemplateCatalog,
    rng: random.Random
) -> str:
    return f"{rng.choice(catalog.names_for(style))} {format_subcategory(subcategory)}"


def generate_tags(category: str, subcategory: str, style: str, catalog: TemplateCatalog) -> List[str]:
    """Searchable tags: the slot itself plus style vocabulary"""
    return [category, subcategory, style, "invitation", "digital", *catalog.tags_for(style)]


def generate_templates_for_category(
    category_key: str,
    count: int,
    catalog: Optional[TemplateCatalog] = None,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None
) -> List[GeneratedTemplate]:
    """
    Generate up to `count` templates spread evenly over the category's subcategories.

    Each subcategory gets ceil(count / len(subcategories)) slots; styles cycle
    in catalog order; emission stops at exactly `count`.

    Returns:
        Templates in catalog order, or an empty list for an unknown category
    """
    catalog = catalog or default_catalog()
    rng = rng or random.Random()
    created = (today or date.today()).isoformat()

    if not catalog.has_category(category_key):
        logger.warning(f"[CATALOG] Unknown category '{category_key}', nothing generated")
        return []
    if count <= 0:
        return []

    category = catalog.get_category(category_key)
    styles = catalog.styles
    per_subcategory = math.ceil(count / len(category.subcategories))
    templates: List[GeneratedTemplate] = []

    for subcategory in category.subcategories:
        for i in range(per_subcategory):
            if len(templates) >= count:
                break
            style = styles[i % len(styles)]
            palette = rng.choice(catalog.palettes)
            fonts = rng.choice(catalog.font_pairings)

            templates.append(GeneratedTemplate(
                id=generate_template_id(category_key, subcategory, style, i),
                name=generate_template_name(subcategory, style, catalog, rng),
                category=category_key,
                subcategory=subcategory,
                style=style,
                thumbnail_path=f"/templates/{category_key}/{subcategory}-{style}-{i}.jpg",
                premium=rng.random() > PREMIUM_THRESHOLD,
                colors=palette.colors,
                fonts=(fonts.heading, fonts.body),
                popularity=rng.randint(POPULARITY_MIN, POPULARITY_MAX),
                created_date=created,
                description=(
                    f"Beautiful {style} {category.display_name.lower()} invitation template "
                    f"perfect for {subcategory.replace('-', ' ')} events."
                ),
                tags=tuple(generate_tags(category_key, subcategory, style, catalog)),
                layout=catalog.layout_for(style),
            ))

    return templates


def generate_all_templates(
    catalog: Optional[TemplateCatalog] = None,
    rng: Optional[random.Random] = None,
    today: Optional[date] = None
) -> List[GeneratedTemplate]:
    """Every category at its configured target count"""
    catalog = catalog or default_catalog()
    rng = rng or random.Random()
    all_templates: List[GeneratedTemplate] = []

    for category in catalog.categories:
        all_templates.extend(
            generate_templates_for_category(category.key, category.target_count, catalog, rng, today)
        )

    logger.info(f"[CATALOG] Generated {len(all_templates)} templates across {len(catalog.categories)} categories")
    return all_templates


def get_template_stats(templates: List[GeneratedTemplate]) -> TemplateStats:
    by_category = {}
    by_style = {}
    premium_count = 0

    for template in templates:
        by_category[template.category] = by_category.get(template.category, 0) + 1
        by_style[template.style] = by_style.get(template.style, 0) + 1
        if template.premium:
            premium_count += 1

    return TemplateStats(
        total=len(templates),
        premium=premium_count,
        free=len(templates) - premium_count,
        by_category=by_category,
        by_style=by_style,
    )
