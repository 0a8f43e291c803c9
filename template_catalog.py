"""
Static catalog data for template generation.

Categories, design styles, colour palettes, font pairings and the per-style
vocabularies are plain data. They are bundled into a TemplateCatalog once per
run and handed to the generators explicitly.
"""

from functools import lru_cache
from typing import Dict, List, Tuple
from pydantic import BaseModel, ConfigDict, model_validator

from pipeline_errors import InvalidArgument
from template_schema import CatalogCategory, ColorPalette, FontPairing, TemplateLayout


TEMPLATE_CATEGORIES: Dict[str, Dict] = {
    "wedding": {
        "name": "Wedding",
        "subcategories": [
            "ceremony", "reception", "save-the-date", "rehearsal-dinner",
            "engagement-party", "bridal-brunch", "wedding-shower", "elopement",
            "destination", "vow-renewal",
        ],
        "target_count": 120,
    },
    "birthday": {
        "name": "Birthday",
        "subcategories": [
            "kids-1-5", "kids-6-12", "teen", "sweet-16", "21st", "30th", "40th",
            "50th", "60th", "70th", "80th", "milestone", "surprise", "themed",
        ],
        "target_count": 100,
    },
    "baby_shower": {
        "name": "Baby Shower",
        "subcategories": [
            "boy", "girl", "gender-neutral", "gender-reveal", "twins",
            "sprinkle", "virtual", "co-ed", "drive-by", "safari", "woodland",
        ],
        "target_count": 80,
    },
    "bridal_shower": {
        "name": "Bridal Shower",
        "subcategories": [
            "tea-party", "brunch", "spa", "garden", "beach", "wine-tasting",
            "lingerie", "kitchen", "travel", "boho",
        ],
        "target_count": 60,
    },
    "graduation": {
        "name": "Graduation",
        "subcategories": [
            "preschool", "kindergarten", "elementary", "middle-school",
            "high-school", "college", "masters", "phd", "medical", "law",
        ],
        "target_count": 60,
    },
    "corporate": {
        "name": "Corporate",
        "subcategories": [
            "conference", "seminar", "workshop", "networking", "launch-party",
            "holiday-party", "team-building", "awards", "retirement", "anniversary",
        ],
        "target_count": 80,
    },
    "holiday": {
        "name": "Holiday",
        "subcategories": [
            "christmas", "hanukkah", "new-years", "valentines", "easter",
            "halloween", "thanksgiving", "4th-of-july", "st-patricks",
            "cinco-de-mayo", "diwali", "lunar-new-year",
        ],
        "target_count": 100,
    },
    "dinner_party": {
        "name": "Dinner Party",
        "subcategories": [
            "formal", "casual", "cocktail", "wine-dinner", "potluck",
            "murder-mystery", "game-night", "themed", "outdoor", "holiday",
        ],
        "target_count": 50,
    },
    "anniversary": {
        "name": "Anniversary",
        "subcategories": [
            "1st", "5th", "10th", "15th", "20th", "25th-silver", "30th",
            "40th", "50th-golden", "60th-diamond", "renewal",
        ],
        "target_count": 50,
    },
    "engagement": {
        "name": "Engagement",
        "subcategories": [
            "party", "announcement", "brunch", "cocktail", "casual",
            "formal", "destination", "surprise",
        ],
        "target_count": 40,
    },
    "housewarming": {
        "name": "Housewarming",
        "subcategories": [
            "modern", "traditional", "apartment", "first-home", "open-house",
            "bbq", "cocktail", "casual",
        ],
        "target_count": 40,
    },
    "retirement": {
        "name": "Retirement",
        "subcategories": [
            "corporate", "military", "teacher", "medical", "casual",
            "formal", "surprise", "travel-themed",
        ],
        "target_count": 40,
    },
    "reunion": {
        "name": "Reunion",
        "subcategories": [
            "family", "class-reunion", "military", "college", "neighborhood",
            "heritage", "destination",
        ],
        "target_count": 40,
    },
    "religious": {
        "name": "Religious",
        "subcategories": [
            "baptism", "christening", "first-communion", "confirmation",
            "bar-mitzvah", "bat-mitzvah", "quinceanera", "church-event",
        ],
        "target_count": 50,
    },
    "kids_party": {
        "name": "Kids Party",
        "subcategories": [
            "princess", "superhero", "dinosaur", "unicorn", "space",
            "sports", "pool-party", "slumber", "arts-crafts", "science",
        ],
        "target_count": 60,
    },
    "sports": {
        "name": "Sports Events",
        "subcategories": [
            "super-bowl", "world-series", "march-madness", "olympics",
            "golf-tournament", "marathon", "tailgate", "fantasy-draft",
        ],
        "target_count": 40,
    },
    "seasonal": {
        "name": "Seasonal",
        "subcategories": [
            "spring", "summer", "fall", "winter", "beach", "garden",
            "harvest", "snow",
        ],
        "target_count": 40,
    },
}

DESIGN_STYLES: List[str] = [
    "minimalist", "elegant", "modern", "vintage", "rustic",
    "bohemian", "tropical", "romantic", "playful", "luxurious",
    "whimsical", "classic", "art-deco", "watercolor", "geometric",
    "floral", "botanical", "abstract", "photo-centric", "typography-focused",
]

COLOR_PALETTES: List[Dict] = [
    {"name": "Classic Gold", "colors": ["#D4AF37", "#1C1917", "#FAFAF9"]},
    {"name": "Blush Romance", "colors": ["#FDA4AF", "#BE123C", "#FFF1F2"]},
    {"name": "Ocean Blue", "colors": ["#0891B2", "#164E63", "#ECFEFF"]},
    {"name": "Forest Green", "colors": ["#15803D", "#14532D", "#F0FDF4"]},
    {"name": "Royal Purple", "colors": ["#7C3AED", "#4C1D95", "#F5F3FF"]},
    {"name": "Sunset Orange", "colors": ["#EA580C", "#7C2D12", "#FFF7ED"]},
    {"name": "Modern Mono", "colors": ["#18181B", "#71717A", "#FFFFFF"]},
    {"name": "Sage & Cream", "colors": ["#84CC16", "#3F6212", "#F7FEE7"]},
    {"name": "Navy & Gold", "colors": ["#1E3A8A", "#D4AF37", "#EFF6FF"]},
    {"name": "Terracotta", "colors": ["#C2410C", "#78350F", "#FEF3C7"]},
    {"name": "Dusty Rose", "colors": ["#BE185D", "#9D174D", "#FCE7F3"]},
    {"name": "Teal Dreams", "colors": ["#0D9488", "#134E4A", "#F0FDFA"]},
    {"name": "Champagne", "colors": ["#A16207", "#78350F", "#FEF9C3"]},
    {"name": "Charcoal & White", "colors": ["#374151", "#111827", "#F9FAFB"]},
    {"name": "Coral Reef", "colors": ["#F97316", "#9A3412", "#FFEDD5"]},
    {"name": "Lavender Fields", "colors": ["#A855F7", "#6B21A8", "#FAF5FF"]},
    {"name": "Mint Fresh", "colors": ["#10B981", "#065F46", "#ECFDF5"]},
    {"name": "Berry Burst", "colors": ["#DB2777", "#831843", "#FDF2F8"]},
    {"name": "Earth Tones", "colors": ["#92400E", "#451A03", "#FFFBEB"]},
    {"name": "Ice Blue", "colors": ["#0EA5E9", "#0C4A6E", "#F0F9FF"]},
]

FONT_PAIRINGS: List[Dict] = [
    {"heading": "Playfair Display", "body": "Source Serif Pro"},
    {"heading": "Outfit", "body": "Inter"},
    {"heading": "Cormorant Garamond", "body": "Montserrat"},
    {"heading": "Amatic SC", "body": "Josefin Sans"},
    {"heading": "Great Vibes", "body": "Lato"},
    {"heading": "Cinzel", "body": "Fauna One"},
    {"heading": "Satisfy", "body": "Open Sans"},
    {"heading": "Pacifico", "body": "Roboto"},
    {"heading": "Dancing Script", "body": "Poppins"},
    {"heading": "Alex Brush", "body": "Raleway"},
    {"heading": "Bebas Neue", "body": "Source Sans Pro"},
    {"heading": "Abril Fatface", "body": "Nunito"},
    {"heading": "Righteous", "body": "DM Sans"},
    {"heading": "Lobster", "body": "Work Sans"},
    {"heading": "Sacramento", "body": "Merriweather"},
]

# Mood vocabulary fed into image prompts
STYLE_MOODS: Dict[str, str] = {
    "minimalist": "clean, simple, lots of white space, subtle, refined",
    "elegant": "sophisticated, graceful, luxurious, refined, high-end",
    "modern": "contemporary, fresh, sleek, trendy, geometric",
    "vintage": "retro, nostalgic, classic, antique charm, timeless",
    "rustic": "natural, earthy, farmhouse, organic, warm wood tones",
    "bohemian": "free-spirited, eclectic, artistic, natural, layered textures",
    "tropical": "vibrant, lush, exotic, paradise, palm fronds and flowers",
    "romantic": "soft, dreamy, delicate, pastel, roses and hearts",
    "playful": "fun, colorful, energetic, whimsical, party vibes",
    "luxurious": "opulent, gold accents, marble, velvet, rich textures",
    "whimsical": "magical, fairytale, dreamy, fantastical, enchanted",
    "classic": "traditional, timeless, formal, distinguished, heritage",
    "art-deco": "geometric, gold, 1920s glamour, gatsby, bold lines",
    "watercolor": "soft washes, painted, artistic, flowing, delicate",
    "geometric": "bold shapes, angular, modern patterns, structured",
    "floral": "flowers, blooms, garden, botanical, romantic petals",
    "botanical": "green leaves, nature, organic, plants, garden fresh",
    "abstract": "artistic, creative, expressive, unique patterns",
    "photo-centric": "photo frame style, memories, snapshot aesthetic",
    "typography-focused": "text-forward, minimalist, font-focused, editorial",
}

EVENT_ELEMENTS: Dict[str, str] = {
    "wedding": "rings, flowers, doves, hearts, elegant script",
    "birthday": "balloons, confetti, cake, candles, celebration",
    "baby_shower": "baby items, stork, soft pastels, rattles, clouds",
    "bridal_shower": "flowers, champagne, dress silhouette, hearts",
    "graduation": "cap and gown, diploma, stars, academic elements",
    "corporate": "professional, clean lines, geometric, modern",
    "holiday": "seasonal decorations, festive elements, traditional motifs",
    "dinner_party": "elegant table setting, wine glasses, candles",
    "anniversary": "intertwined hearts, roses, gold accents, rings",
    "engagement": "diamond ring, champagne, hearts, romantic florals",
    "housewarming": "house silhouette, keys, plants, home elements",
    "retirement": "celebration, gold watch, flowers, achievement",
    "reunion": "group silhouette, memories, nostalgic elements",
    "religious": "appropriate religious symbols, elegant, reverent",
    "kids_party": "fun characters, bright colors, toys, games",
    "sports": "sports equipment, action lines, team colors",
    "seasonal": "nature elements matching the season",
}


def _layout(header, image, align, decorations, spacing) -> Dict:
    return {
        "header_position": header,
        "image_position": image,
        "text_alignment": align,
        "decorations": decorations,
        "spacing": spacing,
    }


STYLE_LAYOUTS: Dict[str, Dict] = {
    "minimalist": _layout("center", "none", "center", ["thin-line"], "spacious"),
    "elegant": _layout("center", "background", "center", ["ornament", "border"], "balanced"),
    "modern": _layout("top", "left", "left", ["geometric-accent"], "compact"),
    "vintage": _layout("center", "background", "center", ["frame", "flourish", "border"], "balanced"),
    "rustic": _layout("center", "background", "center", ["wood-texture", "string-lights"], "balanced"),
    "bohemian": _layout("center", "background", "center", ["feathers", "dreamcatcher", "macrame"], "spacious"),
    "tropical": _layout("top", "background", "center", ["palm-leaves", "flowers", "pineapple"], "balanced"),
    "romantic": _layout("center", "background", "center", ["hearts", "roses", "ribbons"], "spacious"),
    "playful": _layout("top", "right", "left", ["confetti", "balloons", "stars"], "compact"),
    "luxurious": _layout("center", "background", "center", ["gold-foil", "marble", "ornate-border"], "spacious"),
    "whimsical": _layout("top", "background", "center", ["stars", "clouds", "sparkles"], "spacious"),
    "classic": _layout("center", "none", "center", ["border", "monogram"], "balanced"),
    "art-deco": _layout("center", "background", "center", ["fan-motif", "gold-lines", "geometric-frame"], "balanced"),
    "watercolor": _layout("center", "background", "center", ["paint-wash", "splatter"], "spacious"),
    "geometric": _layout("top", "right", "left", ["polygons", "grid-lines"], "compact"),
    "floral": _layout("bottom", "top", "center", ["floral-wreath", "petals"], "balanced"),
    "botanical": _layout("center", "background", "center", ["leaf-sprig", "greenery-border"], "balanced"),
    "abstract": _layout("bottom", "background", "left", ["brush-strokes", "color-blocks"], "balanced"),
    "photo-centric": _layout("bottom", "top", "center", ["photo-frame"], "compact"),
    "typography-focused": _layout("center", "none", "left", ["rule-line"], "spacious"),
}

STYLE_NAMES: Dict[str, List[str]] = {
    "minimalist": ["Clean", "Pure", "Simple", "Essential", "Refined"],
    "elegant": ["Elegant", "Graceful", "Sophisticated", "Polished", "Exquisite"],
    "modern": ["Modern", "Contemporary", "Fresh", "Current", "Sleek"],
    "vintage": ["Vintage", "Retro", "Classic", "Timeless", "Nostalgic"],
    "rustic": ["Rustic", "Country", "Farmhouse", "Natural", "Earthy"],
    "bohemian": ["Boho", "Free Spirit", "Wanderlust", "Eclectic", "Gypsy"],
    "tropical": ["Tropical", "Paradise", "Island", "Palm", "Coastal"],
    "romantic": ["Romance", "Dreamy", "Enchanted", "Lovely", "Blissful"],
    "playful": ["Playful", "Fun", "Cheerful", "Joyful", "Lively"],
    "luxurious": ["Luxe", "Opulent", "Grand", "Royal", "Prestige"],
    "whimsical": ["Whimsy", "Magical", "Fantasy", "Fairytale", "Wonder"],
    "classic": ["Classic", "Traditional", "Heritage", "Timeless", "Enduring"],
    "art-deco": ["Gatsby", "Deco", "Gilded", "Roaring", "Glamour"],
    "watercolor": ["Watercolor", "Painted", "Artistic", "Brushed", "Wash"],
    "geometric": ["Geo", "Angular", "Linear", "Structured", "Bold"],
    "floral": ["Bloom", "Garden", "Petal", "Blossom", "Flora"],
    "botanical": ["Botanical", "Greenery", "Leafy", "Organic", "Nature"],
    "abstract": ["Abstract", "Artistic", "Creative", "Expression", "Dynamic"],
    "photo-centric": ["Photo", "Memory", "Snapshot", "Portrait", "Gallery"],
    "typography-focused": ["Type", "Script", "Letter", "Word", "Text"],
}

STYLE_TAGS: Dict[str, List[str]] = {
    "minimalist": ["clean", "simple", "modern", "minimal"],
    "elegant": ["sophisticated", "formal", "classy", "refined"],
    "modern": ["contemporary", "trendy", "fresh", "sleek"],
    "vintage": ["retro", "classic", "antique", "old-fashioned"],
    "rustic": ["country", "natural", "barn", "outdoor"],
    "bohemian": ["boho", "hippie", "free-spirit", "eclectic"],
    "tropical": ["beach", "summer", "island", "palm"],
    "romantic": ["love", "sweet", "soft", "dreamy"],
    "playful": ["fun", "colorful", "kids", "cheerful"],
    "luxurious": ["luxury", "premium", "high-end", "opulent"],
    "whimsical": ["magical", "fairytale", "dreamy", "enchanted"],
    "classic": ["traditional", "timeless", "formal", "heritage"],
    "art-deco": ["gatsby", "1920s", "glamour", "gold"],
    "watercolor": ["painted", "artistic", "soft", "hand-painted"],
    "geometric": ["shapes", "angular", "bold", "pattern"],
    "floral": ["flowers", "blooms", "garden", "petals"],
    "botanical": ["greenery", "leaves", "nature", "organic"],
    "abstract": ["artistic", "creative", "expressive", "unique"],
    "photo-centric": ["photo", "picture", "memories", "snapshot"],
    "typography-focused": ["typography", "lettering", "editorial", "text"],
}

DEFAULT_STYLE = "elegant"
DEFAULT_STYLE_NAMES = ["Beautiful"]
DEFAULT_EVENT_ELEMENTS = "elegant decorations"


class TemplateCatalog(BaseModel):
    """Immutable bundle of every table the generators read from"""
    model_config = ConfigDict(frozen=True)

    categories: Tuple[CatalogCategory, ...]
    styles: Tuple[str, ...]
    palettes: Tuple[ColorPalette, ...]
    font_pairings: Tuple[FontPairing, ...]
    style_moods: Dict[str, str]
    event_elements: Dict[str, str]
    style_layouts: Dict[str, TemplateLayout]
    style_names: Dict[str, Tuple[str, ...]]
    style_tags: Dict[str, Tuple[str, ...]]

    @model_validator(mode='after')
    def validate_tables(self):
        keys = [category.key for category in self.categories]
        if len(keys) != len(set(keys)):
            raise ValueError("Category keys must be unique")
        if not self.styles or not self.palettes or not self.font_pairings:
            raise ValueError("Catalog needs at least one style, palette and font pairing")
        # the fallback style must itself resolve
        if DEFAULT_STYLE not in self.style_layouts or DEFAULT_STYLE not in self.style_moods:
            raise ValueError(f"Catalog must define the '{DEFAULT_STYLE}' fallback style")
        return self

    @property
    def category_keys(self) -> List[str]:
        return [category.key for category in self.categories]

    def get_category(self, key: str) -> CatalogCategory:
        for category in self.categories:
            if category.key == key:
                return category
        raise InvalidArgument(f"Unknown category: {key}")

    def has_category(self, key: str) -> bool:
        return key in self.category_keys

    def mood_for(self, style: str) -> str:
        return self.style_moods.get(style) or self.style_moods[DEFAULT_STYLE]

    def layout_for(self, style: str) -> TemplateLayout:
        return self.style_layouts.get(style) or self.style_layouts[DEFAULT_STYLE]

    def names_for(self, style: str) -> Tuple[str, ...]:
        return self.style_names.get(style) or tuple(DEFAULT_STYLE_NAMES)

    def tags_for(self, style: str) -> Tuple[str, ...]:
        return self.style_tags.get(style, ())

    def elements_for(self, category_key: str) -> str:
        return self.event_elements.get(category_key, DEFAULT_EVENT_ELEMENTS)


def build_catalog(
    categories: Dict[str, Dict] = TEMPLATE_CATEGORIES,
    styles: List[str] = DESIGN_STYLES,
    palettes: List[Dict] = COLOR_PALETTES,
    font_pairings: List[Dict] = FONT_PAIRINGS,
) -> TemplateCatalog:
    """
    Build a validated TemplateCatalog from plain tables.

    Raises:
        pydantic.ValidationError: If any table entry is malformed
    """
    return TemplateCatalog(
        categories=tuple(
            CatalogCategory(
                key=key,
                display_name=info["name"],
                subcategories=tuple(info["subcategories"]),
                target_count=info["target_count"],
            )
            for key, info in categories.items()
        ),
        styles=tuple(styles),
        palettes=tuple(ColorPalette(name=p["name"], colors=tuple(p["colors"])) for p in palettes),
        font_pairings=tuple(FontPairing(**f) for f in font_pairings),
        style_moods=dict(STYLE_MOODS),
        event_elements=dict(EVENT_ELEMENTS),
        style_layouts={style: TemplateLayout(**layout) for style, layout in STYLE_LAYOUTS.items()},
        style_names={style: tuple(names) for style, names in STYLE_NAMES.items()},
        style_tags={style: tuple(tags) for style, tags in STYLE_TAGS.items()},
    )


@lru_cache(maxsize=1)
def default_catalog() -> TemplateCatalog:
    """The built-in catalog, validated once per process"""
    return build_catalog()
