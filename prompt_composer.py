from typing import List, Optional, Sequence

from pipeline_errors import InvalidArgument


NO_TEXT_CONSTRAINT = "NO actual text, letters, numbers, or words in the image"

DECORATION_KINDS = ("border", "corner", "flourish", "divider", "frame")

DECORATION_TEMPLATES = {
    "border": (
        "Elegant {style} decorative border frame, {color} colored, ornate design, "
        "transparent background suitable for overlaying on invitations, no text, isolated element"
    ),
    "corner": (
        "Beautiful {style} corner decoration, {color} colored, elegant flourish, "
        "transparent background, no text, isolated decorative element for invitation corners"
    ),
    "flourish": (
        "Delicate {style} flourish ornament, {color} colored, swirl design, "
        "transparent background, no text, isolated decorative element"
    ),
    "divider": (
        "Elegant {style} text divider line, {color} colored, decorative separator, "
        "transparent background, no text, isolated horizontal ornament"
    ),
    "frame": (
        "Complete {style} decorative frame, {color} colored, elegant border all around, "
        "transparent center for text, no text, isolated element, invitation quality"
    ),
}


def _humanize(slug: str) -> str:
    return slug.replace("-", " ").replace("_", " ")


def _require(value: str, field: str) -> str:
    if not value or not value.strip():
        raise InvalidArgument(f"{field} must not be empty")
    return value


def _palette_roles(colors: Sequence[str]) -> List[str]:
    if colors is None or len(colors) != 3:
        raise InvalidArgument(
            f"Expected exactly 3 colors (primary, secondary, accent), got {0 if colors is None else len(colors)}"
        )
    return [_require(color, "color") for color in colors]


def compose_invitation_prompt(
    event_type: str,
    subcategory: str,
    style: str,
    colors: Sequence[str],
    mood: str,
    elements: Optional[str] = None
) -> str:
    """
    Build the text-to-image prompt for a complete invitation background.

    Args:
        event_type: Category key, e.g. "wedding"
        subcategory: Subcategory slug, e.g. "save-the-date"
        style: Design style key
        colors: Palette as (primary, secondary, accent)
        mood: Mood vocabulary for the style
        elements: Event-specific motifs; defaults to generic decorations

    Returns:
        Prompt string

    Raises:
        InvalidArgument: If an input is empty or the palette is not a triple
    """
    _require(event_type, "event_type")
    _require(subcategory, "subcategory")
    _require(style, "style")
    _require(mood, "mood")
    primary, secondary, accent = _palette_roles(colors)
    motifs = elements or "elegant decorations"

    return f"""Create a beautiful, professional invitation design for a {_humanize(subcategory)} {_humanize(event_type)} event.

Style: {style} ({mood})
Color scheme: Primary {primary}, Secondary {secondary}, Accent {accent}
Design elements: {motifs}

Requirements:
- Square format (1:1 aspect ratio)
- Clear central area for text (leave space in the middle for event details)
- Decorative elements around the edges and corners only
- Professional print quality design
- {NO_TEXT_CONSTRAINT}
- The design should frame where text would go
- Elegant borders or decorative frames
- High resolution, suitable for 300 DPI printing
- The overall feeling should be {mood}

This is a template background - text will be added separately by the user."""


def compose_background_prompt(
    event_type: str,
    style: str,
    colors: Sequence[str],
    mood: str
) -> str:
    """Lighter-weight background prompt without event motifs"""
    _require(event_type, "event_type")
    _require(style, "style")
    primary, secondary, accent = _palette_roles(colors)

    return f"""Create a beautiful invitation background for a {_humanize(event_type)} event in {style} style.
Color palette: primary {primary}, secondary {secondary}, accent {accent}.
Mood: {mood}.
Requirements:
- Square format (1:1 ratio)
- Leave clear central space for text overlay
- Subtle, elegant design that doesn't overpower text
- High resolution, print quality (300 DPI aesthetic)
- {NO_TEXT_CONSTRAINT}
- Decorative elements around edges only
- Professional invitation quality"""


def compose_decoration_prompt(kind: str, style: str, color: str) -> str:
    """
    Build a prompt for a standalone decorative element.

    Raises:
        InvalidArgument: If kind is not one of DECORATION_KINDS
    """
    if kind not in DECORATION_TEMPLATES:
        raise InvalidArgument(
            f"Unknown decoration kind '{kind}'. Expected one of: {', '.join(DECORATION_KINDS)}"
        )
    _require(style, "style")
    _require(color, "color")
    return DECORATION_TEMPLATES[kind].format(style=style, color=color)


def compose_illustration_prompt(theme: str, style: str, elements: Sequence[str]) -> str:
    _require(theme, "theme")
    _require(style, "style")
    element_list = ", ".join(e for e in elements if e) or "themed motifs"

    return f"""Create a {style} style illustration for a {_humanize(theme)} themed invitation.
Include these elements: {element_list}.
Requirements:
- Clean, isolated elements
- Transparent or white background
- High quality, vector-like appearance
- {NO_TEXT_CONSTRAINT}
- Suitable for print at 300 DPI
- Elegant and professional"""
