import re
from typing import Dict, Any, List, Optional, Literal, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


HEX_COLOR_PATTERN = r'^#[0-9A-Fa-f]{6}$'


class CatalogCategory(BaseModel):
    """One event category of the template catalog"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    subcategories: Tuple[str, ...]
    target_count: int = Field(..., ge=1)

    @model_validator(mode='after')
    def validate_counts(self):
        """Every subcategory must receive at least one template"""
        if not self.subcategories:
            raise ValueError(f"Category '{self.key}' must have at least one subcategory")
        if self.target_count < len(self.subcategories):
            raise ValueError(
                f"Category '{self.key}' target_count ({self.target_count}) is smaller than "
                f"its subcategory count ({len(self.subcategories)})"
            )
        return self


class ColorPalette(BaseModel):
    """Ordered colour triple: primary, secondary, accent"""
    model_config = ConfigDict(frozen=True)

    name: str
    colors: Tuple[str, str, str]

    @field_validator('colors')
    @classmethod
    def validate_colors(cls, v):
        for color in v:
            if not re.match(HEX_COLOR_PATTERN, color):
                raise ValueError(f"Invalid hex colour: {color}")
        return v

    @property
    def primary(self) -> str:
        return self.colors[0]

    @property
    def secondary(self) -> str:
        return self.colors[1]

    @property
    def accent(self) -> str:
        return self.colors[2]


class FontPairing(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)


class TemplateLayout(BaseModel):
    """Layout preset derived from a design style"""
    model_config = ConfigDict(frozen=True)

    header_position: Literal['top', 'center', 'bottom']
    image_position: Literal['background', 'left', 'right', 'top', 'none']
    text_alignment: Literal['left', 'center', 'right']
    decorations: Tuple[str, ...] = ()
    spacing: Literal['compact', 'balanced', 'spacious']


class GeneratedTemplate(BaseModel):
    """Template metadata record produced by the deterministic generator"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    category: str
    subcategory: str
    style: str
    thumbnail_path: str
    premium: bool
    colors: Tuple[str, str, str]
    fonts: Tuple[str, str]
    popularity: int = Field(..., ge=60, le=100)
    created_date: str = Field(..., pattern=r'^\d{4}-\d{2}-\d{2}$')
    description: str
    tags: Tuple[str, ...]
    layout: TemplateLayout


class TemplateMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    subcategory: str
    style: str
    colors: Tuple[str, str, str]
    fonts: Tuple[str, str]


class ArtifactRecord(BaseModel):
    """Record handed to the catalog browsing layer for each stored template"""
    model_config = ConfigDict(frozen=True)

    template_id: str
    full_size_url: str
    thumbnail_url: str
    category: str
    subcategory: str
    style: str
    colors: Tuple[str, str, str]
    fonts: Tuple[str, str]


class GenerationResult(BaseModel):
    """
    Outcome of one attempted template synthesis.

    A successful result carries both URLs and metadata and no error; a failed
    result carries an error and neither URL.
    """
    model_config = ConfigDict(frozen=True)

    template_id: str = Field(..., min_length=1)
    success: bool
    full_size_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    error: Optional[str] = None
    metadata: Optional[TemplateMetadata] = None

    @model_validator(mode='after')
    def validate_outcome(self):
        if self.success:
            if not self.full_size_url or not self.thumbnail_url:
                raise ValueError("Successful result must carry both full_size_url and thumbnail_url")
            if self.metadata is None:
                raise ValueError("Successful result must carry metadata")
            if self.error is not None:
                raise ValueError("Successful result must not carry an error")
        else:
            if not self.error:
                raise ValueError("Failed result must carry an error description")
            if self.full_size_url is not None or self.thumbnail_url is not None:
                raise ValueError("Failed result must not carry URLs")
        return self

    @classmethod
    def succeeded(
        cls,
        template_id: str,
        full_size_url: str,
        thumbnail_url: str,
        metadata: TemplateMetadata
    ) -> "GenerationResult":
        return cls(
            template_id=template_id,
            success=True,
            full_size_url=full_size_url,
            thumbnail_url=thumbnail_url,
            metadata=metadata,
        )

    @classmethod
    def failed(cls, template_id: str, error: str) -> "GenerationResult":
        return cls(template_id=template_id, success=False, error=error or "Unknown error")

    def to_artifact(self) -> Optional[ArtifactRecord]:
        """Outward catalog record, or None for a failed result"""
        if not self.success:
            return None
        return ArtifactRecord(
            template_id=self.template_id,
            full_size_url=self.full_size_url,
            thumbnail_url=self.thumbnail_url,
            category=self.metadata.category,
            subcategory=self.metadata.subcategory,
            style=self.metadata.style,
            colors=self.metadata.colors,
            fonts=self.metadata.fonts,
        )


class BatchProgress(BaseModel):
    """Running tally for one generation run, rebuilt after every template"""
    model_config = ConfigDict(frozen=True)

    total: int = Field(..., ge=0)
    completed: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
    current_category: str = ""
    current_subcategory: str = ""
    results: Tuple[GenerationResult, ...] = ()


class GenerationConfig(BaseModel):
    """Knobs for a batch run. Delays are in seconds."""
    categories: Optional[List[str]] = None
    styles_per_category: int = Field(5, ge=1)
    use_ai_synthesis: bool = True
    batch_size: int = Field(5, ge=1)
    delay_between_batches: float = Field(2.0, ge=0)
    delay_between_categories: float = Field(5.0, ge=0)


class CostEstimate(BaseModel):
    """Pre-flight planning figures, not billing"""
    unit_cost: float
    estimated_seconds: int
    estimated_wall_clock: str
    total_cost: float


class GenerationPlan(BaseModel):
    categories: int
    subcategories: int
    styles_per_subcategory: int
    total_templates: int
    estimated_cost: CostEstimate


class TemplateStats(BaseModel):
    total: int
    premium: int
    free: int
    by_category: Dict[str, int]
    by_style: Dict[str, int]


def validate_generation_result(payload: Dict[str, Any]) -> bool:
    """
    Validate a generation result payload (e.g. one read back from storage).

    Args:
        payload: Result as dictionary

    Returns:
        True if valid

    Raises:
        ValueError: If validation fails
    """
    try:
        clean_payload = {k: v for k, v in payload.items() if not k.startswith('_')}
        GenerationResult(**clean_payload)
        return True
    except Exception as e:
        raise ValueError(f"Generation result validation failed: {str(e)}")
