"""AI recipe generation settings and user preferences."""

import dataclasses
from typing import Any, Dict, List, Optional

DEFAULT_MODEL_ID = "anthropic.claude-3-haiku-20240307-v1:0"

SKILL_LEVELS = ("beginner", "intermediate", "advanced")
NUTRITION_FOCUSES = ("balanced", "low-calorie", "high-protein", "low-carb", "none")


@dataclasses.dataclass
class AIServiceConfig:
    """Model call settings for recipe generation."""

    model_id: str = DEFAULT_MODEL_ID
    region: Optional[str] = None
    max_tokens: int = 4096
    temperature: float = 0.7  # 0.0 = deterministic, 1.0 = very creative
    default_recipe_count: int = 2


DEFAULT_AI_CONFIG = AIServiceConfig()


@dataclasses.dataclass
class RecipePreferences:
    """What the user wants from generated recipes.

    The defaults are the first-run preferences: healthy and quick recipes
    within 45 minutes at intermediate skill for four people.
    """

    dietary_restrictions: List[str] = dataclasses.field(default_factory=list)
    cooking_styles: List[str] = dataclasses.field(default_factory=lambda: ["healthy", "quick"])
    max_cooking_time: int = 45
    skill_level: str = "intermediate"
    serving_size: int = 4
    avoid_ingredients: List[str] = dataclasses.field(default_factory=list)
    preferred_cuisines: List[str] = dataclasses.field(default_factory=list)
    nutrition_focus: str = "balanced"

    def __post_init__(self):
        if self.skill_level not in SKILL_LEVELS:
            raise ValueError(f"Unknown skill level: {self.skill_level!r}")
        if self.nutrition_focus not in NUTRITION_FOCUSES:
            raise ValueError(f"Unknown nutrition focus: {self.nutrition_focus!r}")


def validate_ai_config(config: AIServiceConfig) -> Dict[str, Any]:
    """Check an AI configuration for problems.

    Returns:
        Dict with ``is_valid`` (False only for hard errors), ``warnings`` and
        ``recommendations`` lists.

    Examples:
        >>> validate_ai_config(AIServiceConfig(temperature=1.5))["is_valid"]
        False
    """
    errors: List[str] = []
    warnings: List[str] = []
    recommendations: List[str] = []

    if not config.model_id:
        warnings.append("No Bedrock model id configured")
        recommendations.append(f"Set BEDROCK_MODEL_ID, for example {DEFAULT_MODEL_ID}")

    if not 0.0 <= config.temperature <= 1.0:
        errors.append("Temperature should be between 0.0 and 1.0")

    if config.max_tokens > 4096:
        warnings.append("Very high token limit may cause slow responses")

    if config.default_recipe_count < 1:
        errors.append("Default recipe count should be at least 1")

    if not config.region:
        recommendations.append("Set AWS_REGION to pin the Bedrock endpoint")

    return {
        "is_valid": not errors,
        "warnings": errors + warnings,
        "recommendations": recommendations,
    }
