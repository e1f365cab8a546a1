import dataclasses
from typing import Any, Dict, List, Mapping, Optional

from cooksmart_utils.ingredients.models import RecipeIngredientItem


@dataclasses.dataclass
class Recipe:
    """Dataclass for holding a recipe from any source."""

    id: str
    title: str
    ingredients: List[RecipeIngredientItem] = dataclasses.field(default_factory=list)
    instructions: List[str] = dataclasses.field(default_factory=list)
    tags: List[str] = dataclasses.field(default_factory=list)
    image: str = ""
    ready_in_minutes: int = 30
    servings: int = 4
    calories: int = 0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    match_score: Optional[int] = None  # stored/web search only
    confidence_score: Optional[int] = None  # AI path only
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Recipe":
        """Rebuild a Recipe written by ``to_dict``."""
        fields = {f.name for f in dataclasses.fields(cls)}
        values = {k: v for k, v in data.items() if k in fields}
        values["ingredients"] = [
            RecipeIngredientItem(**item) for item in data.get("ingredients") or []
        ]
        values["instructions"] = list(data.get("instructions") or [])
        values["tags"] = list(data.get("tags") or [])
        return cls(**values)

    @property
    def ingredient_names(self) -> List[str]:
        return [item.name for item in self.ingredients]
