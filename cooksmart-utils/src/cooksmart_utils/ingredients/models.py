import dataclasses
from typing import Optional


@dataclasses.dataclass
class Ingredient:
    """A pantry item the user owns."""

    name: str
    category: str = ""
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    serving_size: float = 100.0
    serving_unit: str = "g"
    count: int = 1
    common_names: str = ""
    id: Optional[str] = None
    added_at: Optional[str] = None  # ISO timestamp


@dataclasses.dataclass
class RecipeIngredientItem:
    name: str
    amount: float = 0.0
    unit: str = ""
    in_pantry: bool = False  # derived, recomputed on every search
