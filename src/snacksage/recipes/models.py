"""
Pydantic models for pantry inventory, user preferences and generated recipes.

Recipes are parsed from model output, which uses camelCase keys
(``mainIngredients``, ``cookingTime``); both spellings are accepted.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Quantity(CamelModel):
    """Amount of an inventory item."""

    amount: float = Field(default=1, ge=0)
    unit: str = Field(default="")


class InventoryItem(CamelModel):
    """A pantry item that has not been used yet."""

    name: str = Field(min_length=1, description="Item name", examples=["Spinach"])
    category: str = Field(default="other", description="Inventory category", examples=["vegetables"])
    quantity: Quantity = Field(default_factory=Quantity)
    expiration_date: Optional[date] = Field(default=None, description="Best-before date")


class UserPreferences(CamelModel):
    """Dietary and cooking preferences used in recommendation prompts."""

    diet: Optional[str] = None
    health_goals: list[str] = Field(default_factory=list)
    cuisine_preferences: list[str] = Field(default_factory=list)
    skill_level: str = "intermediate"
    household_size: int = Field(default=2, ge=1)


class Recipe(CamelModel):
    """A recipe recommendation returned by the model."""

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    main_ingredients: list[str] = Field(min_length=1)
    cooking_time: str = Field(min_length=1)
    difficulty: str = Field(min_length=1)
    cuisine: str = Field(min_length=1)
    health_score: Optional[float] = None
    servings: Optional[int] = None

    def ingredients_missing_from(self, available: list[str]) -> list[str]:
        """Main ingredients not present in the available inventory."""
        have = {name.strip().lower() for name in available}
        return [i for i in self.main_ingredients if i.strip().lower() not in have]
