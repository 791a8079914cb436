"""
Recipe features built on the knowledge index.

Components:
    - assistant: Grounded prompts for recommendations, chat and Q&A
    - inventory: Inventory rendering with expiry markers
    - models: Inventory, preference and recipe schemas
    - prompts: Prompt templates
"""

from snacksage.recipes.assistant import RecipeAssistant, parse_recipes
from snacksage.recipes.models import InventoryItem, Quantity, Recipe, UserPreferences

__all__ = [
    "InventoryItem",
    "Quantity",
    "Recipe",
    "RecipeAssistant",
    "UserPreferences",
    "parse_recipes",
]
