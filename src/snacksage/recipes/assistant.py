"""
Recipe assistant: grounds recipe prompts in the knowledge index.

Retrieval is an enhancement, not a dependency. When the index is not ready,
or a query fails, the prompt is sent without a knowledge block and the user
still gets an answer.
"""

import json
import logging
import re
from typing import Optional, Sequence

from pydantic import ValidationError

from snacksage.errors import EmbeddingError, GenerationError, NotInitializedError
from snacksage.llm import LLMProtocol, create_llm
from snacksage.recipes.inventory import format_inventory_for_prompt, group_by_category
from snacksage.recipes.models import InventoryItem, Recipe, UserPreferences
from snacksage.recipes.prompts import (
    CHAT_PROMPT,
    KNOWLEDGE_PROMPT,
    RECOMMENDATION_PROMPT,
    knowledge_block,
)
from snacksage.retrieval.formatter import format_context_for_prompt
from snacksage.retrieval.index import KnowledgeIndex

logger = logging.getLogger(__name__)

KNOWLEDGE_UNAVAILABLE = "Knowledge base is not available at the moment."

RECOMMENDATION_TOP_K = 2
CHAT_TOP_K = 3
KNOWLEDGE_TOP_K = 3

CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)


def parse_recipes(text: str) -> list[Recipe]:
    """
    Parse a model reply into validated recipes.

    Markdown code fences are stripped. Entries missing a required field are
    dropped; a reply that is not a JSON array yields an empty list.
    """
    cleaned = text.strip()
    match = CODE_FENCE_PATTERN.match(cleaned)
    if match:
        cleaned = match.group(1).strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Could not parse recipe JSON: {e}")
        return []

    if not isinstance(data, list):
        logger.warning(f"Expected a JSON array of recipes, got {type(data).__name__}")
        return []

    recipes: list[Recipe] = []
    for entry in data:
        try:
            recipes.append(Recipe.model_validate(entry))
        except ValidationError as e:
            logger.debug(f"Dropping invalid recipe entry: {e.error_count()} errors")
    return recipes


class RecipeAssistant:
    """
    Builds grounded prompts for recommendations, recipe chat and knowledge Q&A.

    Example:
        >>> assistant = RecipeAssistant(index)
        >>> recipes = assistant.recommend_recipes(inventory, preferences)
    """

    def __init__(self, index: KnowledgeIndex, llm: Optional[LLMProtocol] = None) -> None:
        self.index = index
        self.llm = llm or create_llm()

    def retrieve_context(self, query: str, top_k: int) -> str:
        """
        Formatted grounding context for a query, or "" if unavailable.

        Never raises for retrieval problems; they are logged and the caller
        proceeds without grounding.
        """
        if not self.index.is_ready():
            logger.debug("Knowledge index not ready, skipping retrieval")
            return ""

        try:
            results = self.index.get_context(query, top_k)
        except (NotInitializedError, EmbeddingError) as e:
            logger.warning(f"Retrieval failed, proceeding without context: {e}")
            return ""

        return format_context_for_prompt(results)

    def recommend_recipes(
        self,
        inventory: Sequence[InventoryItem],
        preferences: Optional[UserPreferences] = None,
    ) -> list[Recipe]:
        """
        Suggest five recipes that use the current inventory.

        Returns:
            Validated recipes; empty if generation or parsing fails
        """
        preferences = preferences or UserPreferences()
        categories = ", ".join(group_by_category(inventory))
        query = (
            f"recipe recommendations for {categories} "
            f"with preferences {preferences.model_dump_json(by_alias=True)}"
        )
        context = self.retrieve_context(query, RECOMMENDATION_TOP_K)

        prompt = RECOMMENDATION_PROMPT.format(
            knowledge=knowledge_block("KNOWLEDGE BASE CONTEXT", context),
            inventory=format_inventory_for_prompt(inventory),
            diet=preferences.diet or "No specific diet",
            health_goals=", ".join(preferences.health_goals) or "General health",
            cuisine_preferences=", ".join(preferences.cuisine_preferences) or "Any cuisine",
            skill_level=preferences.skill_level,
            household_size=preferences.household_size,
        )

        try:
            reply = self.llm.invoke(prompt)
        except GenerationError as e:
            logger.error(f"Error generating recipe recommendations: {e}")
            return []

        recipes = parse_recipes(reply)
        logger.info(f"Generated {len(recipes)} recipe recommendations")
        return recipes

    def chat(
        self,
        message: str,
        current_recipe: Optional[str] = None,
        available_ingredients: Sequence[str] = (),
        conversation_history: Optional[str] = None,
    ) -> str:
        """
        Reply to a message in a recipe conversation.

        Raises:
            GenerationError: If the model call fails
        """
        context = self.retrieve_context(message, CHAT_TOP_K)

        context_lines = []
        if current_recipe:
            context_lines.append(f"- Working on: {current_recipe}")
        if available_ingredients:
            context_lines.append(f"- Available: {', '.join(available_ingredients)}")
        if conversation_history:
            context_lines.append(f"- Previous chat: {conversation_history}")

        prompt = CHAT_PROMPT.format(
            knowledge=knowledge_block("KNOWLEDGE BASE", context),
            context_lines="\n".join(context_lines) or "- None",
            message=message,
        )
        return self.llm.invoke(prompt).strip()

    def ask_knowledge(self, question: str) -> str:
        """
        Answer a question directly from the knowledge base.

        Raises:
            GenerationError: If the model call fails
        """
        if not self.index.is_ready():
            return KNOWLEDGE_UNAVAILABLE

        context = self.retrieve_context(question, KNOWLEDGE_TOP_K)
        if not context:
            return KNOWLEDGE_UNAVAILABLE

        prompt = KNOWLEDGE_PROMPT.format(context=context, question=question)
        return self.llm.invoke(prompt).strip()
