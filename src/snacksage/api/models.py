"""
Pydantic models for API request and response schemas.

These models provide automatic validation and OpenAPI documentation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from snacksage.recipes.models import InventoryItem, Recipe, UserPreferences


class ContextRequest(BaseModel):
    """Request schema for the /knowledge/context endpoint."""

    query: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Text to find grounding context for",
        examples=["How should fresh herbs be stored?"],
    )
    top_k: int = Field(
        default=3,
        ge=0,
        le=50,
        description="Maximum number of chunks to return",
    )


class ContextChunk(BaseModel):
    """A retrieved chunk with its similarity score."""

    chunk_id: int = Field(description="Chunk sequence number")
    text: str = Field(description="Chunk text")
    similarity: float = Field(description="Cosine similarity to the query")


class ContextResponse(BaseModel):
    """Response schema for the /knowledge/context endpoint."""

    results: list[ContextChunk] = Field(default_factory=list)
    formatted: str = Field(description="Results rendered as a prompt context block")


class AskRequest(BaseModel):
    """Request schema for the /knowledge/ask endpoint."""

    question: str = Field(..., min_length=3, max_length=1000)


class AskResponse(BaseModel):
    """Response schema for the /knowledge/ask endpoint."""

    answer: str
    grounded: bool = Field(description="Whether the answer was built from retrieved context")


class RecommendationRequest(BaseModel):
    """Request schema for the /recipes/recommendations endpoint."""

    inventory: list[InventoryItem] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class RecipeRecommendation(Recipe):
    """A recipe annotated with the ingredients the user does not have."""

    missing_ingredients: list[str] = Field(default_factory=list)


class RecommendationResponse(BaseModel):
    """Response schema for the /recipes/recommendations endpoint."""

    recommendations: list[RecipeRecommendation] = Field(default_factory=list)
    total_inventory_items: int


class ChatRequest(BaseModel):
    """Request schema for the /recipes/chat endpoint."""

    message: str = Field(..., min_length=1, max_length=2000)
    recipe_name: Optional[str] = None
    available_ingredients: list[str] = Field(default_factory=list)
    conversation_history: Optional[str] = None


class ChatResponse(BaseModel):
    """Response schema for the /recipes/chat endpoint."""

    reply: str = Field(description="Markdown reply from the assistant")


class HealthResponse(BaseModel):
    """Response schema for the /health endpoint."""

    status: str = Field(
        description="Health status",
        examples=["healthy", "degraded"],
    )
    version: str = Field(
        description="API version",
    )
    index_state: str = Field(
        description="Knowledge index lifecycle state",
        examples=["uninitialized", "initializing", "ready", "failed"],
    )
    index_ready: bool = Field(
        description="Whether grounding context is available",
    )
    chunks_indexed: int = Field(
        description="Number of chunks in the knowledge index",
    )


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    error: str = Field(
        description="Error code",
        examples=["index_not_ready", "embedding_error", "generation_error"],
    )
    message: str = Field(
        description="Human-readable error message",
    )
