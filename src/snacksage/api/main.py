"""
FastAPI application for the SnackSage recipe assistant.

Run with:
    uvicorn snacksage.api.main:app --reload

Or use the CLI:
    snacksage serve
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from snacksage import __version__
from snacksage.api.models import (
    AskRequest,
    AskResponse,
    ChatRequest,
    ChatResponse,
    ContextChunk,
    ContextRequest,
    ContextResponse,
    ErrorResponse,
    HealthResponse,
    RecipeRecommendation,
    RecommendationRequest,
    RecommendationResponse,
)
from snacksage.config import configure_logging, settings
from snacksage.errors import EmbeddingError, GenerationError, NotInitializedError
from snacksage.recipes.assistant import KNOWLEDGE_UNAVAILABLE, RecipeAssistant
from snacksage.retrieval.formatter import format_context_for_prompt
from snacksage.retrieval.index import KnowledgeIndex
from snacksage.retrieval.resources import build_in_background, create_knowledge_index
from snacksage.tracing import setup_tracing

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Configure logging and tracing
        - Start building the knowledge index in the background. Requests are
          served immediately; recipe features run ungrounded until it is ready.

    Shutdown:
        - The index lives in memory and is discarded with the process
    """
    configure_logging()
    setup_tracing()

    if app.state.build_index:
        logger.info("Starting knowledge index build...")
        build_in_background(app.state.index)
    else:
        logger.info("Knowledge index build on startup disabled")

    yield

    logger.info("Shutting down SnackSage...")


def create_app(
    index: Optional[KnowledgeIndex] = None,
    assistant: Optional[RecipeAssistant] = None,
    build_index: Optional[bool] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        index: Knowledge index (default: created from settings)
        assistant: Recipe assistant (default: wraps the index with the configured LLM)
        build_index: Build the index on startup (default: settings.build_index_on_startup)

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="SnackSage",
        description="Pantry-aware recipe assistant grounded in a food knowledge base",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.index = index or create_knowledge_index()
    app.state.assistant = assistant or RecipeAssistant(app.state.index)
    app.state.build_index = settings.build_index_on_startup if build_index is None else build_index

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


def get_index(request: Request) -> KnowledgeIndex:
    return request.app.state.index


def get_assistant(request: Request) -> RecipeAssistant:
    return request.app.state.assistant


router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(index: KnowledgeIndex = Depends(get_index)) -> HealthResponse:
    """
    Health check endpoint for liveness and readiness checks.

    The service is healthy without the index; it reports "degraded" until
    grounding context is available.
    """
    ready = index.is_ready()
    return HealthResponse(
        status="healthy" if ready else "degraded",
        version=__version__,
        index_state=index.state.value,
        index_ready=ready,
        chunks_indexed=index.size,
    )


@router.post(
    "/knowledge/context",
    response_model=ContextResponse,
    responses={
        502: {"model": ErrorResponse, "description": "Embedding provider failed"},
        503: {"model": ErrorResponse, "description": "Knowledge index not ready"},
    },
    tags=["Knowledge"],
)
async def context_endpoint(
    request: ContextRequest,
    index: KnowledgeIndex = Depends(get_index),
) -> ContextResponse:
    """Retrieve the chunks most similar to a query and the formatted context block."""
    try:
        results = await index.aget_context(request.query, request.top_k)
    except NotInitializedError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "index_not_ready", "message": str(e)},
        )
    except EmbeddingError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "embedding_error", "message": str(e)},
        )

    return ContextResponse(
        results=[
            ContextChunk(chunk_id=r.chunk_id, text=r.text, similarity=r.similarity)
            for r in results
        ],
        formatted=format_context_for_prompt(results),
    )


@router.post(
    "/knowledge/ask",
    response_model=AskResponse,
    responses={502: {"model": ErrorResponse, "description": "Generation failed"}},
    tags=["Knowledge"],
)
def ask_endpoint(
    request: AskRequest,
    assistant: RecipeAssistant = Depends(get_assistant),
) -> AskResponse:
    """Answer a question from the knowledge base."""
    try:
        answer = assistant.ask_knowledge(request.question)
    except GenerationError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "generation_error", "message": str(e)},
        )
    return AskResponse(answer=answer, grounded=answer != KNOWLEDGE_UNAVAILABLE)


@router.post(
    "/recipes/recommendations",
    response_model=RecommendationResponse,
    tags=["Recipes"],
)
def recommendations_endpoint(
    request: RecommendationRequest,
    assistant: RecipeAssistant = Depends(get_assistant),
) -> RecommendationResponse:
    """Suggest recipes for the submitted inventory."""
    recipes = assistant.recommend_recipes(request.inventory, request.preferences)
    available = [item.name for item in request.inventory]

    return RecommendationResponse(
        recommendations=[
            RecipeRecommendation(
                **recipe.model_dump(),
                missing_ingredients=recipe.ingredients_missing_from(available),
            )
            for recipe in recipes
        ],
        total_inventory_items=len(request.inventory),
    )


@router.post(
    "/recipes/chat",
    response_model=ChatResponse,
    responses={502: {"model": ErrorResponse, "description": "Generation failed"}},
    tags=["Recipes"],
)
def chat_endpoint(
    request: ChatRequest,
    assistant: RecipeAssistant = Depends(get_assistant),
) -> ChatResponse:
    """Handle a message in a recipe conversation."""
    try:
        reply = assistant.chat(
            request.message,
            current_recipe=request.recipe_name,
            available_ingredients=request.available_ingredients,
            conversation_history=request.conversation_history,
        )
    except GenerationError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "generation_error", "message": str(e)},
        )
    return ChatResponse(reply=reply)


# Create app instance
app = create_app()
