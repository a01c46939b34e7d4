"""Pydantic models for the recipe payloads cookctl writes.

The API accepts the same body for recipe create and update. cookctl builds
that body in three places: ``recipe template`` (a starter document),
``recipe export``/``init``/``edit``/``clone`` (converted from a recipe
detail response), and ``recipe tag`` (an export with new tag ids).
Read-side responses are passed through as plain JSON and never modelled.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class RecipeIngredientUpsert(BaseModel):
    position: int
    quantity: Optional[float] = None
    quantity_text: Optional[str] = None
    unit: Optional[str] = None
    item_id: Optional[str] = None
    item_name: str = ""
    prep: Optional[str] = None
    notes: Optional[str] = None
    original_text: Optional[str] = None


class RecipeStepUpsert(BaseModel):
    step_number: int
    instruction: str


class RecipeUpsert(BaseModel):
    """Body of ``POST /api/v1/recipes`` and ``PUT /api/v1/recipes/{id}``."""

    title: str
    servings: int = 1
    prep_time_minutes: int = 0
    total_time_minutes: int = 0
    source_url: Optional[str] = None
    notes: Optional[str] = None
    recipe_book_id: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)
    ingredients: list[RecipeIngredientUpsert] = Field(default_factory=list)
    steps: list[RecipeStepUpsert] = Field(default_factory=list)

    @classmethod
    def template(cls) -> "RecipeUpsert":
        """A placeholder recipe to fill in and feed back to ``recipe create``."""
        return cls(
            title="New Recipe",
            servings=1,
            ingredients=[
                RecipeIngredientUpsert(position=1, item_name="Ingredient", original_text="Ingredient"),
            ],
            steps=[RecipeStepUpsert(step_number=1, instruction="Add steps here")],
        )

    @classmethod
    def from_detail(cls, detail: dict[str, Any]) -> "RecipeUpsert":
        """Convert a recipe detail response into an upsert body.

        Tags collapse to their ids and each ingredient's nested ``item``
        becomes ``item_id``/``item_name``.
        """
        ingredients = []
        for ingredient in detail.get("ingredients") or []:
            item = ingredient.get("item") or {}
            ingredients.append(
                RecipeIngredientUpsert(
                    position=ingredient.get("position", 0),
                    quantity=ingredient.get("quantity"),
                    quantity_text=ingredient.get("quantity_text"),
                    unit=ingredient.get("unit"),
                    item_id=item.get("id") or None,
                    item_name=item.get("name", ""),
                    prep=ingredient.get("prep"),
                    notes=ingredient.get("notes"),
                    original_text=ingredient.get("original_text"),
                )
            )
        return cls(
            title=detail.get("title", ""),
            servings=detail.get("servings", 0),
            prep_time_minutes=detail.get("prep_time_minutes", 0),
            total_time_minutes=detail.get("total_time_minutes", 0),
            source_url=detail.get("source_url"),
            notes=detail.get("notes"),
            recipe_book_id=detail.get("recipe_book_id"),
            tag_ids=[tag["id"] for tag in detail.get("tags") or [] if tag.get("id")],
            ingredients=ingredients,
            steps=[
                RecipeStepUpsert(step_number=step.get("step_number", 0), instruction=step.get("instruction", ""))
                for step in detail.get("steps") or []
            ],
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
