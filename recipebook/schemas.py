from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .normalize import clean_ingredient_text

CATEGORIES = [
    "Vegetarian",
    "Non-Vegetarian",
    "Vegan",
    "Gluten-Free",
    "Italian",
    "Chinese",
    "Mexican",
    "Indian",
    "Thai",
    "Japanese",
    "Mediterranean",
    "South Indian",
    "North Indian",
    "Dessert",
    "Breakfast",
    "Lunch",
    "Dinner",
    "Snack",
]

# category given to external recipes that carry none
FALLBACK_CATEGORY = "Other"


class RecipeBase(BaseModel):
    title: str = Field(..., json_schema_extra={"example": "Simple Pancakes"})
    ingredients: str = Field(
        ..., json_schema_extra={"example": "200g flour\n300ml milk\n1 egg"}
    )
    instructions: str = Field(
        ...,
        json_schema_extra={
            "example": "Whisk everything together, rest 10 minutes, then fry."
        },
    )
    category: str = Field(..., json_schema_extra={"example": "Breakfast"})


class RecipeCreate(RecipeBase):
    title: str = Field(..., min_length=3)
    instructions: str = Field(..., min_length=20)

    @field_validator("title", "instructions", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("ingredients")
    @classmethod
    def _clean_ingredients(cls, v: str) -> str:
        cleaned = clean_ingredient_text(v)
        if not cleaned:
            raise ValueError("At least one ingredient is required")
        return cleaned

    @field_validator("category")
    @classmethod
    def _known_category(cls, v: str) -> str:
        if v not in CATEGORIES:
            raise ValueError("Please select a category")
        return v


class Recipe(RecipeBase):
    id: str
    image_url: str
    created_by: Optional[str] = None
    created_at: datetime
    author_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", "created_by", mode="before")
    @classmethod
    def _as_text(cls, v):
        # database ids are integers, external ids are already text
        if v is None:
            return v
        return str(v)


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class User(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def _as_text(cls, v):
        return str(v)


class AuthResponse(BaseModel):
    token: str
    user: User


class CategoryList(BaseModel):
    categories: List[str]
