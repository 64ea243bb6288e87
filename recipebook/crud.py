from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import models, schemas


def _newest_first(query):
    return query.order_by(models.Recipe.created_at.desc(), models.Recipe.id.desc())


def get_recipe(db: Session, recipe_id: int) -> Optional[models.Recipe]:
    return db.query(models.Recipe).filter(models.Recipe.id == recipe_id).first()


def get_recipes(db: Session) -> List[models.Recipe]:
    return _newest_first(db.query(models.Recipe)).all()


def get_recipes_by_owner(db: Session, user_id: int) -> List[models.Recipe]:
    query = db.query(models.Recipe).filter(models.Recipe.created_by == user_id)
    return _newest_first(query).all()


def search_recipes(db: Session, query: str) -> List[models.Recipe]:
    """Case-insensitive substring match on title, ingredients or category."""
    q = db.query(models.Recipe).filter(
        or_(
            models.Recipe.title.icontains(query, autoescape=True),
            models.Recipe.ingredients.icontains(query, autoescape=True),
            models.Recipe.category.icontains(query, autoescape=True),
        )
    )
    return _newest_first(q).all()


def create_recipe(
    db: Session, recipe: schemas.RecipeCreate, image_url: str, user_id: int
) -> models.Recipe:
    db_recipe = models.Recipe(
        title=recipe.title,
        ingredients=recipe.ingredients,
        instructions=recipe.instructions,
        category=recipe.category,
        image_url=image_url,
        created_by=user_id,
    )
    db.add(db_recipe)
    db.commit()
    db.refresh(db_recipe)
    return db_recipe


def delete_recipe(db: Session, recipe_id: int) -> bool:
    db_recipe = get_recipe(db, recipe_id)
    if not db_recipe:
        return False
    db.delete(db_recipe)
    db.commit()
    return True


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(
    db: Session, user: schemas.UserCreate, password_hash: str
) -> models.User:
    db_user = models.User(
        name=user.name, email=user.email, password_hash=password_hash
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user
