import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from . import crud, models, schemas, storage
from .auth import create_token, get_current_user, hash_password, verify_password
from .config import settings
from .db import get_db, init_db
from .mealdb import MealDBClient, MealDBError, get_mealdb
from .search import build_orchestrator

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB and the upload directory once at startup
    init_db()
    storage.upload_root()
    yield


app = FastAPI(title="Recipe Book", lifespan=lifespan)

package_dir = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(package_dir / "templates"))

# Uploaded recipe photos are served straight from the upload directory
app.mount(
    storage.URL_PREFIX.rstrip("/"),
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _recipe_out(row: models.Recipe) -> schemas.Recipe:
    return schemas.Recipe.model_validate(row)


def _auth_response(user: models.User) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        token=create_token(user), user=schemas.User.model_validate(user)
    )


async def _run_search(q: str, db: Session, mealdb: MealDBClient) -> List[schemas.Recipe]:
    try:
        return await build_orchestrator(mealdb, db).search(q)
    except MealDBError:
        log.exception("search %r failed", q)
        raise HTTPException(status_code=502, detail="Search failed")


@app.get("/", response_class=HTMLResponse)
async def read_root(
    request: Request,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    mealdb: MealDBClient = Depends(get_mealdb),
):
    # Public feed; with ?q= the page shows search results instead
    query = (q or "").strip()
    error = None
    if query:
        try:
            recipes = await _run_search(query, db, mealdb)
        except HTTPException as e:
            recipes, error = [], e.detail
    else:
        recipes = await run_in_threadpool(list_recipes, db)
    return templates.TemplateResponse(
        request,
        "index.html",
        {"q": query, "recipes": recipes, "error": error},
    )


@app.get("/api/categories", response_model=schemas.CategoryList)
def list_categories():
    return {"categories": schemas.CATEGORIES}


# ---- auth ----

@app.post("/api/auth/register", response_model=schemas.AuthResponse, status_code=201)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    if crud.get_user_by_email(db, user.email):
        raise HTTPException(
            status_code=400, detail="User with this email already exists"
        )
    db_user = crud.create_user(db, user, hash_password(user.password))
    log.info("registered user %s", db_user.id)
    return _auth_response(db_user)


@app.post("/api/auth/login", response_model=schemas.AuthResponse)
def login(creds: schemas.UserLogin, db: Session = Depends(get_db)):
    db_user = crud.get_user_by_email(db, creds.email)
    if not db_user or not verify_password(creds.password, db_user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid email or password")
    return _auth_response(db_user)


@app.get("/api/auth/me", response_model=schemas.User)
def me(user: models.User = Depends(get_current_user)):
    return user


# ---- recipes ----

@app.get("/api/recipes", response_model=List[schemas.Recipe])
def list_recipes(db: Session = Depends(get_db)):
    return [_recipe_out(r) for r in crud.get_recipes(db)]


@app.get("/api/recipes/mine", response_model=List[schemas.Recipe])
def my_recipes(
    db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
):
    return [_recipe_out(r) for r in crud.get_recipes_by_owner(db, user.id)]


@app.get("/api/recipes/{recipe_id}", response_model=schemas.Recipe)
def get_recipe(recipe_id: int, db: Session = Depends(get_db)):
    r = crud.get_recipe(db, recipe_id)
    if not r:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return _recipe_out(r)


@app.post("/api/recipes", response_model=schemas.Recipe, status_code=201)
async def create_recipe(
    title: str = Form(...),
    ingredients: str = Form(...),
    instructions: str = Form(...),
    category: str = Form(...),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    try:
        recipe = schemas.RecipeCreate(
            title=title,
            ingredients=ingredients,
            instructions=instructions,
            category=category,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False),
        )
    image_url = await storage.save_image(image)
    try:
        out = await run_in_threadpool(_insert_recipe, db, recipe, image_url, user.id)
    except Exception:
        # no row points at the stored file, so it would never be cleaned up
        await run_in_threadpool(storage.delete_image, image_url)
        raise
    log.info("user %s created recipe %s", user.id, out.id)
    return out


def _insert_recipe(db, recipe, image_url, user_id) -> schemas.Recipe:
    return _recipe_out(crud.create_recipe(db, recipe, image_url, user_id))


@app.delete("/api/recipes/{recipe_id}")
def delete_recipe(
    recipe_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    r = crud.get_recipe(db, recipe_id)
    if not r:
        raise HTTPException(status_code=404, detail="Recipe not found")
    if r.created_by != user.id:
        raise HTTPException(
            status_code=403, detail="You can only delete recipes that you created"
        )
    image_url = r.image_url
    crud.delete_recipe(db, recipe_id)
    storage.delete_image(image_url)
    log.info("user %s deleted recipe %s", user.id, recipe_id)
    return {"deleted": True, "message": "Recipe deleted successfully"}


# ---- search ----

@app.get("/api/search", response_model=List[schemas.Recipe])
async def search(
    q: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    mealdb: MealDBClient = Depends(get_mealdb),
):
    if not q.strip():
        raise HTTPException(status_code=422, detail="Query must not be blank")
    return await _run_search(q, db, mealdb)
