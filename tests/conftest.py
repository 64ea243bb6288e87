# flake8: noqa
import sys
from pathlib import Path

# Ensure project root is on sys.path so `recipebook` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipebook import app as app_module
from recipebook import models  # noqa: F401  registers tables
from recipebook.config import settings
from recipebook.db import Base, get_db
from recipebook.mealdb import MealDBClient, get_mealdb


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
# Use StaticPool so the same in-memory database is shared across connections
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

MEALDB_BASE = "https://mealdb.test/api/json/v1/1/"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_meal(meal_id, name, category="Dessert", ingredients=()):
    """A full TheMealDB record; ingredients is a list of (ingredient, measure)."""
    meal = {
        "idMeal": str(meal_id),
        "strMeal": name,
        "strCategory": category,
        "strInstructions": f"Cook the {name}.",
        "strMealThumb": f"https://img.test/{meal_id}.jpg",
    }
    for i in range(1, 21):
        meal[f"strIngredient{i}"] = ""
        meal[f"strMeasure{i}"] = ""
    for i, (ingredient, measure) in enumerate(ingredients, start=1):
        meal[f"strIngredient{i}"] = ingredient
        meal[f"strMeasure{i}"] = measure
    return meal


def make_stub(meal_id, name):
    return {
        "idMeal": str(meal_id),
        "strMeal": name,
        "strMealThumb": f"https://img.test/{meal_id}.jpg",
    }


class FakeMealDB:
    """Serves canned TheMealDB answers and records every request it sees."""

    def __init__(self):
        self.by_name = {}
        self.by_ingredient = {}
        self.details = {}
        # endpoint names ("search.php") or meal ids that answer with a 500
        self.failing = set()
        # endpoint names or meal ids mapped to a raw JSON body sent as-is
        self.raw = {}
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        if endpoint in self.failing:
            return httpx.Response(500, json={"error": "boom"})
        if endpoint in self.raw:
            return httpx.Response(200, json=self.raw[endpoint])
        if endpoint == "lookup.php" and request.url.params["i"] in self.raw:
            return httpx.Response(200, json=self.raw[request.url.params["i"]])
        if endpoint == "search.php":
            return httpx.Response(
                200, json={"meals": self.by_name.get(request.url.params["s"])}
            )
        if endpoint == "filter.php":
            return httpx.Response(
                200, json={"meals": self.by_ingredient.get(request.url.params["i"])}
            )
        if endpoint == "lookup.php":
            meal_id = request.url.params["i"]
            if meal_id in self.failing:
                return httpx.Response(500, json={"error": "boom"})
            meal = self.details.get(meal_id)
            return httpx.Response(200, json={"meals": [meal] if meal else None})
        return httpx.Response(404)

    def calls(self, endpoint):
        return [r for r in self.requests if r.url.path.endswith(endpoint)]

    def client(self) -> MealDBClient:
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler), base_url=MEALDB_BASE
        )
        return MealDBClient(http)


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    d = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(d))
    return d


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mealdb():
    return FakeMealDB()


@pytest.fixture
def client(mealdb):
    async def override_get_mealdb():
        c = mealdb.client()
        try:
            yield c
        finally:
            await c.http.aclose()

    app_module.app.dependency_overrides[get_db] = override_get_db
    app_module.app.dependency_overrides[get_mealdb] = override_get_mealdb
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()
