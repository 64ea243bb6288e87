import httpx
import pytest

from recipebook.mealdb import MealDBClient, MealDBError

from conftest import MEALDB_BASE, make_meal, make_stub


def _client(handler):
    return MealDBClient(
        httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=MEALDB_BASE)
    )


@pytest.mark.asyncio
async def test_search_by_name_sends_query(mealdb):
    mealdb.by_name["Arrabiata"] = [make_meal(1, "Spicy Arrabiata Penne")]
    client = mealdb.client()
    try:
        meals = await client.search_by_name("Arrabiata")
    finally:
        await client.http.aclose()
    assert [m["strMeal"] for m in meals] == ["Spicy Arrabiata Penne"]
    (req,) = mealdb.calls("search.php")
    assert req.url.path == "/api/json/v1/1/search.php"
    assert req.url.params["s"] == "Arrabiata"


@pytest.mark.asyncio
async def test_null_meals_means_no_results(mealdb):
    client = mealdb.client()
    try:
        assert await client.search_by_name("nothing") == []
        assert await client.filter_by_ingredient("nothing") == []
        assert await client.lookup("404") is None
    finally:
        await client.http.aclose()


@pytest.mark.asyncio
async def test_filter_and_lookup(mealdb):
    mealdb.by_ingredient["chicken"] = [make_stub(1, "A"), make_stub(2, "B")]
    mealdb.details["2"] = make_meal(2, "B")
    client = mealdb.client()
    try:
        stubs = await client.filter_by_ingredient("chicken")
        meal = await client.lookup("2")
    finally:
        await client.http.aclose()
    assert [s["idMeal"] for s in stubs] == ["1", "2"]
    assert meal["strMeal"] == "B"


@pytest.mark.asyncio
async def test_error_status_raises(mealdb):
    mealdb.failing.add("search.php")
    client = mealdb.client()
    try:
        with pytest.raises(MealDBError):
            await client.search_by_name("anything")
    finally:
        await client.http.aclose()


@pytest.mark.asyncio
async def test_non_json_body_raises():
    client = _client(lambda request: httpx.Response(200, text="<html>down</html>"))
    try:
        with pytest.raises(MealDBError):
            await client.search_by_name("anything")
    finally:
        await client.http.aclose()


@pytest.mark.asyncio
async def test_network_error_raises():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    client = _client(handler)
    try:
        with pytest.raises(MealDBError) as exc:
            await client.lookup("1")
    finally:
        await client.http.aclose()
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{"meals": "Invalid ID"}, {"meals": ["Teriyaki"]}, {"meals": {"idMeal": "1"}}, ["x"]],
)
async def test_malformed_meals_raise(mealdb, body):
    mealdb.raw["lookup.php"] = body
    client = mealdb.client()
    try:
        with pytest.raises(MealDBError):
            await client.lookup("1")
    finally:
        await client.http.aclose()
