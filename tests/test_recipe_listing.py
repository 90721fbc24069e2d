"""
Tests for recipe listing: filters, search, sort, select, pagination and scoped lists.
"""

import pytest

from conftest import sample_recipe


@pytest.fixture
def catalog(client, alice, bob):
    """Six recipes across two owners."""
    specs = [
        (alice, dict(title="Pancakes", category="breakfast", cookingTime=15, servings=2, difficulty="easy", diet=["vegetarian"])),
        (alice, dict(title="Beef Stew", category="dinner", cookingTime=120, servings=6, difficulty="hard", diet=[])),
        (alice, dict(title="Lentil Soup", category="soup", cookingTime=45, servings=4, difficulty="medium", diet=["vegan", "Gluten-Free"])),
        (bob, dict(title="Fruit Salad", category="salad", cookingTime=10, servings=2, difficulty="easy", diet=["vegan"],
                   description="Fresh summer fruit")),
        (bob, dict(title="Chocolate Cake", category="dessert", cookingTime=60, servings=8, difficulty="medium", diet=[])),
        (bob, dict(title="Omelette", category="breakfast", cookingTime=10, servings=1, difficulty="easy", diet=["vegetarian"])),
    ]
    created = []
    for owner, overrides in specs:
        overrides.setdefault("description", f"{overrides['title']} description")
        response = client.post("/api/recipes", json=sample_recipe(**overrides), headers=owner["headers"])
        assert response.status_code == 201, response.text
        created.append(response.json())
    return created


def titles(response):
    return [recipe["title"] for recipe in response.json()["recipes"]]


class TestListingBasics:

    def test_default_listing_is_newest_first(self, client, catalog):
        response = client.get("/api/recipes")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 6
        assert body["count"] == 6
        assert titles(response) == [recipe["title"] for recipe in reversed(catalog)]
        assert body["pagination"] == {}

    def test_empty_listing(self, client):
        body = client.get("/api/recipes").json()

        assert body == {"count": 0, "total": 0, "pagination": {}, "recipes": []}


class TestFilters:

    def test_category_is_case_insensitive(self, client, catalog):
        response = client.get("/api/recipes", params={"category": "BreakFast"})

        assert sorted(titles(response)) == ["Omelette", "Pancakes"]

    def test_category_all_means_no_filter(self, client, catalog):
        assert client.get("/api/recipes", params={"category": "all"}).json()["total"] == 6

    def test_diet_membership(self, client, catalog):
        response = client.get("/api/recipes", params={"diet": "vegan"})

        assert sorted(titles(response)) == ["Fruit Salad", "Lentil Soup"]

    def test_diet_is_case_insensitive(self, client, catalog):
        response = client.get("/api/recipes", params={"diet": "gluten-free"})

        assert titles(response) == ["Lentil Soup"]

    def test_search_matches_title_or_description(self, client, catalog):
        assert titles(client.get("/api/recipes", params={"search": "SOUP"})) == ["Lentil Soup"]
        assert titles(client.get("/api/recipes", params={"search": "summer"})) == ["Fruit Salad"]

    def test_search_treats_wildcards_literally(self, client, catalog):
        assert client.get("/api/recipes", params={"search": "%"}).json()["total"] == 0

    def test_range_operators(self, client, catalog):
        response = client.get("/api/recipes", params={"cookingTime[gte]": "45", "cookingTime[lt]": "120"})

        assert sorted(titles(response)) == ["Chocolate Cake", "Lentil Soup"]

    def test_in_operator(self, client, catalog):
        response = client.get("/api/recipes", params={"difficulty[in]": "hard,medium"})

        assert sorted(titles(response)) == ["Beef Stew", "Chocolate Cake", "Lentil Soup"]

    def test_equality_on_owner(self, client, bob, catalog):
        response = client.get("/api/recipes", params={"user": bob["user"]["id"]})

        assert response.json()["total"] == 3

    def test_featured_flag_is_ignored(self, client, catalog):
        response = client.get("/api/recipes", params={"featured": "true", "limit": 3})

        assert response.status_code == 200
        assert response.json()["count"] == 3

    def test_unknown_field_is_rejected(self, client, catalog):
        response = client.get("/api/recipes", params={"calories[gt]": "100"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "calories"

    def test_bad_value_is_rejected(self, client, catalog):
        response = client.get("/api/recipes", params={"servings[gte]": "many"})

        assert response.status_code == 400

    def test_range_operator_on_text_field_is_rejected(self, client, catalog):
        response = client.get("/api/recipes", params={"title[gt]": "A"})

        assert response.status_code == 400

    def test_oversized_number_is_rejected(self, client, catalog):
        response = client.get("/api/recipes", params={"cookingTime[gt]": "9" * 25})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "cookingTime"


class TestSortAndSelect:

    def test_sort_ascending_and_descending(self, client, catalog):
        ascending = titles(client.get("/api/recipes", params={"sort": "title"}))
        descending = titles(client.get("/api/recipes", params={"sort": "-title"}))

        assert ascending == sorted(ascending)
        assert descending == list(reversed(ascending))

    def test_multi_key_sort(self, client, catalog):
        response = client.get("/api/recipes", params={"sort": "cookingTime,-servings"})

        assert titles(response)[:2] == ["Fruit Salad", "Omelette"]

    def test_sort_by_likes(self, client, alice, bob, carol, catalog):
        cake = next(recipe for recipe in catalog if recipe["title"] == "Chocolate Cake")
        stew = next(recipe for recipe in catalog if recipe["title"] == "Beef Stew")
        for who in (alice, carol):
            client.post(f"/api/recipes/{cake['id']}/like", headers=who["headers"])
        client.post(f"/api/recipes/{stew['id']}/like", headers=carol["headers"])

        response = client.get("/api/recipes", params={"sort": "-likesCount"})

        assert titles(response)[:2] == ["Chocolate Cake", "Beef Stew"]

    def test_unknown_sort_field(self, client, catalog):
        assert client.get("/api/recipes", params={"sort": "calories"}).status_code == 400

    def test_select_keeps_id(self, client, catalog):
        response = client.get("/api/recipes", params={"select": "title,image"})

        for recipe in response.json()["recipes"]:
            assert set(recipe) == {"id", "title", "image"}

    def test_select_unknown_field(self, client, catalog):
        assert client.get("/api/recipes", params={"select": "secret"}).status_code == 400


class TestPagination:

    def test_pages_cover_all_results_once(self, client, catalog):
        """Concatenated pages have no duplicates and exactly total results."""
        seen = []
        page = 1
        while True:
            body = client.get("/api/recipes", params={"page": page, "limit": 4}).json()
            seen.extend(recipe["id"] for recipe in body["recipes"])
            if "next" not in body["pagination"]:
                break
            page = body["pagination"]["next"]["page"]

        assert len(seen) == len(set(seen)) == 6

    def test_cursors(self, client, catalog):
        first = client.get("/api/recipes", params={"page": 1, "limit": 2}).json()
        middle = client.get("/api/recipes", params={"page": 2, "limit": 2}).json()
        last = client.get("/api/recipes", params={"page": 3, "limit": 2}).json()

        assert first["pagination"] == {"next": {"page": 2, "limit": 2}}
        assert middle["pagination"] == {"next": {"page": 3, "limit": 2}, "prev": {"page": 1, "limit": 2}}
        assert last["pagination"] == {"prev": {"page": 2, "limit": 2}}
        assert first["count"] == 2 and first["total"] == 6

    def test_limit_above_maximum(self, client, catalog):
        assert client.get("/api/recipes", params={"limit": 101}).status_code == 400

    def test_page_below_one(self, client, catalog):
        assert client.get("/api/recipes", params={"page": 0}).status_code == 400

    def test_oversized_page(self, client, catalog):
        response = client.get("/api/recipes", params={"page": "9" * 25})

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "page"


class TestScopedListings:

    def test_user_recipes(self, client, alice, catalog):
        response = client.get(f"/api/recipes/user/{alice['user']['id']}", params={"limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["total"] == 3
        assert body["count"] == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "totalPages": 2}
        assert body["userData"]["name"] == "Alice"
        assert all(recipe["user"]["id"] == alice["user"]["id"] for recipe in body["data"])

    def test_user_recipes_for_unknown_user(self, client):
        response = client.get("/api/recipes/user/missing")

        assert response.status_code == 404
        assert response.json()["msg"] == "User not found"

    def test_liked_recipes(self, client, carol, catalog):
        for recipe in catalog[:2]:
            client.post(f"/api/recipes/{recipe['id']}/like", headers=carol["headers"])

        response = client.get("/api/recipes/liked", headers=carol["headers"])

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["pagination"] == {"page": 1, "pages": 1}
        assert sorted(recipe["title"] for recipe in body["recipes"]) == ["Beef Stew", "Pancakes"]

    def test_liked_requires_auth(self, client):
        assert client.get("/api/recipes/liked").status_code == 401
