"""
Tests for admin user management and analytics.
"""


class TestAdminUsers:

    def test_requires_admin_role(self, client, alice):
        response = client.get("/api/admin/users", headers=alice["headers"])

        assert response.status_code == 403

    def test_requires_token(self, client):
        assert client.get("/api/admin/users").status_code == 401

    def test_paged_listing_with_search(self, client, admin, alice, bob):
        response = client.get("/api/admin/users", params={"limit": 2}, headers=admin["headers"])

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["count"] == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "totalPages": 2}

        search = client.get("/api/admin/users", params={"search": "BOB"}, headers=admin["headers"]).json()
        assert [user["name"] for user in search["data"]] == ["Bob"]

    def test_promote_and_demote(self, client, admin, alice):
        promoted = client.put(f"/api/admin/users/{alice['user']['id']}/promote", headers=admin["headers"])

        assert promoted.status_code == 200
        assert promoted.json()["data"]["role"] == "admin"
        assert client.get("/api/users", headers=alice["headers"]).status_code == 200

        demoted = client.put(f"/api/admin/users/{alice['user']['id']}/demote", headers=admin["headers"])
        assert demoted.json()["data"]["role"] == "user"
        assert client.get("/api/users", headers=alice["headers"]).status_code == 403

    def test_cannot_demote_self(self, client, admin):
        response = client.put(f"/api/admin/users/{admin['user']['id']}/demote", headers=admin["headers"])

        assert response.status_code == 400

    def test_ban(self, client, admin, alice):
        response = client.put(f"/api/admin/users/{alice['user']['id']}/ban", headers=admin["headers"])

        assert response.status_code == 200
        assert response.json()["data"]["active"] is False
        assert client.get("/api/auth/me", headers=alice["headers"]).status_code == 403

    def test_cannot_ban_self(self, client, admin):
        response = client.put(f"/api/admin/users/{admin['user']['id']}/ban", headers=admin["headers"])

        assert response.status_code == 400

    def test_oversized_page_is_rejected(self, client, admin):
        response = client.get("/api/admin/users", params={"page": "9" * 25}, headers=admin["headers"])

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "page"

    def test_promote_unknown_user(self, client, admin):
        response = client.put("/api/admin/users/missing/promote", headers=admin["headers"])

        assert response.status_code == 404


class TestAnalytics:

    def test_analytics(self, client, admin, alice, bob, soup):
        client.post(f"/api/recipes/{soup['id']}/like", headers=bob["headers"])
        client.post(f"/api/recipes/{soup['id']}/comments", json={"text": "Yum"}, headers=bob["headers"])

        response = client.get("/api/admin/analytics", headers=admin["headers"])

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totals"] == {"users": 3, "activeUsers": 3, "recipes": 1, "comments": 1, "likes": 1}
        assert data["recent"]["users"] == 3
        assert data["recent"]["recipes"] == 1
        assert len(data["userSignups"]) == 7
        assert sum(day["count"] for day in data["userSignups"]) == 3
        assert sum(day["count"] for day in data["recipeUploads"]) == 1
        assert data["topCategories"] == [{"category": "soup", "count": 1}]
        assert data["popularRecipes"][0]["id"] == soup["id"]
        assert data["popularRecipes"][0]["likesCount"] == 1

    def test_analytics_is_admin_only(self, client, alice):
        assert client.get("/api/admin/analytics", headers=alice["headers"]).status_code == 403
