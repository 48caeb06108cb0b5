"""HTTP-level tests: envelope, auth, ledger errors and listing."""

import pytest

API = "/api/v1"


@pytest.fixture
async def stocked(app_client, admin_headers):
    """Two authors, a category and two books created through the API."""
    for author_id, name in (("AUT001", "Alice Author"), ("AUT002", "Bob Writer")):
        response = await app_client.post(
            f"{API}/authors", json={"id": author_id, "name": name}, headers=admin_headers
        )
        assert response.status_code == 201
    response = await app_client.post(
        f"{API}/categories", json={"id": "CAT001", "name": "Fiction"}, headers=admin_headers
    )
    assert response.status_code == 201

    books = [
        {
            "id": "BOO001",
            "title": "Cheap Paperback",
            "price": "9.99",
            "stock": 3,
            "category_id": "CAT001",
            "isbn": "978-0-306-40615-7",
            "authors": [{"author_id": "AUT001", "contribution_percentage": 60}],
        },
        {
            "id": "BOO002",
            "title": "Expensive Hardcover",
            "price": "45.00",
            "stock": 0,
            "authors": [{"author_id": "AUT002"}],
        },
    ]
    for book in books:
        response = await app_client.post(f"{API}/books", json=book, headers=admin_headers)
        assert response.status_code == 201, response.text
    return books


async def test_health(app_client):
    response = await app_client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"


async def test_welcome(app_client):
    body = (await app_client.get(API)).json()
    assert body["endpoints"]["books"] == f"{API}/books"


class TestAuth:
    async def test_login_and_verify(self, app_client, accounts):
        response = await app_client.post(
            f"{API}/auth/login", json={"usernameOrEmail": "admin", "password": "admin123"}
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["role"] == "admin"

        verify = await app_client.get(
            f"{API}/auth/verify", headers={"Authorization": f"Bearer {data['accessToken']}"}
        )
        assert verify.json()["data"]["tokenValid"] is True

    async def test_login_by_email(self, app_client, accounts):
        response = await app_client.post(
            f"{API}/auth/login",
            json={"usernameOrEmail": "Reader@Bookstore.com", "password": "reader123"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["username"] == "reader"

    async def test_bad_password(self, app_client, accounts):
        response = await app_client.post(
            f"{API}/auth/login", json={"usernameOrEmail": "admin", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_CREDENTIALS"

    async def test_register_as_plain_user_then_duplicate(self, app_client):
        payload = {
            "username": "newbie",
            "email": "newbie@example.com",
            "password": "secret1",
            "fullName": "New Reader",
            "role": "admin",
        }
        response = await app_client.post(f"{API}/auth/register", json=payload)
        assert response.status_code == 201
        assert response.json()["data"]["user"]["role"] == "user"

        again = await app_client.post(f"{API}/auth/register", json=payload)
        assert again.status_code == 409

    async def test_register_validation(self, app_client):
        response = await app_client.post(
            f"{API}/auth/register",
            json={"username": "x", "email": "not-an-email", "password": "1", "fullName": "X"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert {e["field"] for e in body["errors"]} >= {"username", "email", "password"}

    async def test_refresh(self, app_client, accounts):
        response = await app_client.post(
            f"{API}/auth/refresh", json={"refreshToken": accounts["user"]["refreshToken"]}
        )
        assert response.status_code == 200
        assert response.json()["data"]["accessToken"]

    async def test_access_token_is_not_a_refresh_token(self, app_client, accounts):
        response = await app_client.post(
            f"{API}/auth/refresh", json={"refreshToken": accounts["user"]["accessToken"]}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN_TYPE"

    async def test_profile_update(self, app_client, user_headers):
        response = await app_client.put(
            f"{API}/auth/profile", json={"fullName": "Renamed Reader"}, headers=user_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["fullName"] == "Renamed Reader"

    async def test_profile_email_taken(self, app_client, user_headers):
        response = await app_client.put(
            f"{API}/auth/profile", json={"email": "admin@bookstore.com"}, headers=user_headers
        )
        assert response.status_code == 409


class TestPermissions:
    async def test_write_without_token(self, app_client):
        response = await app_client.post(f"{API}/authors", json={"name": "Nobody Here"})
        assert response.status_code == 401
        assert response.json()["error"] == "NO_TOKEN"

    async def test_write_with_garbage_token(self, app_client):
        response = await app_client.post(
            f"{API}/authors", json={"name": "Nobody Here"},
            headers={"Authorization": "Bearer not.a.jwt"},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_TOKEN"

    async def test_write_as_regular_user(self, app_client, user_headers):
        response = await app_client.post(
            f"{API}/authors", json={"name": "Nobody Here"}, headers=user_headers
        )
        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "INSUFFICIENT_ROLE"
        assert body["user_role"] == "user"

    async def test_reads_are_public(self, app_client, stocked):
        response = await app_client.get(f"{API}/books/BOO001")
        assert response.status_code == 200


class TestBooks:
    async def test_get_book_envelope(self, app_client, stocked):
        body = (await app_client.get(f"{API}/books/BOO001")).json()
        assert body["success"] is True
        book = body["data"]
        assert book["isbn"] == "9780306406157"
        assert book["category"]["name"] == "Fiction"
        assert book["authors"][0]["name"] == "Alice Author"
        assert book["total_contribution"] == 60.0

    async def test_sole_author_defaults_to_full_share(self, app_client, stocked):
        body = (await app_client.get(f"{API}/books/BOO002/contributions")).json()
        assert body["data"]["total"] == 100.0
        assert body["data"]["remaining"] == 0.0

    async def test_missing_book(self, app_client):
        response = await app_client.get(f"{API}/books/BOO404")
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    async def test_create_over_full_share(self, app_client, admin_headers, stocked):
        response = await app_client.post(
            f"{API}/books",
            json={
                "title": "Too Many Cooks",
                "authors": [
                    {"author_id": "AUT001", "contribution_percentage": 70},
                    {"author_id": "AUT002", "contribution_percentage": 40},
                ],
            },
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "EXCEEDS_CAPACITY"
        listing = (await app_client.get(f"{API}/books", params={"search": "Cooks"})).json()
        assert listing["data"] == []

    async def test_bad_isbn(self, app_client, admin_headers, stocked):
        response = await app_client.post(
            f"{API}/books",
            json={"title": "Bad ISBN", "isbn": "9780306406158", "authors": [{"author_id": "AUT001"}]},
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_update_book(self, app_client, admin_headers, stocked):
        response = await app_client.put(
            f"{API}/books/BOO001", json={"title": "Revised Paperback", "stock": 10},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["title"] == "Revised Paperback"
        assert data["stock"] == 10
        assert data["price"] == 9.99

    async def test_delete_book(self, app_client, admin_headers, stocked):
        response = await app_client.delete(f"{API}/books/BOO001", headers=admin_headers)
        assert response.status_code == 200
        assert (await app_client.get(f"{API}/books/BOO001")).status_code == 404


class TestLedgerEndpoints:
    async def test_add_update_remove(self, app_client, admin_headers, stocked):
        added = await app_client.post(
            f"{API}/books/BOO001/authors",
            json={"author_id": "AUT002", "contribution_percentage": 40},
            headers=admin_headers,
        )
        assert added.status_code == 201
        assert added.json()["data"]["role"] == "Co-Author"

        over = await app_client.put(
            f"{API}/books/BOO001/authors/AUT002",
            json={"contribution_percentage": 41},
            headers=admin_headers,
        )
        assert over.status_code == 400
        body = over.json()
        assert body["error"] == "EXCEEDS_CAPACITY"
        assert body["remaining"] == 40.0

        lowered = await app_client.put(
            f"{API}/books/BOO001/authors/AUT002",
            json={"contribution_percentage": 30, "role": "Editor"},
            headers=admin_headers,
        )
        assert lowered.status_code == 200
        assert lowered.json()["data"]["contribution_percentage"] == 30.0

        removed = await app_client.delete(f"{API}/books/BOO001/authors/AUT002", headers=admin_headers)
        assert removed.status_code == 200

        last = await app_client.delete(f"{API}/books/BOO001/authors/AUT001", headers=admin_headers)
        assert last.status_code == 400
        assert last.json()["error"] == "LAST_AUTHOR"

    async def test_duplicate_contributor(self, app_client, admin_headers, stocked):
        response = await app_client.post(
            f"{API}/books/BOO001/authors",
            json={"author_id": "AUT001", "contribution_percentage": 10},
            headers=admin_headers,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_CONTRIBUTOR"

    async def test_out_of_range_percentage(self, app_client, admin_headers, stocked):
        response = await app_client.post(
            f"{API}/books/BOO001/authors",
            json={"author_id": "AUT002", "contribution_percentage": 0},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["field"] == "contribution_percentage"

    async def test_huge_percentage(self, app_client, admin_headers, stocked):
        response = await app_client.post(
            f"{API}/books/BOO001/authors",
            json={"author_id": "AUT002", "contribution_percentage": 1e30},
            headers=admin_headers,
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["field"] == "contribution_percentage"

    async def test_replace_authors(self, app_client, admin_headers, stocked):
        response = await app_client.put(
            f"{API}/books/BOO001/authors",
            json={"authors": [
                {"author_id": "AUT001", "contribution_percentage": 50},
                {"author_id": "AUT002", "contribution_percentage": 50, "role": "Co-Author"},
            ]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert sorted(e["author_id"] for e in response.json()["data"]) == ["AUT001", "AUT002"]


class TestAuthorsAndCategories:
    async def test_author_with_books_cannot_be_deleted(self, app_client, admin_headers, stocked):
        response = await app_client.delete(f"{API}/authors/AUT001", headers=admin_headers)
        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "AUTHOR_HAS_BOOKS"
        assert body["book_count"] == 1

    async def test_author_detail_stats(self, app_client, stocked):
        body = (await app_client.get(f"{API}/authors/AUT001")).json()
        assert body["stats"] == {"total_books": 1, "roles": ["Primary Author"]}
        assert body["data"]["books"][0]["id"] == "BOO001"

    async def test_productive_authors(self, app_client, stocked):
        body = (await app_client.get(f"{API}/authors/stats/productive")).json()
        assert [a["book_count"] for a in body["data"]] == [1, 1]

    async def test_delete_category_detaches_books(self, app_client, admin_headers, stocked):
        response = await app_client.delete(f"{API}/categories/CAT001", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["detached_books"] == 1
        book = (await app_client.get(f"{API}/books/BOO001")).json()["data"]
        assert book["category_id"] is None

    async def test_category_detail(self, app_client, stocked):
        body = (await app_client.get(f"{API}/categories/CAT001", params={"include_books": "true"})).json()
        assert body["stats"] == {"book_count": 1}
        assert [b["id"] for b in body["data"]["books"]] == ["BOO001"]

    async def test_duplicate_category(self, app_client, admin_headers, stocked):
        response = await app_client.post(
            f"{API}/categories", json={"name": "Fiction"}, headers=admin_headers
        )
        assert response.status_code == 409


class TestListing:
    async def test_pagination(self, app_client, stocked):
        body = (await app_client.get(f"{API}/books", params={"limit": 1})).json()
        assert len(body["data"]) == 1
        assert body["pagination"] == {
            "current_page": 1, "total_pages": 2, "total_items": 2, "items_per_page": 1,
        }

    @pytest.mark.parametrize("params,expected", [
        ({"min_price": 10}, ["BOO002"]),
        ({"max_price": 10}, ["BOO001"]),
        ({"in_stock": "true"}, ["BOO001"]),
        ({"in_stock": "false"}, ["BOO002"]),
        ({"author_id": "AUT002"}, ["BOO002"]),
        ({"category_id": "CAT001"}, ["BOO001"]),
        ({"search": "hardcover"}, ["BOO002"]),
        ({"sort_by": "price", "sort_order": "desc"}, ["BOO002", "BOO001"]),
    ])
    async def test_filters(self, app_client, stocked, params, expected):
        body = (await app_client.get(f"{API}/books", params=params)).json()
        assert [b["id"] for b in body["data"]] == expected

    async def test_unknown_sort_field(self, app_client):
        response = await app_client.get(f"{API}/books", params={"sort_by": "password"})
        assert response.status_code == 400

    async def test_home_page(self, app_client, stocked):
        response = await app_client.get("/", params={"in_stock": "true"})
        assert response.status_code == 200
        assert "Cheap Paperback" in response.text
        assert "Expensive Hardcover" not in response.text
