"""Tests for tag, book, item, user and meal-plan commands."""

from __future__ import annotations

import httpx
import pytest

from cookctl.exit_codes import EXIT_CONFLICT, EXIT_INVALID_USAGE, EXIT_NOT_FOUND, EXIT_SUCCESS


@pytest.fixture(autouse=True)
def _login(logged_in) -> None:
    """Every command here needs a stored token."""


# ---------------------------------------------------------------------------
# Tags and books
# ---------------------------------------------------------------------------


class TestTag:
    def test_list_table(self, cli, api) -> None:
        api.add("GET", "/api/v1/tags", [{"id": "t1", "name": "Soup"}, {"id": "t2", "name": "Quick"}])
        result = cli("tag", "list")
        assert result.exit_code == EXIT_SUCCESS
        assert result.stdout == "id\tname\nt1\tSoup\nt2\tQuick\n"

    def test_create(self, cli, api) -> None:
        api.add("POST", "/api/v1/tags", {"id": "t3", "name": "Vegan"})
        result = cli("tag", "create", "--name", " Vegan ", "--output", "json")
        assert result.json() == {"id": "t3", "name": "Vegan"}
        assert api.body("POST", "/api/v1/tags") == {"name": "Vegan"}

    def test_create_requires_name(self, cli, api) -> None:
        result = cli("tag", "create")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Error: name is required" in result.stderr
        assert api.requests == []

    def test_update(self, cli, api) -> None:
        api.add("PUT", "/api/v1/tags/t1", {"id": "t1", "name": "Soups"})
        result = cli("tag", "update", "t1", "--name", "Soups")
        assert result.exit_code == EXIT_SUCCESS
        assert api.body("PUT", "/api/v1/tags/t1") == {"name": "Soups"}

    def test_update_requires_id(self, cli) -> None:
        result = cli("tag", "update", "--name", "x")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "tag id is required" in result.stderr

    def test_delete(self, cli, api) -> None:
        api.add("DELETE", "/api/v1/tags/t1", None)
        result = cli("--output", "json", "tag", "delete", "t1", "--yes")
        assert result.json() == {"id": "t1", "deleted": True}

    def test_delete_needs_confirmation(self, cli) -> None:
        assert cli("tag", "delete", "t1").exit_code == EXIT_INVALID_USAGE

    def test_too_many_arguments(self, cli) -> None:
        result = cli("tag", "delete", "t1", "t2", "--yes")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "too many arguments" in result.stderr

    def test_conflict_from_api(self, cli, api) -> None:
        api.add("POST", "/api/v1/tags", lambda r: httpx.Response(409, json={"code": "conflict", "message": "exists"}))
        result = cli("tag", "create", "--name", "Soup")
        assert result.exit_code == EXIT_CONFLICT
        assert "Error: conflict: exists" in result.stderr

    def test_api_error_json_envelope(self, cli, api) -> None:
        api.add("PUT", "/api/v1/tags/nope", lambda r: httpx.Response(404, json={"code": "not_found", "message": "tag not found"}))
        result = cli("--output", "json", "tag", "update", "nope", "--name", "x")
        assert result.exit_code == EXIT_NOT_FOUND
        assert result.json() == {"error": {"status": 404, "code": "not_found", "message": "tag not found"}}


class TestBook:
    def test_list(self, cli, api) -> None:
        api.add("GET", "/api/v1/recipe-books", [{"id": "b1", "name": "Family"}])
        assert cli("book", "list").stdout == "id\tname\nb1\tFamily\n"

    def test_create(self, cli, api) -> None:
        api.add("POST", "/api/v1/recipe-books", {"id": "b2", "name": "Holiday"})
        cli("book", "create", "--name", "Holiday")
        assert api.body("POST", "/api/v1/recipe-books") == {"name": "Holiday"}

    def test_help_uses_label(self, cli) -> None:
        result = cli("book", "--help")
        assert "Manage recipe books" in result.stdout
        assert "Delete a recipe book" in result.stdout


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


class TestItem:
    def test_list_with_query(self, cli, api) -> None:
        api.add("GET", "/api/v1/items", {"items": [{"id": "i1", "name": "Flour", "store_url": None, "aisle_id": "a1"}]})
        result = cli("item", "list", "-q", "flo", "--limit", "5")
        assert result.stdout.splitlines() == ["id\tname\tstore_url\taisle_id", "i1\tFlour\t\ta1"]
        params = api.calls("GET", "/api/v1/items")[0].url.params
        assert params["q"] == "flo"
        assert params["limit"] == "5"

    def test_negative_limit(self, cli) -> None:
        result = cli("item", "list", "--limit=-1")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "limit must be positive" in result.stderr

    def test_create_payload(self, cli, api) -> None:
        api.add("POST", "/api/v1/items", {"id": "i2"})
        cli("item", "create", "--name", "Salt", "--store-url", "https://shop.test/salt")
        assert api.body("POST", "/api/v1/items") == {
            "name": "Salt",
            "store_url": "https://shop.test/salt",
            "aisle_id": None,
        }

    def test_update(self, cli, api) -> None:
        api.add("PUT", "/api/v1/items/i2", {"id": "i2"})
        cli("item", "update", "i2", "--name", "Sea salt", "--aisle-id", "a9")
        assert api.body("PUT", "/api/v1/items/i2")["aisle_id"] == "a9"

    def test_delete(self, cli, api) -> None:
        api.add("DELETE", "/api/v1/items/i2", None)
        assert cli("--output", "json", "item", "delete", "i2", "--yes").json() == {"id": "i2", "deleted": True}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUser:
    def test_list(self, cli, api) -> None:
        api.add("GET", "/api/v1/users", [{"id": "u1", "username": "alice", "display_name": "Alice", "is_active": True}])
        assert cli("user", "list").stdout.splitlines()[1] == "u1\talice\tAlice\ttrue"

    def test_create_reads_password(self, cli, api) -> None:
        api.add("POST", "/api/v1/users", {"id": "u2", "username": "bob"})
        result = cli("user", "create", "--username", "bob", "--password-stdin", stdin="hunter2\n")
        assert result.exit_code == EXIT_SUCCESS
        assert api.body("POST", "/api/v1/users") == {"username": "bob", "password": "hunter2", "display_name": None}

    def test_create_requires_password_stdin(self, cli) -> None:
        result = cli("user", "create", "--username", "bob")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "password-stdin is required for user create" in result.stderr

    def test_create_empty_password(self, cli) -> None:
        result = cli("user", "create", "--username", "bob", "--password-stdin", stdin="  \n")
        assert "password is required" in result.stderr

    def test_deactivate(self, cli, api) -> None:
        api.add("PUT", "/api/v1/users/u2/deactivate", None)
        result = cli("--output", "json", "user", "deactivate", "u2", "--yes")
        assert result.json() == {"id": "u2", "deactivated": True}


# ---------------------------------------------------------------------------
# Meal plans
# ---------------------------------------------------------------------------


class TestMealPlan:
    def test_list(self, cli, api) -> None:
        api.add("GET", "/api/v1/meal-plans", [{"date": "2026-03-01", "recipe_id": "r1", "title": "Soup"}])
        result = cli("meal-plan", "list", "--start", "2026-03-01", "--end", "2026-03-07")
        assert result.stdout.splitlines() == ["date\trecipe_id\ttitle", "2026-03-01\tr1\tSoup"]
        params = api.calls("GET", "/api/v1/meal-plans")[0].url.params
        assert (params["start"], params["end"]) == ("2026-03-01", "2026-03-07")

    def test_list_requires_range(self, cli) -> None:
        result = cli("meal-plan", "list", "--start", "2026-03-01")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "end is required" in result.stderr

    def test_list_reversed_range(self, cli) -> None:
        result = cli("meal-plan", "list", "--start", "2026-03-07", "--end", "2026-03-01")
        assert "end must be on or after start" in result.stderr

    def test_bad_date(self, cli) -> None:
        result = cli("meal-plan", "create", "--date", "03/01/2026", "--recipe-id", "r1")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "date must be YYYY-MM-DD" in result.stderr

    def test_create(self, cli, api) -> None:
        api.add("POST", "/api/v1/meal-plans", {"date": "2026-03-01", "recipe_id": "r1"})
        cli("meal-plan", "create", "--date", "2026-03-01", "--recipe-id", "r1")
        assert api.body("POST", "/api/v1/meal-plans") == {"date": "2026-03-01", "recipe_id": "r1"}

    def test_delete(self, cli, api) -> None:
        api.add("DELETE", "/api/v1/meal-plans/2026-03-01/r1", None)
        result = cli("--output", "json", "meal-plan", "delete", "--date", "2026-03-01", "--recipe-id", "r1", "--yes")
        assert result.json() == {"date": "2026-03-01", "recipe_id": "r1", "deleted": True}

    def test_rejects_positional(self, cli) -> None:
        result = cli("meal-plan", "create", "extra", "--date", "2026-03-01", "--recipe-id", "r1")
        assert "meal-plan create does not accept arguments" in result.stderr
