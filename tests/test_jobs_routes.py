"""
tests/test_jobs_routes.py -- Integration tests for /api/jobs routes.

Coverage:
  - Public search: type/state/expired filtering, paging metadata, clamping,
    literal free text, camelCase wire format
  - latest, counts/{field}, slug lookup (200 / 404)
  - Admin create: sequential slugs, duplicate source URL 409, invalid body 400,
    lenient dates
  - Admin delete: 200 / 404
  - Auth failures: 401 without a session, 403 for a non-admin session

Each test module gets its own in-memory database via the module-scoped
api_client fixture. Tests seed what they assert on, using states or
departments no other test in this module uses.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


def _listing_body(**overrides) -> dict:
    body = {
        "type": "job",
        "title": "Staff Nurse Recruitment",
        "department": "Health Services",
        "state": "Kerala",
        "qualification": "B.Sc Nursing",
        "applyLink": "https://example.gov.in/apply",
    }
    body.update(overrides)
    return body


class TestSearch:
    def test_kerala_results_page_two(self, api_client, listing_factory) -> None:
        """type=result&state=Kerala&page=2&limit=10 skips the 10 newest matches."""
        client, _token, _uid = api_client
        store = client.app.state.listing_store
        for n in range(1, 15):
            store.create_listing(
                listing_factory(
                    type="result",
                    state="Kerala",
                    title=f"Kerala Result {n}",
                    created_at=f"2024-02-{n:02d}T00:00:00+00:00",
                )
            )
        store.create_listing(listing_factory(type="result", state="Kerala", is_expired=True))
        store.create_listing(listing_factory(type="job", state="Kerala"))
        store.create_listing(listing_factory(type="result", state="Tamil Nadu"))

        resp = client.get("/api/jobs", params={"type": "result", "state": "Kerala", "page": "2", "limit": "10"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["total"] == 14
        assert data["page"] == 2
        assert data["limit"] == 10
        assert data["totalPages"] == 2
        assert [item["title"] for item in data["items"]] == [f"Kerala Result {n}" for n in range(4, 0, -1)]
        for item in data["items"]:
            assert item["type"] == "result"
            assert item["state"] == "Kerala"
            assert item["isExpired"] is False

    def test_include_expired(self, api_client, listing_factory) -> None:
        client, _token, _uid = api_client
        store = client.app.state.listing_store
        store.create_listing(listing_factory(state="Goa", is_expired=True))
        store.create_listing(listing_factory(state="Goa"))

        hidden = client.get("/api/jobs", params={"state": "Goa"}).json()
        shown = client.get("/api/jobs", params={"state": "Goa", "includeExpired": "1"}).json()
        assert hidden["total"] == 1
        assert all(item["isExpired"] is False for item in hidden["items"])
        assert shown["total"] == 2

    @pytest.mark.parametrize(
        "params, page, limit",
        [
            ({"limit": "1000"}, 1, 50),
            ({"limit": "0"}, 1, 1),
            ({"limit": "abc", "page": "xyz"}, 1, 20),
            ({"page": "-4"}, 1, 20),
        ],
    )
    def test_paging_clamped(self, api_client, params, page, limit) -> None:
        client, _token, _uid = api_client
        data = client.get("/api/jobs", params=params).json()
        assert data["page"] == page
        assert data["limit"] == limit
        assert len(data["items"]) <= limit
        assert data["totalPages"] >= 1

    def test_huge_page_is_capped(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/jobs", params={"page": "1e300", "limit": "50"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["items"] == []
        assert (data["page"] - 1) * data["limit"] <= 2**63 - 1

    def test_empty_result_has_one_page(self, api_client) -> None:
        client, _token, _uid = api_client
        data = client.get("/api/jobs", params={"state": "Atlantis"}).json()
        assert data == {"items": [], "total": 0, "page": 1, "limit": 20, "totalPages": 1}

    def test_free_text_is_literal(self, api_client, listing_factory) -> None:
        client, _token, _uid = api_client
        store = client.app.state.listing_store
        store.create_listing(listing_factory(title="C++ Programmer", department="Software Cell"))
        store.create_listing(listing_factory(title="C Programmer", department="Software Cell"))

        resp = client.get("/api/jobs", params={"q": "c++"})
        assert resp.status_code == 200
        assert [item["title"] for item in resp.json()["items"]] == ["C++ Programmer"]

    def test_wire_format_is_camel_case(self, api_client, listing_factory) -> None:
        client, _token, _uid = api_client
        client.app.state.listing_store.create_listing(
            listing_factory(
                state="Sikkim",
                age_limit="18-35",
                notification_pdf="https://example.gov.in/n.pdf",
                source_name="Sikkim PSC",
                source_url="https://spsc.example.gov.in/1",
            )
        )
        item = client.get("/api/jobs", params={"state": "Sikkim"}).json()["items"][0]
        assert item["ageLimit"] == "18-35"
        assert item["notificationPDF"] == "https://example.gov.in/n.pdf"
        assert item["applyLink"] == "https://example.gov.in/apply"
        assert item["source"] == {"name": "Sikkim PSC", "url": "https://spsc.example.gov.in/1"}
        assert "createdAt" in item
        assert "age_limit" not in item


class TestLatestCountsAndSlug:
    def test_latest_defaults_and_cap(self, api_client, listing_factory) -> None:
        client, _token, _uid = api_client
        store = client.app.state.listing_store
        for n in range(3):
            store.create_listing(listing_factory(type="admit-card", title=f"Admit Card {n}"))
        store.create_listing(listing_factory(type="admit-card", is_expired=True))

        data = client.get("/api/jobs/latest", params={"type": "admit-card"}).json()
        assert len(data["items"]) == 3
        assert all(item["type"] == "admit-card" and not item["isExpired"] for item in data["items"])
        assert len(client.get("/api/jobs/latest", params={"type": "admit-card", "limit": "2"}).json()["items"]) == 2

    def test_counts_by_qualification(self, api_client, listing_factory) -> None:
        client, _token, _uid = api_client
        store = client.app.state.listing_store
        for qualification in ("ITI", "ITI", "Diploma"):
            store.create_listing(listing_factory(type="result", state="Manipur", qualification=qualification))

        rows = client.get("/api/jobs/counts/qualification", params={"type": "result"}).json()["rows"]
        counts = {row["key"]: row["count"] for row in rows}
        assert counts["ITI"] == 2
        assert counts["Diploma"] == 1
        assert [row["count"] for row in rows] == sorted((row["count"] for row in rows), reverse=True)

    def test_counts_rejects_unknown_field(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/jobs/counts/title")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid input"}

    def test_slug_lookup(self, api_client, listing_factory) -> None:
        client, _token, _uid = api_client
        client.app.state.listing_store.create_listing(listing_factory(slug="unique-slug-lookup"))
        resp = client.get("/api/jobs/slug/unique-slug-lookup")
        assert resp.status_code == 200
        assert resp.json()["item"]["slug"] == "unique-slug-lookup"

    def test_slug_not_found(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.get("/api/jobs/slug/no-such-listing")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}


class TestCreateAndDelete:
    def test_same_title_gets_sequential_slugs(self, api_client, admin_headers) -> None:
        client, _token, _uid = api_client
        first = client.post(
            "/api/jobs",
            json=_listing_body(source={"name": "Kerala PSC", "url": "https://keralapsc.example.gov.in/a"}),
            headers=admin_headers,
        )
        second = client.post(
            "/api/jobs",
            json=_listing_body(source={"name": "Kerala PSC", "url": "https://keralapsc.example.gov.in/b"}),
            headers=admin_headers,
        )
        assert first.status_code == 200, first.text
        assert second.status_code == 200, second.text
        assert first.json()["ok"] is True
        assert first.json()["slug"] == "staff-nurse-recruitment"
        assert second.json()["slug"] == "staff-nurse-recruitment-2"
        assert first.json()["id"] != second.json()["id"]

    def test_duplicate_source_url_conflicts(self, api_client, admin_headers) -> None:
        client, _token, _uid = api_client
        body = _listing_body(title="Village Officer", source={"name": "PSC", "url": "https://psc.example.gov.in/dup"})
        assert client.post("/api/jobs", json=body, headers=admin_headers).status_code == 200
        resp = client.post("/api/jobs", json=body, headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json() == {"error": "Duplicate job (source URL already exists)"}

    def test_created_listing_is_readable(self, api_client, admin_headers) -> None:
        client, _token, _uid = api_client
        body = _listing_body(
            title="Junior Engineer Notification",
            startDate="2024-03-01",
            lastDate="2024-03-31T18:30:00.000Z",
            notificationPDF="https://example.gov.in/je.pdf",
        )
        slug = client.post("/api/jobs", json=body, headers=admin_headers).json()["slug"]
        item = client.get(f"/api/jobs/slug/{slug}").json()["item"]
        assert item["title"] == "Junior Engineer Notification"
        assert item["startDate"] == "2024-03-01"
        assert item["lastDate"] == "2024-03-31"
        assert item["notificationPDF"] == "https://example.gov.in/je.pdf"
        assert item["isExpired"] is False
        assert item["source"] is None

    def test_unparseable_date_is_dropped(self, api_client, admin_headers) -> None:
        client, _token, _uid = api_client
        body = _listing_body(title="Lenient Date Listing", lastDate="next tuesday")
        resp = client.post("/api/jobs", json=body, headers=admin_headers)
        assert resp.status_code == 200
        item = client.get(f"/api/jobs/slug/{resp.json()['slug']}").json()["item"]
        assert item["lastDate"] is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": "ab"},
            {"applyLink": "not a url"},
            {"type": "internship"},
            {"state": "K"},
            {"source": {"name": "X", "url": "https://example.gov.in"}},
        ],
    )
    def test_invalid_body_returns_400(self, api_client, admin_headers, overrides) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/jobs", json=_listing_body(**overrides), headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid input"}

    def test_delete(self, api_client, admin_headers, listing_factory) -> None:
        client, _token, _uid = api_client
        listing_id = client.app.state.listing_store.create_listing(listing_factory())
        resp = client.delete(f"/api/jobs/{listing_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        assert client.delete(f"/api/jobs/{listing_id}", headers=admin_headers).status_code == 404

    def test_delete_id_beyond_integer_column_is_not_found(self, api_client, admin_headers) -> None:
        client, _token, _uid = api_client
        resp = client.delete(f"/api/jobs/{2**63}", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    def test_slug_taken_after_check_conflicts(self, api_client, admin_headers, monkeypatch) -> None:
        client, _token, _uid = api_client
        store = client.app.state.listing_store
        body = _listing_body(title="Lineman Recruitment Drive")
        assert client.post("/api/jobs", json=body, headers=admin_headers).status_code == 200

        monkeypatch.setattr(store, "slug_exists", lambda slug: False)
        resp = client.post("/api/jobs", json=body, headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json() == {"error": "Duplicate job (source URL already exists)"}
        assert store.get_by_slug("lineman-recruitment-drive").title == "Lineman Recruitment Drive"


class TestAuthFailures:
    def test_create_unauthenticated(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/jobs", json=_listing_body())
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    def test_create_with_bad_token(self, api_client) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/jobs", json=_listing_body(), headers={"Authorization": "Bearer forged"})
        assert resp.status_code == 401

    def test_create_as_regular_user(self, api_client, user_headers) -> None:
        client, _token, _uid = api_client
        resp = client.post("/api/jobs", json=_listing_body(), headers=user_headers)
        assert resp.status_code == 403
        assert resp.json() == {"error": "Forbidden"}

    def test_delete_as_regular_user(self, api_client, user_headers) -> None:
        client, _token, _uid = api_client
        assert client.delete("/api/jobs/1", headers=user_headers).status_code == 403

    def test_delete_unauthenticated(self, api_client) -> None:
        client, _token, _uid = api_client
        assert client.delete("/api/jobs/1").status_code == 401
