"""
Tests for the public lawyer directory routes.
"""

from tests.fixtures.store_fixtures import make_account


class TestListLawyers:

    def test_lists_active_lawyers_without_credentials(self, test_client, lawyer_account, other_lawyer):
        response = test_client.get("/api/v1/lawyers")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert {lawyer["name"] for lawyer in data["data"]} == {"Alice Mensah", "Bob Okafor"}
        assert all("password_hash" not in lawyer for lawyer in data["data"])

    def test_filter_by_specialization(self, test_client, lawyer_account, other_lawyer):
        response = test_client.get("/api/v1/lawyers", params={"specialization": "Family Law"})

        assert [lawyer["id"] for lawyer in response.json()["data"]] == [other_lawyer.id]

    def test_filter_matches_specialization_from_professional_info(self, test_client, account_store):
        account_store.add(make_account(
            account_id="esi", email="esi@example.com", professional_info={"specialization": "Tax Law"}
        ))

        response = test_client.get("/api/v1/lawyers", params={"specialization": "Tax Law"})

        lawyers = response.json()["data"]
        assert [lawyer["id"] for lawyer in lawyers] == ["esi"]
        assert lawyers[0]["specialization"] == "Tax Law"

    def test_excludes_clients_and_inactive(self, test_client, account_store, lawyer_account):
        account_store.add(make_account(account_id="client-1", email="c@example.com", role="client"))
        account_store.add(make_account(account_id="off", email="off@example.com", is_active=False))

        response = test_client.get("/api/v1/lawyers")

        assert [lawyer["id"] for lawyer in response.json()["data"]] == [lawyer_account.id]


class TestGetLawyer:

    def test_get_lawyer(self, test_client, lawyer_account):
        response = test_client.get(f"/api/v1/lawyers/{lawyer_account.id}")

        assert response.status_code == 200
        assert response.json()["data"]["bar_number"] == "BAR-1001"

    def test_unknown_lawyer(self, test_client):
        response = test_client.get("/api/v1/lawyers/missing")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Lawyer not found"}


def complete_lawyer(account_id, email, city="Accra", practice_areas=("Tax",), years=5, rate=100, **overrides):
    """A lawyer whose profile passes the completeness check."""
    professional = {
        "practiceAreas": list(practice_areas),
        "yearsOfExperience": years,
        "hourlyRate": rate,
        **overrides.pop("professional_info", {}),
    }
    return make_account(
        account_id=account_id,
        email=email,
        full_name=f"{account_id.title()} Doe",
        personal_info={"firstName": account_id.title(), "lastName": "Doe", "city": city},
        professional_info=professional,
        qualifications=[{"degree": "LLB"}],
        **overrides
    )


class TestSearchLawyers:

    def test_only_complete_profiles(self, test_client, account_store, lawyer_account):
        account_store.add(complete_lawyer("kofi", "kofi@example.com"))

        response = test_client.get("/api/v1/lawyers/search")

        assert response.status_code == 200
        data = response.json()
        assert [lawyer["id"] for lawyer in data["data"]] == ["kofi"]
        assert data["pagination"] == {
            "current_page": 1,
            "total_pages": 1,
            "total_results": 1,
            "has_next": False,
        }

    def test_filters(self, test_client, account_store):
        account_store.add(complete_lawyer(
            "kofi", "kofi@example.com", city="Kumasi", years=10, rate=80,
            professional_info={"isAvailable": True},
        ))
        account_store.add(complete_lawyer("esi", "esi@example.com", city="Accra", years=2, rate=200))
        account_store.add(complete_lawyer("yaw", "yaw@example.com", practice_areas=("Family",), years=12))

        def ids(**params):
            response = test_client.get("/api/v1/lawyers/search", params=params)
            return sorted(lawyer["id"] for lawyer in response.json()["data"])

        assert ids(practiceArea="Tax") == ["esi", "kofi"]
        assert ids(city="kumasi") == ["kofi"]
        assert ids(minExperience=10) == ["kofi", "yaw"]
        assert ids(maxRate=150) == ["kofi", "yaw"]
        assert ids(isAvailable="true") == ["kofi"]
        assert ids(query="ESI") == ["esi"]

    def test_pagination(self, test_client, account_store):
        for i in range(5):
            account_store.add(complete_lawyer(f"lawyer{i}", f"l{i}@example.com"))

        response = test_client.get("/api/v1/lawyers/search", params={"page": 2, "limit": 2})

        data = response.json()
        assert len(data["data"]) == 2
        assert data["pagination"] == {
            "current_page": 2,
            "total_pages": 3,
            "total_results": 5,
            "has_next": True,
        }

    def test_search_is_not_taken_for_an_id(self, test_client):
        response = test_client.get("/api/v1/lawyers/search")
        assert response.status_code == 200

    def test_page_size_bounds(self, test_client):
        assert test_client.get("/api/v1/lawyers/search", params={"limit": 51}).status_code == 422
        assert test_client.get("/api/v1/lawyers/search", params={"page": 0}).status_code == 422
