# Sales API - Record CRUD, search and stats
#
# Exercises the router factory on all four record resources: creator/updater
# stamping, replace-on-update, search, not-found handling and the dashboard.

from datetime import datetime

import mongomock
import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from sales_api.auth import create_access_token
from sales_api.crud import RESOURCES, create_crud_router
from sales_api.database import utcnow
from sales_api.errors import install_error_handlers
from sales_api.stats import collect_stats
from tests.conftest import bearer

GENERAL_SALE = {"magaca": "Ahmed", "date": "2024-01-01", "lacagta": 150}

VALID_PAYLOADS = {
    "/api/general-sales": GENERAL_SALE,
    "/api/daily-breakdown": {"magaca": "Subax", "date": "2024-02-03", "lacagta": 520, "time": "08:00"},
    "/api/customer-credit": {"magaca": "Maryan Nur", "date": "2024-02-03", "lacagta_uhartay": 75},
    "/api/out-of-stock": {"magaca": "Bur cad", "date": "2024-02-03", "nooca": "bur"},
}

COLLECTIONS = {r.path: r.collection for r in RESOURCES}


def create(client, token, path="/api/general-sales", **overrides):
    payload = dict(VALID_PAYLOADS[path], **overrides)
    response = client.post(path, json=payload, headers=bearer(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.crud
class TestCreate:

    @pytest.mark.parametrize("path", list(VALID_PAYLOADS))
    def test_create_stamps_creator_and_updater(self, sales_client, sales_db, admin_p1, path):
        admin_id, token = admin_p1
        data = create(sales_client, token, path)

        stored = sales_db[COLLECTIONS[path]].find_one({"_id": ObjectId(data["_id"])})
        assert stored["createdBy"] == ObjectId(admin_id)
        assert stored["updatedBy"] == ObjectId(admin_id)
        assert stored["createdAt"] is not None

        assert data["createdBy"]["_id"] == admin_id
        assert data["createdBy"]["username"] == "ahmed_p1"
        assert data["updatedBy"]["fullName"] == "Ahmed_P1"

    def test_body_cannot_override_stamps(self, sales_client, sales_db, admin_p1, admin_p2):
        p1_id, token = admin_p1
        p2_id, _ = admin_p2
        data = create(sales_client, token, createdBy=p2_id, updatedBy=p2_id)
        stored = sales_db["generalsales"].find_one({"_id": ObjectId(data["_id"])})
        assert stored["createdBy"] == ObjectId(p1_id)
        assert stored["updatedBy"] == ObjectId(p1_id)

    def test_empty_optionals_become_null(self, sales_client, sales_db, admin_p1):
        _, token = admin_p1
        data = create(sales_client, token, time="", description="   ")
        assert data["time"] is None
        assert data["description"] is None

    def test_date_is_stored_as_datetime(self, sales_client, sales_db, admin_p1):
        _, token = admin_p1
        data = create(sales_client, token)
        stored = sales_db["generalsales"].find_one({"_id": ObjectId(data["_id"])})
        assert stored["date"] == datetime(2024, 1, 1)
        assert data["date"].startswith("2024-01-01")

    def test_out_of_stock_defaults_status(self, sales_client, admin_p1):
        _, token = admin_p1
        data = create(sales_client, token, "/api/out-of-stock")
        assert data["qaangaadh"] == "Dhamaaday"

    @pytest.mark.parametrize("path,missing", [
        ("/api/general-sales", "lacagta"),
        ("/api/customer-credit", "lacagta_uhartay"),
        ("/api/out-of-stock", "nooca"),
        ("/api/daily-breakdown", "magaca"),
        ("/api/daily-breakdown", "date"),
    ])
    def test_missing_required_field(self, sales_client, admin_p1, path, missing):
        _, token = admin_p1
        payload = {k: v for k, v in VALID_PAYLOADS[path].items() if k != missing}
        response = sales_client.post(path, json=payload, headers=bearer(token))
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == f"Missing required fields: {missing}"

    def test_negative_amount_rejected(self, sales_client, admin_p1):
        _, token = admin_p1
        response = sales_client.post("/api/general-sales", json=dict(GENERAL_SALE, lacagta=-5), headers=bearer(token))
        assert response.status_code == 400

    def test_unknown_category_rejected(self, sales_client, admin_p1):
        _, token = admin_p1
        payload = dict(VALID_PAYLOADS["/api/out-of-stock"], nooca="caano")
        response = sales_client.post("/api/out-of-stock", json=payload, headers=bearer(token))
        assert response.status_code == 400


@pytest.mark.crud
class TestReadUpdateDelete:

    def test_get_by_id(self, sales_client, admin_p1):
        _, token = admin_p1
        created = create(sales_client, token)
        response = sales_client.get(f"/api/general-sales/{created['_id']}", headers=bearer(token))
        assert response.status_code == 200
        assert response.json()["data"]["magaca"] == "Ahmed"

    def test_get_unknown_id(self, sales_client, admin_p1):
        _, token = admin_p1
        response = sales_client.get(f"/api/general-sales/{ObjectId()}", headers=bearer(token))
        assert response.status_code == 404
        assert response.json()["message"] == "Item not found"

    def test_malformed_id(self, sales_client, admin_p1):
        _, token = admin_p1
        response = sales_client.get("/api/general-sales/not-an-id", headers=bearer(token))
        assert response.status_code == 400

    def test_update_keeps_creator_and_restamps_updater(self, sales_client, sales_db, admin_p1, admin_p2):
        p1_id, p1_token = admin_p1
        p2_id, p2_token = admin_p2
        created = create(sales_client, p1_token)

        response = sales_client.put(
            f"/api/general-sales/{created['_id']}",
            json={"magaca": "Ahmed Ali", "date": "2024-01-02", "lacagta": 200},
            headers=bearer(p2_token),
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["createdBy"]["_id"] == p1_id
        assert data["updatedBy"]["_id"] == p2_id
        assert data["lacagta"] == 200

        stored = sales_db["generalsales"].find_one({"_id": ObjectId(created["_id"])})
        assert stored["createdBy"] == ObjectId(p1_id)
        assert stored["updatedBy"] == ObjectId(p2_id)
        assert stored["updatedAt"] >= stored["createdAt"]

    def test_update_replaces_optional_fields(self, sales_client, admin_p1):
        _, token = admin_p1
        created = create(sales_client, token, description="first note", time="10:30")
        response = sales_client.put(
            f"/api/general-sales/{created['_id']}",
            json=GENERAL_SALE,
            headers=bearer(token),
        )
        data = response.json()["data"]
        assert data["description"] is None
        assert data["time"] is None

    def test_update_runs_validation(self, sales_client, admin_p1):
        _, token = admin_p1
        created = create(sales_client, token)
        response = sales_client.put(
            f"/api/general-sales/{created['_id']}", json={"magaca": "Ahmed"}, headers=bearer(token)
        )
        assert response.status_code == 400

    def test_update_unknown_id(self, sales_client, admin_p1):
        _, token = admin_p1
        response = sales_client.put(f"/api/general-sales/{ObjectId()}", json=GENERAL_SALE, headers=bearer(token))
        assert response.status_code == 404

    def test_delete(self, sales_client, sales_db, admin_p1):
        _, token = admin_p1
        created = create(sales_client, token)
        response = sales_client.delete(f"/api/general-sales/{created['_id']}", headers=bearer(token))
        assert response.status_code == 200
        assert response.json()["data"]["_id"] == created["_id"]
        assert sales_db["generalsales"].count_documents({}) == 0

    def test_delete_unknown_id_is_not_found(self, sales_client, admin_p1):
        _, token = admin_p1
        response = sales_client.delete(f"/api/general-sales/{ObjectId()}", headers=bearer(token))
        assert response.status_code == 404
        assert response.json()["success"] is False


@pytest.mark.crud
class TestListAndSearch:

    def test_list_sorted_by_date_then_creation(self, sales_client, admin_p1):
        _, token = admin_p1
        create(sales_client, token, magaca="Old", date="2023-12-30")
        create(sales_client, token, magaca="Newest", date="2024-03-01")
        create(sales_client, token, magaca="Middle")

        body = sales_client.get("/api/general-sales", headers=bearer(token)).json()
        assert body["count"] == 3
        assert [item["magaca"] for item in body["data"]] == ["Newest", "Middle", "Old"]

    def test_scenario_two_principals(self, sales_client, admin_p1, admin_p2):
        p1_id, p1_token = admin_p1
        p2_id, p2_token = admin_p2
        create(sales_client, p1_token, magaca="Older", date="2023-06-01", lacagta=10)
        created = create(sales_client, p1_token)

        listed = sales_client.get("/api/general-sales", headers=bearer(p1_token)).json()["data"]
        assert listed[0]["_id"] == created["_id"]

        sales_client.put(f"/api/general-sales/{created['_id']}", json=GENERAL_SALE, headers=bearer(p2_token))
        fetched = sales_client.get(f"/api/general-sales/{created['_id']}", headers=bearer(p1_token)).json()["data"]
        assert fetched["updatedBy"]["_id"] == p2_id
        assert fetched["createdBy"]["_id"] == p1_id

    def test_empty_search_matches_list_all(self, sales_client, admin_p1):
        _, token = admin_p1
        create(sales_client, token)
        create(sales_client, token, magaca="Fatima", lacagta=275)
        everything = sales_client.get("/api/general-sales", headers=bearer(token)).json()
        blank = sales_client.get("/api/general-sales", params={"search": ""}, headers=bearer(token)).json()
        assert [i["_id"] for i in blank["data"]] == [i["_id"] for i in everything["data"]]

    def test_search_is_case_insensitive_substring(self, sales_client, admin_p1):
        _, token = admin_p1
        create(sales_client, token, magaca="Ahmed Ali")
        create(sales_client, token, magaca="Fatima", description="paid for AHMED's order")
        create(sales_client, token, magaca="Omar")
        body = sales_client.get("/api/general-sales", params={"search": "ahmed"}, headers=bearer(token)).json()
        assert sorted(i["magaca"] for i in body["data"]) == ["Ahmed Ali", "Fatima"]

    def test_numeric_search_matches_amount(self, sales_client, admin_p1):
        _, token = admin_p1
        create(sales_client, token, magaca="Ahmed", lacagta=150)
        create(sales_client, token, magaca="Room 150", lacagta=20)
        create(sales_client, token, magaca="Omar", lacagta=1500)
        body = sales_client.get("/api/general-sales", params={"search": "150"}, headers=bearer(token)).json()
        assert sorted(i["magaca"] for i in body["data"]) == ["Ahmed", "Room 150"]

    def test_credit_search_uses_credit_amount(self, sales_client, admin_p1):
        _, token = admin_p1
        create(sales_client, token, "/api/customer-credit", magaca="Cali", lacagta_uhartay=40)
        create(sales_client, token, "/api/customer-credit", magaca="Deeqa", lacagta_uhartay=41)
        body = sales_client.get("/api/customer-credit", params={"search": "40"}, headers=bearer(token)).json()
        assert [i["magaca"] for i in body["data"]] == ["Cali"]

    def test_out_of_stock_search_by_category(self, sales_client, admin_p1):
        _, token = admin_p1
        create(sales_client, token, "/api/out-of-stock", magaca="Sokor cad", nooca="sokor")
        create(sales_client, token, "/api/out-of-stock", magaca="Shampoo", nooca="shampoo")
        body = sales_client.get("/api/out-of-stock", params={"search": "SOKOR"}, headers=bearer(token)).json()
        assert [i["magaca"] for i in body["data"]] == ["Sokor cad"]

    def test_regex_characters_are_literal(self, sales_client, admin_p1):
        _, token = admin_p1
        create(sales_client, token, magaca="Ahmed (shop)")
        response = sales_client.get("/api/general-sales", params={"search": "(shop"}, headers=bearer(token))
        assert response.status_code == 200
        assert response.json()["count"] == 1


class TestStats:

    def test_dashboard_snapshot(self, sales_client, admin_p1):
        admin_id, token = admin_p1
        today = utcnow().strftime("%Y-%m-%d")
        create(sales_client, token, date=today)
        create(sales_client, token, date="2023-01-01")
        create(sales_client, token, "/api/daily-breakdown")
        create(sales_client, token, "/api/customer-credit", date=today, lacagta_uhartay=75)
        create(sales_client, token, "/api/customer-credit", date=today, lacagta_uhartay=25.5)
        create(sales_client, token, "/api/customer-credit", date="2023-01-01", lacagta_uhartay=1000)

        response = sales_client.get("/api/stats", headers=bearer(token))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalGeneralSales"] == 2
        assert data["totalDailyBreakdown"] == 1
        assert data["totalCustomerCredit"] == 3
        assert data["totalOutOfStock"] == 0
        assert data["todayGeneralSales"] == 1
        assert data["todayCustomerCreditTotal"] == pytest.approx(100.5)
        assert data["admin"]["id"] == admin_id

    def test_empty_database(self):
        db = mongomock.MongoClient()["empty"]
        assert collect_stats(db) == {
            "totalGeneralSales": 0,
            "totalDailyBreakdown": 0,
            "totalCustomerCredit": 0,
            "totalOutOfStock": 0,
            "todayGeneralSales": 0,
            "todayCustomerCreditTotal": 0,
        }


class FailingRepository:
    def __init__(self, db, collection_name):
        pass

    def find(self, query, sort=None):
        raise PyMongoError("connection reset")


class TestStoreFailures:

    def _app(self, sales_settings):
        db = mongomock.MongoClient()["failing"]
        app = FastAPI()
        app.state.settings = sales_settings
        app.state.db = db
        install_error_handlers(app, sales_settings)
        app.include_router(create_crud_router(RESOURCES[0], repository_factory=FailingRepository))
        return app

    def _token(self, client):
        admin = {"_id": ObjectId(), "username": "ahmed", "fullName": "Ahmed", "role": "admin", "isActive": True}
        client.app.state.db["admins"].insert_one(admin)
        return create_access_token(admin, client.app.state.settings)

    def test_data_store_error_is_500_with_detail(self, sales_settings):
        client = TestClient(self._app(sales_settings))
        response = client.get("/api/general-sales", headers=bearer(self._token(client)))
        assert response.status_code == 500
        body = response.json()
        assert body == {"success": False, "message": "Error fetching items", "error": "connection reset"}

    def test_detail_hidden_in_production(self, sales_settings):
        sales_settings.environment = "production"
        client = TestClient(self._app(sales_settings))
        response = client.get("/api/general-sales", headers=bearer(self._token(client)))
        assert response.status_code == 500
        assert "error" not in response.json()


class TestNotFoundRoute:

    def test_unknown_route_envelope(self, sales_client):
        response = sales_client.get("/api/nothing-here")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["path"] == "/api/nothing-here"
        assert "/api/general-sales" in body["availableEndpoints"]
