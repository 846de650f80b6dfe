"""
Tests for manager and staff provisioning.
"""
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from kasir.core.exceptions import InternalError
from kasir.models import AuthAccount, Outlet, Role, User, UserOutlet
from kasir.services.users import UserService


def staff_payload(email: str = "budi@example.com", **extra) -> dict:
    return {"fullname": "Budi Santoso", "email": email, "password": "rahasia123", "phone": "0812", **extra}


class TestCreateManager:
    """Tests for POST /users/manager."""

    def test_owner_creates_manager(self, client: TestClient, db: Session, owner_headers: dict, outlet: Outlet):
        response = client.post(
            "/users/manager", json=staff_payload("mgr2@example.com", outlet_id=outlet.id), headers=owner_headers
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["role"] == "manager"
        assert data["outlet_id"] == outlet.id

        db.expire_all()
        user = db.get(User, data["id"])
        assert user.account.email == "mgr2@example.com"
        assert [link.outlet_id for link in user.outlet_links] == [outlet.id]

    def test_new_manager_can_sign_in(self, client: TestClient, owner_headers: dict, outlet: Outlet):
        client.post("/users/manager", json=staff_payload("mgr2@example.com", outlet_id=outlet.id),
                    headers=owner_headers)

        response = client.post("/auth/signin", json={"email": "mgr2@example.com", "password": "rahasia123"})

        assert response.status_code == 200

    def test_manager_cannot_create_manager(self, client: TestClient, manager_headers: dict, outlet: Outlet):
        response = client.post(
            "/users/manager", json=staff_payload("mgr2@example.com", outlet_id=outlet.id), headers=manager_headers
        )

        assert response.status_code == 403

    def test_unknown_outlet(self, client: TestClient, db: Session, owner_headers: dict):
        response = client.post(
            "/users/manager", json=staff_payload("mgr2@example.com", outlet_id=999), headers=owner_headers
        )

        assert response.status_code == 404
        assert db.query(AuthAccount).filter(AuthAccount.email == "mgr2@example.com").count() == 0


class TestCreateStaff:
    """Tests for POST /users/staff."""

    def test_manager_creates_staff_in_own_outlet(self, client: TestClient, manager_headers: dict,
                                                 outlet: Outlet, other_outlet: Outlet):
        response = client.post(
            "/users/staff", json=staff_payload(outlet_id=other_outlet.id), headers=manager_headers
        )

        assert response.status_code == 201
        assert response.json()["data"]["outlet_id"] == outlet.id
        assert response.json()["data"]["role"] == "staff"

    def test_owner_must_pick_outlet(self, client: TestClient, owner_headers: dict):
        response = client.post("/users/staff", json=staff_payload(), headers=owner_headers)

        assert response.status_code == 400

    def test_owner_creates_staff(self, client: TestClient, owner_headers: dict, other_outlet: Outlet):
        response = client.post("/users/staff", json=staff_payload(outlet_id=other_outlet.id), headers=owner_headers)

        assert response.status_code == 201
        assert response.json()["data"]["outlet_id"] == other_outlet.id

    def test_staff_forbidden(self, client: TestClient, staff_headers: dict):
        response = client.post("/users/staff", json=staff_payload(), headers=staff_headers)

        assert response.status_code == 403

    def test_duplicate_email(self, client: TestClient, staff: User, manager_headers: dict):
        response = client.post("/users/staff", json=staff_payload(staff.email), headers=manager_headers)

        assert response.status_code == 409

    def test_failed_membership_leaves_nothing_behind(self, client: TestClient, db: Session, manager_headers: dict,
                                                     monkeypatch):
        def fail(self, user_id, outlet_id):
            raise InternalError("Failed to save user")

        monkeypatch.setattr(UserService, "_link_outlet", fail)

        response = client.post("/users/staff", json=staff_payload(), headers=manager_headers)

        assert response.status_code == 500
        db.expire_all()
        assert db.query(AuthAccount).filter(AuthAccount.email == "budi@example.com").count() == 0
        assert db.query(User).filter(User.email == "budi@example.com").count() == 0


class TestListStaff:
    """Tests for GET /users/staff."""

    def test_manager_sees_own_outlet(self, client: TestClient, staff: User, other_staff: User,
                                     manager_headers: dict):
        response = client.get("/users/staff", headers=manager_headers)

        assert response.status_code == 200
        assert [u["id"] for u in response.json()["data"]] == [staff.id]

    def test_owner_sees_all_staff(self, client: TestClient, staff: User, other_staff: User, manager: User,
                                  owner_headers: dict):
        response = client.get("/users/staff", headers=owner_headers)

        ids = [u["id"] for u in response.json()["data"]]
        assert ids == [staff.id, other_staff.id]

    def test_staff_forbidden(self, client: TestClient, staff_headers: dict):
        assert client.get("/users/staff", headers=staff_headers).status_code == 403


class TestAddToOutlet:
    """Tests for POST /users/add-to-outlet."""

    def test_assigns_user(self, client: TestClient, db: Session, user_factory, owner_headers: dict,
                          outlet: Outlet):
        loner = user_factory("loner@example.com", Role.STAFF)

        response = client.post(
            "/users/add-to-outlet", json={"user_id": loner.id, "outlet_id": outlet.id}, headers=owner_headers
        )

        assert response.status_code == 201
        assert response.json()["data"]["user_id"] == loner.id

    def test_duplicate_assignment(self, client: TestClient, staff: User, owner_headers: dict, outlet: Outlet):
        response = client.post(
            "/users/add-to-outlet", json={"user_id": staff.id, "outlet_id": outlet.id}, headers=owner_headers
        )

        assert response.status_code == 409

    def test_unknown_user(self, client: TestClient, owner_headers: dict, outlet: Outlet):
        response = client.post(
            "/users/add-to-outlet", json={"user_id": 999, "outlet_id": outlet.id}, headers=owner_headers
        )

        assert response.status_code == 404


class TestDeleteStaff:
    """Tests for DELETE /users/staff/{id}."""

    def test_manager_deletes_own_staff(self, client: TestClient, db: Session, staff: User, manager_headers: dict):
        staff_id, account_id = staff.id, staff.account_id

        response = client.delete(f"/users/staff/{staff_id}", headers=manager_headers)

        assert response.status_code == 200
        db.expire_all()
        assert db.get(User, staff_id) is None
        assert db.get(AuthAccount, account_id) is None
        assert db.query(UserOutlet).filter(UserOutlet.user_id == staff_id).count() == 0

    def test_manager_cannot_delete_other_outlet_staff(self, client: TestClient, other_staff: User,
                                                      manager_headers: dict):
        response = client.delete(f"/users/staff/{other_staff.id}", headers=manager_headers)

        assert response.status_code == 403

    def test_cannot_delete_manager_as_staff(self, client: TestClient, manager: User, owner_headers: dict):
        response = client.delete(f"/users/staff/{manager.id}", headers=owner_headers)

        assert response.status_code == 404

    def test_owner_deletes_any_staff(self, client: TestClient, db: Session, other_staff: User,
                                     owner_headers: dict):
        other_id = other_staff.id

        response = client.delete(f"/users/staff/{other_id}", headers=owner_headers)

        assert response.status_code == 200
        db.expire_all()
        assert db.get(User, other_id) is None


class TestListManagers:
    """Tests for GET /users/managers."""

    def test_owner_lists_managers(self, client: TestClient, manager: User, staff: User, owner_headers: dict,
                                  outlet: Outlet):
        response = client.get("/users/managers", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [(u["id"], u["outlet_id"]) for u in data] == [(manager.id, outlet.id)]

    def test_manager_forbidden(self, client: TestClient, manager_headers: dict):
        response = client.get("/users/managers", headers=manager_headers)

        assert response.status_code == 403


class TestUpdateManager:
    """Tests for PATCH /users/managers/{id}."""

    def test_owner_updates_profile(self, client: TestClient, manager: User, owner_headers: dict, outlet: Outlet):
        response = client.patch(
            f"/users/managers/{manager.id}", json={"fullname": "Sari Dewi", "phone": "0813"}, headers=owner_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["fullname"] == "Sari Dewi"
        assert data["phone"] == "0813"
        assert data["role"] == "manager"
        assert data["outlet_id"] == outlet.id

    def test_new_credentials_apply_to_sign_in(self, client: TestClient, manager: User, owner_headers: dict):
        client.patch(
            f"/users/managers/{manager.id}",
            json={"email": "sari@example.com", "password": "baru12345"},
            headers=owner_headers,
        )

        old = client.post("/auth/signin", json={"email": "manager@example.com", "password": "password123"})
        new = client.post("/auth/signin", json={"email": "sari@example.com", "password": "baru12345"})

        assert old.status_code == 401
        assert new.status_code == 200

    def test_email_taken(self, client: TestClient, manager: User, staff: User, owner_headers: dict):
        response = client.patch(
            f"/users/managers/{manager.id}", json={"email": staff.email}, headers=owner_headers
        )

        assert response.status_code == 409

    def test_staff_is_not_a_manager(self, client: TestClient, staff: User, owner_headers: dict):
        response = client.patch(f"/users/managers/{staff.id}", json={"fullname": "Nama Baru"}, headers=owner_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Manager not found"

    def test_manager_forbidden(self, client: TestClient, manager: User, manager_headers: dict):
        response = client.patch(f"/users/managers/{manager.id}", json={"fullname": "Nama Baru"},
                                headers=manager_headers)

        assert response.status_code == 403


class TestDeleteManager:
    """Tests for DELETE /users/managers/{id}."""

    def test_owner_deletes_manager(self, client: TestClient, db: Session, manager: User, owner_headers: dict):
        manager_id, account_id = manager.id, manager.account_id

        response = client.delete(f"/users/managers/{manager_id}", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["data"]["message"] == "Manager deleted"
        db.expire_all()
        assert db.get(User, manager_id) is None
        assert db.get(AuthAccount, account_id) is None
        assert db.query(UserOutlet).filter(UserOutlet.user_id == manager_id).count() == 0

    def test_cannot_delete_staff_as_manager(self, client: TestClient, staff: User, owner_headers: dict):
        response = client.delete(f"/users/managers/{staff.id}", headers=owner_headers)

        assert response.status_code == 404

    def test_manager_forbidden(self, client: TestClient, manager: User, manager_headers: dict):
        response = client.delete(f"/users/managers/{manager.id}", headers=manager_headers)

        assert response.status_code == 403


class TestUpdateStaff:
    """Tests for PATCH /users/staff/{id}."""

    def test_manager_updates_own_staff(self, client: TestClient, staff: User, manager_headers: dict):
        response = client.patch(f"/users/staff/{staff.id}", json={"address": "Jl. Melati 3"},
                                headers=manager_headers)

        assert response.status_code == 200
        assert response.json()["data"]["address"] == "Jl. Melati 3"

    def test_manager_cannot_update_other_outlet_staff(self, client: TestClient, db: Session, other_staff: User,
                                                      manager_headers: dict):
        response = client.patch(f"/users/staff/{other_staff.id}", json={"fullname": "Nama Baru"},
                                headers=manager_headers)

        assert response.status_code == 403
        db.refresh(other_staff)
        assert other_staff.fullname == "Budi Staff"

    def test_owner_updates_any_staff(self, client: TestClient, other_staff: User, owner_headers: dict):
        response = client.patch(f"/users/staff/{other_staff.id}", json={"email": "rina@example.com"},
                                headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "rina@example.com"

    def test_manager_is_not_staff(self, client: TestClient, manager: User, owner_headers: dict):
        response = client.patch(f"/users/staff/{manager.id}", json={"fullname": "Nama Baru"}, headers=owner_headers)

        assert response.status_code == 404

    def test_staff_forbidden(self, client: TestClient, staff: User, staff_headers: dict):
        response = client.patch(f"/users/staff/{staff.id}", json={"fullname": "Nama Baru"}, headers=staff_headers)

        assert response.status_code == 403

    def test_short_password_rejected(self, client: TestClient, staff: User, manager_headers: dict):
        response = client.patch(f"/users/staff/{staff.id}", json={"password": "123"}, headers=manager_headers)

        assert response.status_code == 400
