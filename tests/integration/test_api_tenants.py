# tests/integration/test_api_tenants.py
"""
Integration tests for tenants, their members and module switches.
"""

import pytest

from tests.fixtures.data import CONTACT_ID, SITE_ADMIN_ID, TENANT_ADMIN_ID, TENANT_ID, make_tenant


@pytest.fixture
def seeded(mock_supabase):
    mock_supabase.seed_data("tenants", [make_tenant(), make_tenant("tenant-2", slug="lakeside", name="Lakeside")])
    mock_supabase.seed_data("tenant_users", [
        {"id": "tu-1", "tenant_id": TENANT_ID, "user_id": TENANT_ADMIN_ID, "role": "admin",
         "created_at": "2024-01-01T00:00:00+00:00"},
        {"id": "tu-2", "tenant_id": TENANT_ID, "user_id": CONTACT_ID, "role": "member",
         "created_at": "2024-01-02T00:00:00+00:00"},
    ])
    mock_supabase.seed_data("users", [
        {"id": TENANT_ADMIN_ID, "email": "tenant-admin@example.org", "full_name": "Tess Admin"},
        {"id": CONTACT_ID, "email": "contact@example.org", "full_name": "Cory Contact"},
        {"id": "u-new-admin", "email": "new-admin@example.org", "full_name": "Nia Admin"},
    ])
    mock_supabase.seed_data("modules", [
        {"id": "m-core", "name": "Core", "slug": "core", "is_active": True},
        {"id": "m-users", "name": "Users", "slug": "users", "is_active": True},
        {"id": "m-notifications", "name": "Notifications", "slug": "notifications", "is_active": True},
        {"id": "m-reports", "name": "Reports", "slug": "reports", "is_active": True},
    ])
    mock_supabase.seed_data("tenant_modules", [
        {"id": "tm-1", "tenant_id": TENANT_ID, "module_id": "m-core", "is_enabled": True},
    ])
    return mock_supabase


def _notifications(store, user_id):
    return [n for n in store.rows("notifications") if n["user_id"] == user_id]


class TestTenants:

    def test_list_site_admin_only(self, admin_client, seeded, assert_response_success):
        assert len(assert_response_success(admin_client.get("/api/tenants"))) == 2

    def test_list_forbidden_for_tenant_admin(self, tenant_client, seeded, assert_response_error):
        assert_response_error(tenant_client.get("/api/tenants"), 403, "Site admin access required")

    def test_create(self, admin_client, seeded, assert_response_success):
        data = assert_response_success(admin_client.post("/api/tenants", json={
            "name": "Bayview",
            "slug": "bayview",
            "admin_email": "new-admin@example.org",
            "admin_name": "Nia Admin",
            "city": "Bayview",
        }), 201)

        assert data["slug"] == "bayview"
        assert data["primary_contact_id"] == "u-new-admin"
        assert data["settings"] == {} and data["branding"] == {}

        membership = [m for m in seeded.rows("tenant_users") if m["tenant_id"] == data["id"]]
        assert len(membership) == 1
        assert membership[0]["user_id"] == "u-new-admin"
        assert membership[0]["role"] == "admin"

        enabled = {m["module_id"] for m in seeded.rows("tenant_modules") if m["tenant_id"] == data["id"]}
        assert enabled == {"m-core", "m-users", "m-notifications"}

        audit = seeded.rows("audit_logs")[0]
        assert audit["action"] == "create"
        assert audit["entity_type"] == "tenant"
        assert audit["user_id"] == SITE_ADMIN_ID

    def test_create_without_existing_admin_account(self, admin_client, seeded, assert_response_success):
        data = assert_response_success(admin_client.post("/api/tenants", json={
            "name": "Bayview", "slug": "bayview", "admin_email": "nobody@example.org", "admin_name": "No Body",
        }), 201)

        assert data["primary_contact_id"] is None
        assert not [m for m in seeded.rows("tenant_users") if m["tenant_id"] == data["id"]]

    def test_duplicate_slug(self, admin_client, seeded, assert_response_error):
        assert_response_error(admin_client.post("/api/tenants", json={
            "name": "Harbor", "slug": "harbor-county", "admin_email": "a@example.org", "admin_name": "Al",
        }), 400, "A tenant with this slug already exists")

    def test_invalid_body(self, admin_client, seeded, assert_response_error):
        data = assert_response_error(admin_client.post("/api/tenants", json={
            "name": "B", "slug": "Bad Slug", "admin_email": "not-an-email", "admin_name": "Al",
        }), 400, "Validation failed")

        assert {d["field"] for d in data["details"]} == {"name", "slug", "admin_email"}

    def test_get_own_tenant(self, tenant_client, seeded, assert_response_success):
        assert assert_response_success(tenant_client.get(f"/api/tenants/{TENANT_ID}"))["slug"] == "harbor-county"

    def test_get_other_tenant_forbidden(self, tenant_client, seeded):
        assert tenant_client.get("/api/tenants/tenant-2").status_code == 403

    def test_get_missing(self, admin_client, seeded, assert_response_error):
        assert_response_error(admin_client.get("/api/tenants/missing"), 404, "Tenant not found")

    def test_update(self, tenant_client, seeded, assert_response_success):
        data = assert_response_success(tenant_client.patch(f"/api/tenants/{TENANT_ID}", json={
            "branding": {"primary_color": "#123456"},
        }))

        assert data["branding"] == {"primary_color": "#123456"}
        assert seeded.rows("audit_logs")[0]["metadata"] == {"updates": ["branding"]}

    def test_update_nothing(self, tenant_client, seeded, assert_response_error):
        assert_response_error(
            tenant_client.patch(f"/api/tenants/{TENANT_ID}", json={}), 400, "No valid fields to update",
        )

    def test_delete(self, admin_client, seeded, assert_response_success):
        assert_response_success(admin_client.delete("/api/tenants/tenant-2"))

        assert [t["id"] for t in seeded.rows("tenants")] == [TENANT_ID]
        assert seeded.rows("audit_logs")[0]["action"] == "delete"

    def test_delete_missing(self, admin_client, seeded):
        assert admin_client.delete("/api/tenants/missing").status_code == 404


class TestMembers:

    def test_list_with_profiles(self, contact_client, seeded, assert_response_success):
        data = assert_response_success(contact_client.get(f"/api/tenants/{TENANT_ID}/users"))

        assert [m["user_id"] for m in data] == [TENANT_ADMIN_ID, CONTACT_ID]
        assert data[0]["user"]["full_name"] == "Tess Admin"

    def test_list_requires_membership(self, contact_client, seeded, assert_response_error):
        assert_response_error(contact_client.get("/api/tenants/tenant-2/users"), 403, "Forbidden")

    def test_change_role(self, tenant_client, seeded, assert_response_success):
        data = assert_response_success(
            tenant_client.patch(f"/api/tenants/{TENANT_ID}/users/{CONTACT_ID}", json={"role": "admin"}),
        )

        assert data["role"] == "admin"
        notification = _notifications(seeded, CONTACT_ID)[0]
        assert notification["type"] == "role_changed"
        assert notification["message"] == "You are now an admin of this organization."
        assert seeded.rows("audit_logs")[0]["action"] == "update_user_role"

    def test_invalid_role(self, tenant_client, seeded, assert_response_error):
        assert_response_error(
            tenant_client.patch(f"/api/tenants/{TENANT_ID}/users/{CONTACT_ID}", json={"role": "owner"}),
            400, "role must be one of: admin, member",
        )

    def test_cannot_change_own_role(self, tenant_client, seeded, assert_response_error):
        assert_response_error(
            tenant_client.patch(f"/api/tenants/{TENANT_ID}/users/{TENANT_ADMIN_ID}", json={"role": "member"}),
            400, "You cannot change your own role",
        )

    def test_not_a_member(self, tenant_client, seeded, assert_response_error):
        assert_response_error(
            tenant_client.patch(f"/api/tenants/{TENANT_ID}/users/u-stranger", json={"role": "member"}),
            404, "User is not a member of this tenant",
        )

    def test_remove(self, tenant_client, seeded, assert_response_success):
        assert_response_success(tenant_client.delete(f"/api/tenants/{TENANT_ID}/users/{CONTACT_ID}"))

        assert [m["user_id"] for m in seeded.rows("tenant_users")] == [TENANT_ADMIN_ID]
        assert _notifications(seeded, CONTACT_ID)[0]["type"] == "user_removed"

    def test_cannot_remove_self(self, tenant_client, seeded, assert_response_error):
        assert_response_error(
            tenant_client.delete(f"/api/tenants/{TENANT_ID}/users/{TENANT_ADMIN_ID}"),
            400, "You cannot remove yourself from the tenant",
        )

    def test_members_cannot_manage(self, contact_client, seeded):
        response = contact_client.delete(f"/api/tenants/{TENANT_ID}/users/{TENANT_ADMIN_ID}")
        assert response.status_code == 403


class TestModules:

    def test_catalog(self, contact_client, seeded, assert_response_success):
        data = assert_response_success(contact_client.get("/api/modules"))
        assert [m["slug"] for m in data] == ["core", "notifications", "reports", "users"]

    def test_create_module(self, admin_client, seeded, assert_response_success):
        data = assert_response_success(
            admin_client.post("/api/modules", json={"name": "Analytics", "slug": "analytics"}), 201,
        )

        assert data["is_active"] is True
        assert data["description"] is None

    def test_update_module(self, admin_client, seeded, assert_response_success):
        data = assert_response_success(admin_client.patch("/api/modules", json={"id": "m-reports", "is_active": False}))
        assert data["is_active"] is False

    def test_update_unknown_module(self, admin_client, seeded, assert_response_error):
        assert_response_error(
            admin_client.patch("/api/modules", json={"id": "missing", "name": "X"}), 404, "Module not found",
        )

    def test_catalog_changes_site_admin_only(self, tenant_client, seeded):
        assert tenant_client.post("/api/modules", json={"name": "X", "slug": "x"}).status_code == 403

    def test_tenant_modules(self, tenant_client, seeded, assert_response_success):
        data = assert_response_success(tenant_client.get(f"/api/tenants/{TENANT_ID}/modules"))

        enabled = {m["slug"]: m["is_enabled"] for m in data}
        assert enabled == {"core": True, "notifications": False, "reports": False, "users": False}

    def test_enable_module(self, tenant_client, seeded, assert_response_success):
        data = assert_response_success(
            tenant_client.put(f"/api/tenants/{TENANT_ID}/modules/m-reports", json={"is_enabled": True}),
        )

        assert data["is_enabled"] is True
        notification = _notifications(seeded, TENANT_ADMIN_ID)[0]
        assert notification["type"] == "module_enabled"
        assert notification["title"] == "Reports enabled"
        assert seeded.rows("audit_logs")[0]["action"] == "enable_module"

    def test_disable_existing_switch(self, tenant_client, seeded, assert_response_success):
        seeded.rows("tenant_modules").append(
            {"id": "tm-2", "tenant_id": TENANT_ID, "module_id": "m-reports", "is_enabled": True},
        )

        assert_response_success(
            tenant_client.put(f"/api/tenants/{TENANT_ID}/modules/m-reports", json={"is_enabled": False}),
        )

        switches = [m for m in seeded.rows("tenant_modules") if m["module_id"] == "m-reports"]
        assert len(switches) == 1
        assert switches[0]["is_enabled"] is False

    def test_core_cannot_be_disabled(self, tenant_client, seeded, assert_response_error):
        assert_response_error(
            tenant_client.put(f"/api/tenants/{TENANT_ID}/modules/m-core", json={"is_enabled": False}),
            400, "The core module cannot be disabled",
        )

    def test_unknown_module(self, tenant_client, seeded, assert_response_error):
        assert_response_error(
            tenant_client.put(f"/api/tenants/{TENANT_ID}/modules/missing", json={"is_enabled": True}),
            404, "Module not found",
        )

    def test_other_tenant_forbidden(self, tenant_client, seeded):
        response = tenant_client.put("/api/tenants/tenant-2/modules/m-reports", json={"is_enabled": True})
        assert response.status_code == 403


class TestAuditLogs:

    @pytest.fixture
    def logs(self, seeded):
        seeded.seed_data("audit_logs", [
            {"id": "a-1", "tenant_id": TENANT_ID, "user_id": TENANT_ADMIN_ID, "action": "update",
             "entity_type": "tenant", "created_at": "2024-02-01T10:00:00+00:00"},
            {"id": "a-2", "tenant_id": TENANT_ID, "user_id": TENANT_ADMIN_ID, "action": "enable_module",
             "entity_type": "tenant_module", "created_at": "2024-02-03T10:00:00+00:00"},
            {"id": "a-3", "tenant_id": "tenant-2", "user_id": SITE_ADMIN_ID, "action": "create",
             "entity_type": "tenant", "created_at": "2024-02-05T10:00:00+00:00"},
            {"id": "a-4", "tenant_id": TENANT_ID, "user_id": CONTACT_ID, "action": "update_user_role",
             "entity_type": "tenant_user", "created_at": "2024-02-07T10:00:00+00:00"},
        ])
        return seeded

    def test_site_admin_sees_every_tenant(self, admin_client, logs, assert_response_success):
        data = assert_response_success(admin_client.get("/api/audit-logs"))

        assert [log["id"] for log in data["logs"]] == ["a-4", "a-3", "a-2", "a-1"]
        assert data["pagination"] == {"page": 1, "limit": 50, "total": 4, "pages": 1}

    def test_actor_profile_attached(self, admin_client, logs, assert_response_success):
        data = assert_response_success(admin_client.get("/api/audit-logs"))
        by_id = {log["id"]: log for log in data["logs"]}

        assert by_id["a-1"]["user"] == {"email": "tenant-admin@example.org", "full_name": "Tess Admin"}
        assert by_id["a-3"]["user"] is None

    def test_tenant_admin_sees_own_tenant(self, tenant_client, logs, assert_response_success):
        data = assert_response_success(tenant_client.get("/api/audit-logs"))
        assert [log["id"] for log in data["logs"]] == ["a-4", "a-2", "a-1"]

    def test_filters(self, admin_client, logs, assert_response_success):
        data = assert_response_success(admin_client.get(
            f"/api/audit-logs?user_id={TENANT_ADMIN_ID}&from_date=2024-02-02T00:00:00%2B00:00"
        ))
        assert [log["id"] for log in data["logs"]] == ["a-2"]

        data = assert_response_success(admin_client.get("/api/audit-logs?action_type=create"))
        assert [log["id"] for log in data["logs"]] == ["a-3"]

    def test_pagination(self, admin_client, logs, assert_response_success):
        data = assert_response_success(admin_client.get("/api/audit-logs?page=2&limit=3"))

        assert [log["id"] for log in data["logs"]] == ["a-1"]
        assert data["pagination"] == {"page": 2, "limit": 3, "total": 4, "pages": 2}

    def test_members_forbidden(self, contact_client, logs):
        assert contact_client.get("/api/audit-logs").status_code == 403

    def test_limit_capped(self, admin_client, logs):
        assert admin_client.get("/api/audit-logs?limit=500").status_code == 400
