"""
Tests for the tenant administration CLI against a mocked transport.
"""

import json

import httpx

from scripts.tenant_cli import (
    add_tenant,
    build_parser,
    format_tenant_table,
    list_tenants,
    search_tenant,
)

TENANT = {
    "id": "42",
    "name": "acme",
    "namespace": "masjid",
    "keycloakClientId": "acme-web",
    "createdAt": "2024-05-01T10:00:00Z",
}


def make_client(handler):
    return httpx.Client(base_url="http://tenant-service/api/v1", transport=httpx.MockTransport(handler))


class TestTenantCli:
    def test_add_posts_camel_case_payload(self, capsys):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=TENANT)

        args = build_parser().parse_args(
            ["add", "--name", "acme", "--separate-db", "--keycloak-client-id", "acme-web"]
        )
        with make_client(handler) as client:
            assert add_tenant(client, args) == 0

        assert seen["path"] == "/api/v1/admin/tenant"
        assert seen["body"]["separateDb"] is True
        assert seen["body"]["keycloakClientId"] == "acme-web"
        assert "acme-web" in capsys.readouterr().out

    def test_add_reports_conflict(self, capsys):
        args = build_parser().parse_args(["add", "--name", "acme"])
        with make_client(lambda request: httpx.Response(409, json={"detail": "Tenant already exists."})) as client:
            assert add_tenant(client, args) == 1

        assert "Tenant already exists." in capsys.readouterr().out

    def test_search_not_found(self, capsys):
        args = build_parser().parse_args(["search", "--name", "nobody"])
        with make_client(lambda request: httpx.Response(404, json={"detail": "Tenant not found."})) as client:
            assert search_tenant(client, args) == 1

        assert "Tenant not found" in capsys.readouterr().out

    def test_list_prints_table(self, capsys):
        def handler(request):
            assert request.url.path == "/api/v1/admin/tenants"
            return httpx.Response(200, json=[TENANT])

        args = build_parser().parse_args(["list"])
        with make_client(handler) as client:
            assert list_tenants(client, args) == 0

        assert "acme-web" in capsys.readouterr().out

    def test_table_format(self):
        table = format_tenant_table([TENANT])

        header, row = table.splitlines()
        assert header.split() == ["TENANT", "ID", "NAME", "KEYCLOAK", "CLIENT", "ID", "CREATED", "DATE"]
        assert row.split() == ["42", "acme", "acme-web", "2024-05-01"]
