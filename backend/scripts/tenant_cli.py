#!/usr/bin/env python3
"""
Tenant administration CLI for the E-Masjid SaaS tenant service.

Sub-commands:
    add     Register a tenant (its database is created and seeded by the service)
    list    List every tenant
    search  Show one tenant by name

Example Usage:
    ```bash
    python scripts/tenant_cli.py add --name acme --namespace masjid --separate-db \\
        --keycloak-client-id acme-web --manager-role manager --user-role member
    python scripts/tenant_cli.py list
    python scripts/tenant_cli.py search --name acme
    ```

The service URL defaults to http://localhost:8090/api/v1 and can be changed
with ``--url`` or the TENANT_SERVICE_URL environment variable.
"""

import argparse
import os
import sys
from typing import Any

import httpx

DEFAULT_URL = "http://localhost:8090/api/v1"

DETAIL_FIELDS = [
    ("TENANT ID", "id"),
    ("NAME", "name"),
    ("NAMESPACE", "namespace"),
    ("MANAGER ROLE", "managerRole"),
    ("USER ROLE", "userRole"),
    ("KEYCLOAK CLIENT ID", "keycloakClientId"),
    ("KEYCLOAK SERVER", "keycloakServer"),
    ("KEYCLOAK JWKS URL", "keycloakJwksUrl"),
]


def format_tenant(tenant: dict[str, Any]) -> str:
    width = max(len(label) for label, _ in DETAIL_FIELDS) + 2
    lines = ["Tenant Detailed Informations", "-" * 28]
    for label, key in DETAIL_FIELDS:
        lines.append(f"{label + ':':<{width}} {tenant.get(key) or ''}")
    return "\n".join(lines)


def format_tenant_table(tenants: list[dict[str, Any]]) -> str:
    rows = [("TENANT ID", "NAME", "KEYCLOAK CLIENT ID", "CREATED DATE")]
    rows += [
        (t["id"], t["name"], t.get("keycloakClientId") or "", (t.get("createdAt") or "")[:10])
        for t in tenants
    ]
    widths = [max(len(str(row[i])) for row in rows) for i in range(len(rows[0]))]
    return "\n".join(
        "  ".join(str(value).ljust(widths[i]) for i, value in enumerate(row)).rstrip()
        for row in rows
    )


def add_tenant(client: httpx.Client, args: argparse.Namespace) -> int:
    payload = {
        "name": args.name,
        "namespace": args.namespace,
        "separateDb": args.separate_db,
        "keycloakClientId": args.keycloak_client_id,
        "keycloakServer": args.keycloak_server,
        "keycloakJwksUrl": args.keycloak_jwks_url,
        "managerRole": args.manager_role,
        "userRole": args.user_role,
    }
    response = client.post("/admin/tenant", json=payload)
    if response.status_code != httpx.codes.CREATED:
        print(f"Error creating new tenant: {response.json().get('detail', response.text)}")
        return 1
    print(format_tenant(response.json()))
    return 0


def list_tenants(client: httpx.Client, args: argparse.Namespace) -> int:
    response = client.get("/admin/tenants")
    response.raise_for_status()
    print(format_tenant_table(response.json()))
    return 0


def search_tenant(client: httpx.Client, args: argparse.Namespace) -> int:
    response = client.get(f"/admin/tenant/{args.name}")
    if response.status_code == httpx.codes.NOT_FOUND:
        print("Tenant not found")
        return 1
    response.raise_for_status()
    print(format_tenant(response.json()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage E-Masjid.My SaaS tenants")
    parser.add_argument(
        "--url",
        default=os.environ.get("TENANT_SERVICE_URL", DEFAULT_URL),
        help="Tenant service API base URL",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Add a new tenant")
    add.add_argument("--name", required=True, help="Tenant name (must be unique)")
    add.add_argument("--namespace", default="", help="Tenant namespace")
    add.add_argument("--separate-db", action="store_true", help="Give the tenant its own database")
    add.add_argument("--keycloak-client-id", help="Keycloak client id")
    add.add_argument("--keycloak-server", help="Keycloak server URL")
    add.add_argument("--keycloak-jwks-url", help="Keycloak JWKS URL")
    add.add_argument("--manager-role", help="Role granted to tenant managers")
    add.add_argument("--user-role", help="Role granted to tenant users")
    add.set_defaults(handler=add_tenant)

    list_parser = subparsers.add_parser("list", help="List all tenants")
    list_parser.set_defaults(handler=list_tenants)

    search = subparsers.add_parser("search", help="Search for tenant by name")
    search.add_argument("--name", required=True, help="Tenant name")
    search.set_defaults(handler=search_tenant)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        with httpx.Client(base_url=args.url, timeout=30.0) as client:
            return args.handler(client, args)
    except httpx.HTTPError as e:
        print(f"Request to tenant service failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
