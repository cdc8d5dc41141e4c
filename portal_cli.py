#!/usr/bin/env python3
"""
Citizen services portal CLI for database setup and quick API checks
"""

import argparse
import logging

import requests

from app.config import PUBLIC_BASE_URL
from app.database import Base, SessionLocal, engine
from app.models import AppRole, User
from app.policies import AccessContext
from app.seed import seed_catalog
from app.services.account_service import AccountService

logger = logging.getLogger("portal_cli")

# Role grants from the CLI act as an administrator
CLI_CONTEXT = AccessContext(user_id="portal-cli", roles=frozenset({AppRole.ADMIN}))


def init_db():
    """Create all tables."""
    Base.metadata.create_all(bind=engine)
    print("✅ Database tables created")


def seed():
    """Load the reference departments and services."""
    db = SessionLocal()
    try:
        added = seed_catalog(db)
    finally:
        db.close()
    print(f"✅ Added {added['departments']} departments and {added['services']} services")


def grant_role(email: str, role: str) -> bool:
    """Grant a role to an existing account."""
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            print(f"❌ No account registered for {email}")
            return False
        AccountService(db).grant_role(CLI_CONTEXT, user.id, AppRole(role))
    finally:
        db.close()
    print(f"✅ Granted {role} to {email}")
    return True


def list_services(base_url: str = PUBLIC_BASE_URL):
    """List active services from a running API."""
    url = f"{base_url.rstrip('/')}/services"

    try:
        response = requests.get(url, timeout=10)
        response.raise_for_status()

        services = response.json()

        print(f"\n📋 {len(services)} active services")
        print("=" * 80)
        for i, service in enumerate(services, 1):
            department = (service.get("department") or {}).get("name", "No department")
            print(f"\n{i}. {service.get('name')} ({department})")
            print(f"   Fee: ₹{service.get('fee')}")
            print(f"   Processing: {service.get('processing_time_days')} days")
            print(f"   Documents: {', '.join(service.get('required_documents', []))}")
            print("-" * 80)

        return services

    except requests.exceptions.RequestException as e:
        print(f"❌ Request failed: {e}")
        return None


def main():
    parser = argparse.ArgumentParser(description="Citizen Services Portal CLI Tool")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create database tables")
    subparsers.add_parser("seed", help="Seed departments and services")

    grant_parser = subparsers.add_parser("grant-role", help="Grant a role to an account")
    grant_parser.add_argument("email", help="Account email")
    grant_parser.add_argument("role", choices=[r.value for r in AppRole], help="Role to grant")

    services_parser = subparsers.add_parser("services", help="List services from a running API")
    services_parser.add_argument("--base-url", default=PUBLIC_BASE_URL, help="API base URL")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    if args.command == "init-db":
        init_db()
    elif args.command == "seed":
        init_db()
        seed()
    elif args.command == "grant-role":
        grant_role(args.email, args.role)
    elif args.command == "services":
        list_services(args.base_url)
    else:
        parser.print_help()

if __name__ == "__main__":
    main()
