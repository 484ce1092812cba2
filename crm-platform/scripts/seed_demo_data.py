"""
Seed demo data for local testing and demos.

Creates (once) an admin, a supervisor and an agent profile, two prospects for
the agent (one converted to a client), and a fresh sign-up access code.

The profiles are created directly in the users table. To sign in as one of
them, create an identity with the same email in Supabase Auth and set the
profile id to the identity's user id.
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path so we can import from services
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import configure_logging  # noqa: E402
from domain.prospect import LeadDetails  # noqa: E402
from domain.user import UserRole  # noqa: E402
from repositories.client import get_supabase  # noqa: E402
from repositories.supabase_store import SupabaseEntityStore  # noqa: E402
from services import user_service  # noqa: E402
from services.access_code_service import AccessCodeGate  # noqa: E402
from services.lifecycle_service import LifecycleEngine  # noqa: E402

DEMO_USERS = [
    ("admin@demo.example.com", "Demo", "Admin", UserRole.ADMIN, None),
    ("supervisor@demo.example.com", "Demo", "Supervisor", UserRole.SUPERVISOR, None),
    ("agent@demo.example.com", "Demo", "Agent", UserRole.AGENT, "AG-001"),
]

DEMO_LEADS = [
    LeadDetails(
        full_name="Paul Durand",
        phone="0102030405",
        country_code="+225",
        country="Côte d'Ivoire",
        city="Abidjan",
        email="paul.durand@example.com",
        source="Referral",
        product_of_interest="Pack Enterprise",
    ),
    LeadDetails(
        full_name="Fatou Diallo",
        phone="771234567",
        country_code="+221",
        country="Senegal",
        city="Dakar",
        email="fatou.diallo@example.com",
        source="Website",
        product_of_interest="Pack Starter",
    ),
]


async def seed_demo_data() -> None:
    store = SupabaseEntityStore(await get_supabase())

    existing = {u.email: u for u in await user_service.list_users(store)}
    profiles = {}
    for email, first_name, last_name, role, agent_code in DEMO_USERS:
        if email in existing:
            print(f"User already exists: {email} ({existing[email].user_id})")
            profiles[role] = existing[email]
            continue
        profiles[role] = await user_service.create_user(
            store,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            agent_code=agent_code,
        )
        print(f"[SUCCESS] Created {role.value}: {email} ({profiles[role].user_id})")

    agent = profiles[UserRole.AGENT]
    engine = LifecycleEngine(store)
    if await engine.list_prospects(agent.user_id):
        print(f"Agent {agent.email} already has prospects; skipping")
    else:
        first, second = [await engine.create_prospect(agent.user_id, lead) for lead in DEMO_LEADS]
        conversion = await engine.convert_prospect(first.prospect_id)
        print(f"[SUCCESS] Prospects created: {first.details.full_name}, {second.details.full_name}")
        print(f"  Client: {conversion.client.full_name} ({conversion.client.client_id})")

    code = await AccessCodeGate(store).generate_code()
    print(f"[SUCCESS] Access code: {code.code} (valid until {code.expires_at.isoformat()})")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed_demo_data())
