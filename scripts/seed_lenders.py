"""
Seed a starter UK lender panel with eligibility criteria.
Run: python -m scripts.seed_lenders (from the project root).
"""
import asyncio
import logging
import os
import sys

# Add parent so we can import the application modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from database import AsyncSessionLocal, init_db
from models import Lender
from models.enums import Role
from services.auth import AuthContext
from services.lenders import create_lender

logger = logging.getLogger("scripts.seed_lenders")

SEED_ADMIN = AuthContext(user_id="system-seed", role=Role.ADMIN)

LENDERS_DATA = [
    {
        "name": "Northgate Business Finance",
        "contact_email": "deals@northgate.example",
        "submission_method": "email",
        "submission_email": "submissions@northgate.example",
        "min_trading_months": 12,
        "min_monthly_revenue": 15_000,
        "absolute_min_loan": 10_000,
        "absolute_max_loan": 500_000,
        "min_term_months": 6,
        "max_term_months": 60,
        "requires_filed_accounts": True,
        "min_filed_accounts_years": 1,
        "prohibited_industries": ["gambling", "adult_entertainment"],
        "is_eligible_panel": True,
    },
    {
        "name": "Harbour Revenue Capital",
        "contact_email": "partners@harbour.example",
        "submission_method": "api",
        "api_endpoint": "https://api.harbour.example/v1/applications",
        "min_trading_months": 6,
        "min_monthly_revenue": 8_000,
        "absolute_min_loan": 5_000,
        "absolute_max_loan": 150_000,
        "min_term_months": 3,
        "max_term_months": 18,
        "requires_card_payments": True,
        "min_card_payment_percentage": 30,
        "accepts_ccjs": True,
        "max_ccj_value": 5_000,
        "is_eligible_panel": True,
    },
    {
        "name": "Oakline Asset Lending",
        "contact_email": "brokers@oakline.example",
        "submission_method": "email",
        "submission_email": "newdeals@oakline.example",
        "min_trading_months": 24,
        "absolute_min_loan": 25_000,
        "absolute_max_loan": 1_000_000,
        "min_term_months": 12,
        "max_term_months": 84,
        "requires_homeowner": True,
        "homeowner_min_loan": 100_000,
        "requires_profitable": True,
        "min_profit_margin_percentage": 5,
        "accepted_business_types": ["limited_company", "llp"],
    },
]


async def seed():
    await init_db()
    async with AsyncSessionLocal() as session:
        for data in LENDERS_DATA:
            existing = await session.execute(select(Lender).where(Lender.name == data["name"]))
            if existing.scalar_one_or_none():
                logger.info("Lender %s already exists, skipping", data["name"])
                continue
            lender = await create_lender(session, SEED_ADMIN, dict(data))
            logger.info("Seeded lender: %s (%s)", lender.name, lender.id)
        await session.commit()
    logger.info("Seed complete.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(seed())
