# ============================================================================
# Seed Default Pricing
# ============================================================================
"""
Script to store the default pricing table in subscription_settings.

Usage:
    python scripts/seed_pricing.py [--force]
"""

import asyncio
import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import ebedmas.models  # noqa: F401
from ebedmas.core.database import async_session_maker, engine, Base
from ebedmas.core.exceptions import InvalidPricingConfiguration
from ebedmas.services.payments.pricing import PricingStore, derive_yearly_price

YEARLY_DISCOUNT_PERCENTAGE = 20

DEFAULT_PLANS = [
    {
        "id": 1,
        "type": "all_access",
        "title": "All Access",
        "description": "Every subject for every year level",
        "subjects": ["Maths", "English", "Science"],
        "monthlyPrice": 15,
        "monthlyAdditionalChildDiscountAmount": 3,
        "yearlyAdditionalChildDiscountAmount": 30,
        "isSelected": True,
    },
    {
        "id": 2,
        "type": "combo",
        "title": "Maths + English",
        "description": "The two core subjects",
        "subjects": ["Maths", "English"],
        "monthlyPrice": 11,
        "monthlyAdditionalChildDiscountAmount": 3,
        "yearlyAdditionalChildDiscountAmount": 25,
        "isSelected": False,
    },
    {
        "id": 3,
        "type": "single",
        "title": "Single Subject",
        "description": "One subject of your choice",
        "subjects": ["Maths", "English", "Science"],
        "monthlyPrice": 7,
        "monthlyAdditionalChildDiscountAmount": 2,
        "yearlyAdditionalChildDiscountAmount": 15,
        "isSelected": False,
    },
]

def build_plans():
    plans = []
    for plan in DEFAULT_PLANS:
        plans.append({
            **plan,
            "yearlyPrice": derive_yearly_price(plan["monthlyPrice"], YEARLY_DISCOUNT_PERCENTAGE),
            "yearlyDiscountPercentage": YEARLY_DISCOUNT_PERCENTAGE,
        })
    return plans

async def seed_pricing(force: bool = False):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    store = PricingStore()
    async with async_session_maker() as db:
        if not force:
            try:
                table = await store.load(db)
                print(f"Pricing already stored ({len(table.plans)} plans); use --force to overwrite")
                return
            except InvalidPricingConfiguration:
                pass

        table = await store.update(db, build_plans())
        for plan in table.plans:
            print(f"  {plan.type.value}: {plan.monthly_price}/month, {plan.yearly_price}/year")
        print(f"Stored {len(table.plans)} plans")

    await engine.dispose()

def main():
    parser = argparse.ArgumentParser(description="Seed default pricing")
    parser.add_argument("--force", action="store_true", help="Overwrite the stored pricing")
    args = parser.parse_args()
    asyncio.run(seed_pricing(args.force))

if __name__ == "__main__":
    main()
