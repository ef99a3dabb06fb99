# ============================================================================
# Plan Pricing
# ============================================================================
"""
Pricing for subscription plans.

Each plan carries two independently configured discounts:
- the yearly percentage discount, already baked into the stored yearly price
- a flat per-additional-learner amount, applied here at calculation time

The pricing table is stored as one JSON blob in subscription_settings and
held in memory as an immutable snapshot. It is parsed and validated on load,
and swapped wholesale on update or explicit reload.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple, Union
import asyncio
import json
import logging

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ebedmas.config import get_settings
from ebedmas.core.exceptions import (
    InvalidPricingConfiguration,
    InvalidPricingUpdate,
    PersistenceFailure,
    UnknownPlan,
)
from ebedmas.models.subscription import BillingCycle, PlanType, SubscriptionSetting

settings = get_settings()
logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


# ============================================================================
# Calculation
# ============================================================================
def calculate_final_price(
    base_price: Union[Decimal, int, float, str],
    learner_count: int,
    additional_learner_discount: Union[Decimal, int, float, str],
) -> Decimal:
    """
    Price for ``learner_count`` learners on one plan and billing cycle.

    The first learner pays ``base_price``; every further learner pays
    ``base_price - additional_learner_discount``. The discount is assumed to
    have been validated against the base price when the plan was configured.
    """
    base_price = to_money(base_price)
    if learner_count <= 1:
        return base_price

    per_additional_learner_price = base_price - to_money(additional_learner_discount)
    return to_money(base_price + per_additional_learner_price * (learner_count - 1))


def derive_yearly_price(
    monthly_price: Union[Decimal, int, float, str],
    yearly_discount_percentage: Union[Decimal, int, float, str],
) -> Decimal:
    """Yearly price as a percentage off twelve months of the monthly price"""
    monthly_equivalent = to_money(monthly_price) * 12
    factor = (Decimal(100) - Decimal(str(yearly_discount_percentage))) / Decimal(100)
    return to_money(monthly_equivalent * factor)


# ============================================================================
# Plan Records
# ============================================================================
class PricingPlan(BaseModel):
    """One plan record of the stored pricing blob (camelCase keys on the wire)"""
    id: Optional[int] = None
    type: PlanType
    title: str = Field(..., min_length=1)
    description: str = ""
    subjects: Tuple[str, ...] = ()
    monthly_price: Decimal = Field(..., alias="monthlyPrice", ge=0)
    yearly_price: Decimal = Field(..., alias="yearlyPrice", ge=0)
    yearly_discount_percentage: Decimal = Field(Decimal(0), alias="yearlyDiscountPercentage", ge=0, le=100)
    monthly_additional_child_discount_amount: Decimal = Field(
        Decimal(0), alias="monthlyAdditionalChildDiscountAmount", ge=0
    )
    yearly_additional_child_discount_amount: Decimal = Field(
        Decimal(0), alias="yearlyAdditionalChildDiscountAmount", ge=0
    )
    is_selected: bool = Field(False, alias="isSelected")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="after")
    def check_discount_within_price(self):
        if self.monthly_additional_child_discount_amount > self.monthly_price:
            raise ValueError("Monthly additional child discount cannot be greater than the monthly plan price")
        if self.yearly_additional_child_discount_amount > self.yearly_price:
            raise ValueError("Yearly additional child discount cannot be greater than the yearly plan price")
        return self

    def base_price(self, billing_cycle: BillingCycle) -> Decimal:
        if BillingCycle(billing_cycle) == BillingCycle.YEARLY:
            return self.yearly_price
        return self.monthly_price

    def additional_learner_discount(self, billing_cycle: BillingCycle) -> Decimal:
        if BillingCycle(billing_cycle) == BillingCycle.YEARLY:
            return self.yearly_additional_child_discount_amount
        return self.monthly_additional_child_discount_amount

    def to_blob(self) -> Dict:
        return self.model_dump(by_alias=True)


_plan_list_adapter = TypeAdapter(List[PricingPlan])


@dataclass(frozen=True)
class PriceQuote:
    plan_type: PlanType
    billing_cycle: BillingCycle
    learner_count: int
    base_price: Decimal
    additional_learner_discount: Decimal
    undiscounted_total: Decimal
    total: Decimal

    @property
    def savings(self) -> Decimal:
        return self.undiscounted_total - self.total

    def to_dict(self) -> Dict:
        return {
            "plan_type": self.plan_type.value,
            "billing_cycle": self.billing_cycle.value,
            "learner_count": self.learner_count,
            "base_price": self.base_price,
            "additional_learner_discount": self.additional_learner_discount,
            "undiscounted_total": self.undiscounted_total,
            "total": self.total,
            "savings": self.savings,
        }


@dataclass(frozen=True)
class PricingTable:
    """Immutable, validated set of plan records"""
    plans: Tuple[PricingPlan, ...]

    @classmethod
    def from_records(cls, records: Iterable) -> "PricingTable":
        try:
            plans = _plan_list_adapter.validate_python(list(records))
        except ValidationError as e:
            raise InvalidPricingConfiguration(str(e.errors()[0].get("msg", e)))

        seen = set()
        for plan in plans:
            if plan.type in seen:
                raise InvalidPricingConfiguration(f"duplicate plan type '{plan.type.value}'")
            seen.add(plan.type)
        return cls(plans=tuple(plans))

    @classmethod
    def from_blob(cls, raw: str) -> "PricingTable":
        try:
            records = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise InvalidPricingConfiguration(f"blob is not valid JSON ({e})")
        if not isinstance(records, list):
            raise InvalidPricingConfiguration("expected a list of plan records")
        return cls.from_records(records)

    def to_blob(self) -> str:
        return json.dumps([plan.to_blob() for plan in self.plans], default=float)

    def plan_for(self, plan_type: Union[PlanType, str]) -> PricingPlan:
        for plan in self.plans:
            if plan.type == PlanType(plan_type):
                return plan
        raise UnknownPlan(PlanType(plan_type).value)

    def quote(
        self,
        plan_type: Union[PlanType, str],
        billing_cycle: Union[BillingCycle, str],
        learner_count: int,
    ) -> PriceQuote:
        plan = self.plan_for(plan_type)
        billing_cycle = BillingCycle(billing_cycle)
        base_price = to_money(plan.base_price(billing_cycle))
        discount = to_money(plan.additional_learner_discount(billing_cycle))

        return PriceQuote(
            plan_type=plan.type,
            billing_cycle=billing_cycle,
            learner_count=learner_count,
            base_price=base_price,
            additional_learner_discount=discount,
            undiscounted_total=to_money(base_price * max(learner_count, 1)),
            total=calculate_final_price(base_price, learner_count, discount),
        )


# ============================================================================
# Process-wide Snapshot
# ============================================================================
class PricingStore:
    """
    Holds the current PricingTable.

    Readers get the snapshot without touching the database. Writers validate
    the new table, persist it, and only then swap the snapshot in.
    """

    def __init__(self, setting_name: Optional[str] = None):
        self.setting_name = setting_name or settings.PRICING_SETTING_NAME
        self._table: Optional[PricingTable] = None
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._table is not None

    def current(self) -> PricingTable:
        if self._table is None:
            raise InvalidPricingConfiguration("pricing has not been loaded")
        return self._table

    def clear(self) -> None:
        self._table = None

    async def _read_setting(self, db: AsyncSession) -> Optional[SubscriptionSetting]:
        result = await db.execute(
            select(SubscriptionSetting).where(SubscriptionSetting.name == self.setting_name)
        )
        return result.scalar_one_or_none()

    async def load(self, db: AsyncSession) -> PricingTable:
        """(Re)load the snapshot from the stored blob"""
        async with self._lock:
            setting = await self._read_setting(db)
            if setting is None:
                raise InvalidPricingConfiguration(f"no '{self.setting_name}' setting stored")

            table = PricingTable.from_blob(setting.value)
            self._table = table
            logger.info(f"Loaded pricing snapshot with {len(table.plans)} plans")
            return table

    async def refresh(self, session_factory) -> Optional[PricingTable]:
        """Reload in a fresh session; on failure the current snapshot stays in place"""
        async with session_factory() as db:
            try:
                return await self.load(db)
            except InvalidPricingConfiguration as e:
                logger.warning(f"Pricing reload skipped: {e.detail}")
            except SQLAlchemyError as e:
                logger.error(f"Pricing reload failed: {e}")
        return None

    async def refresh_every(self, session_factory, interval_seconds: float) -> None:
        """Pick up pricing written by other API processes until cancelled"""
        while True:
            await asyncio.sleep(interval_seconds)
            await self.refresh(session_factory)

    async def update(self, db: AsyncSession, records: Iterable) -> PricingTable:
        """Validate, persist and publish a new pricing table"""
        if isinstance(records, PricingTable):
            table = records
        else:
            try:
                table = PricingTable.from_records(
                    plan.to_blob() if isinstance(plan, PricingPlan) else plan for plan in records
                )
            except InvalidPricingConfiguration as e:
                logger.warning(f"Rejected pricing update: {e.detail}")
                raise InvalidPricingUpdate(e.detail)

        async with self._lock:
            try:
                setting = await self._read_setting(db)
                if setting is None:
                    db.add(SubscriptionSetting(name=self.setting_name, value=table.to_blob()))
                else:
                    setting.value = table.to_blob()
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Failed to persist pricing: {e}")
                raise PersistenceFailure("update pricing")

            self._table = table
            logger.info(f"Updated pricing snapshot with {len(table.plans)} plans")
            return table

    async def update_additional_learner_discount(
        self,
        db: AsyncSession,
        billing_cycle: Union[BillingCycle, str],
        amount: Union[Decimal, int, float, str],
    ) -> PricingTable:
        """Set the flat additional-learner discount of one cycle on every plan"""
        field = (
            "yearlyAdditionalChildDiscountAmount"
            if BillingCycle(billing_cycle) == BillingCycle.YEARLY
            else "monthlyAdditionalChildDiscountAmount"
        )
        records = []
        for plan in self.current().plans:
            record = plan.to_blob()
            record[field] = amount
            records.append(record)
        return await self.update(db, records)


pricing_store = PricingStore()
