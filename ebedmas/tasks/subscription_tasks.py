# ============================================================================
# Subscription Lifecycle Tasks
# ============================================================================
from celery import shared_task
import asyncio
import logging

logger = logging.getLogger(__name__)

def run_async(coro):
    """Helper to run async functions in Celery tasks"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()

@shared_task(name="ebedmas.tasks.subscription_tasks.sweep_subscriptions")
def sweep_subscriptions():
    """Activate due trials and upcoming subscriptions"""
    async def _sweep():
        from ebedmas.core.database import async_session_maker
        from ebedmas.services.payments.subscription_manager import SubscriptionManager

        async with async_session_maker() as db:
            return await SubscriptionManager(db).run_sweep()

    result = run_async(_sweep())
    logger.info(f"Subscription sweep finished: {result}")
    return result
