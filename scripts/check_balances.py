"""Compare every stored token balance with the chain gateway and repair drift.

Usage:
    PYTHONPATH=src python scripts/check_balances.py

Store and gateway URLs come from INDEXER_ES_URL / INDEXER_GATEWAY_URL (or .env).
"""

import asyncio
import logging
import time

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logger = logging.getLogger("check_balances")

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


async def main() -> None:
    from chainindexer.container import Container
    from chainindexer.tools.balance_checker import BalanceChecker

    container = Container()
    settings = container.settings()

    async with container.store_client() as store, container.gateway_http():
        checker = BalanceChecker(
            store=store,
            gateway=container.gateway_client(),
            pubkey_converter=container.pubkey_converter(),
            balance_converter=container.balance_converter(),
            max_parallel_requests=settings.max_parallel_requests,
        )
        t0 = time.time()
        stats = await checker.check_all()

    logger.info(
        "compared %d accounts in %.1fs: %d fixed, %d deleted, %d missing",
        stats.compared, time.time() - t0, stats.fixed, stats.deleted, stats.missing,
    )


if __name__ == "__main__":
    asyncio.run(main())
