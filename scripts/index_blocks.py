"""Replay block notifications from a JSON-lines file into the document store.

Usage:
    PYTHONPATH=src python scripts/index_blocks.py blocks.jsonl

Each line is either an outport block (``{"blockData": ..., "transactionPool": ...}``)
or a revert notification (``{"revert": {"header": ..., "body": ...}}``).
"""

import asyncio
import json
import logging
import sys
import time

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logger = logging.getLogger("index_blocks")

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

BLOCK_TIMEOUT = 60.0


async def main(path: str) -> None:
    from chainindexer.container import Container
    from chainindexer.domain.models.chain import Body, Header, OutportBlock

    container = Container()
    settings = container.settings()
    logging.getLogger().setLevel(settings.log_level)
    indexer = container.block_indexer()
    store = container.store_client()

    saved = reverted = 0
    t0 = time.time()
    try:
        with open(path) as fh:
            for line_no, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                payload = json.loads(line)
                if "revert" in payload:
                    header = Header.model_validate(payload["revert"]["header"])
                    body = Body.model_validate(payload["revert"].get("body", {}))
                    await indexer.remove_block(header, body, timeout=BLOCK_TIMEOUT)
                    reverted += 1
                    continue

                block = OutportBlock.model_validate(payload)
                await indexer.save_block(block, timeout=BLOCK_TIMEOUT)
                saved += 1
                if saved % 100 == 0:
                    logger.info("line %d: %d blocks indexed", line_no, saved)
    finally:
        await store.close()

    logger.info("done: %d blocks indexed, %d reverted in %.1fs", saved, reverted, time.time() - t0)


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(sys.argv[1]))
