# scripts/verify_processing_payouts.py
from __future__ import annotations

import logging
import os
import time

from app.workers.payout_worker import DEFAULT_BATCH_SIZE, process_once


logger = logging.getLogger("verify_processing_payouts")


def _int_env(name: str, default: int, *, minimum: int = 1) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    operator_id = _int_env("PAYOUT_VERIFY_OPERATOR_ID", 1)
    batch_size = _int_env("PAYOUT_VERIFY_BATCH_SIZE", DEFAULT_BATCH_SIZE)
    # 0 = single pass
    interval = _int_env("PAYOUT_VERIFY_INTERVAL_SECONDS", 0, minimum=0)
    logger.info("Payout verifier starting; operator_id=%s batch=%s interval=%ss", operator_id, batch_size, interval)

    while True:
        try:
            counts = process_once(operator_id=operator_id, batch_size=batch_size)
        except KeyboardInterrupt:
            logger.info("Payout verifier exiting")
            raise
        except Exception:
            logger.exception("Payout verifier failed")
            raise

        logger.info(
            "Payout verify pass | checked=%s completed=%s failed=%s still_processing=%s",
            counts["checked"],
            counts["completed"],
            counts["failed"],
            counts["processing"],
        )
        if not interval:
            return
        time.sleep(interval)


if __name__ == "__main__":
    main()
