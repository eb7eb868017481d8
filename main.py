#!/usr/bin/env python3
"""
Детектор сэндвич-атак: анализирует последние блоки (или один указанный слот)
и выводит найденные паттерны create -> swap in -> swap out.
"""
import argparse
import logging
from typing import List

import config.config as app_config
from config.logging_config import setup_console_run_logging, setup_pattern_logging
from config.token_registry import KNOWN_TOKEN_DECIMALS
from processing.block_processor import BlockProcessor, BlockResult
from processing.errors import RPCRequestError
from reporting.summary import log_block_summary, log_run_summary
from rpc.client import RPCClient
from services.token_decimals import TokenDecimalsCache, rpc_mint_decimals_resolver

logger = logging.getLogger("main")


def recent_slots(current_slot: int, count: int) -> List[int]:
    """Слоты current-count .. current-1, новые сначала."""
    return list(range(current_slot - 1, max(current_slot - count, 0) - 1, -1))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Поиск сэндвич-атак в блоках Solana")
    parser.add_argument("--slot", type=int, help="Проанализировать только этот слот")
    parser.add_argument("--blocks", type=int, default=app_config.RECENT_BLOCKS,
                        help="Сколько последних блоков анализировать")
    parser.add_argument("--program", default=app_config.SANDWICH_PROGRAM_ID, help="Адрес сэндвич-программы")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args()


def run(client: RPCClient, processor: BlockProcessor, slots: List[int]) -> List[BlockResult]:
    results: List[BlockResult] = []
    skipped = 0
    for slot in slots:
        try:
            block = client.get_block(slot)
        except RPCRequestError as e:
            logger.error(f"Не удалось получить блок в слоте {slot}: {e}")
            skipped += 1
            continue
        if block is None:
            skipped += 1
            continue
        logger.info(f"Анализ блока в слоте {slot} (height={block.blockHeight})")
        result = processor.process_block(block)
        log_block_summary(result)
        results.append(result)
    log_run_summary(results, skipped)
    return results


def main() -> None:
    args = parse_args()
    setup_console_run_logging(verbose=args.verbose)
    setup_pattern_logging()

    client = RPCClient()
    decimals_cache = TokenDecimalsCache(rpc_mint_decimals_resolver(client), seed=KNOWN_TOKEN_DECIMALS)
    processor = BlockProcessor(decimals_cache, program_id=args.program)

    if args.slot is not None:
        slots = [args.slot]
    else:
        try:
            current_slot = client.get_slot()
        except RPCRequestError as e:
            logger.critical(f"Не удалось получить текущий слот: {e}")
            raise SystemExit(1)
        slots = recent_slots(current_slot, args.blocks)

    logger.info(f"Анализируем {len(slots)} блоков")
    run(client, processor, slots)


if __name__ == "__main__":
    main()
