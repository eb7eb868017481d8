# reporting/summary.py

import logging
from typing import List

from processing.block_processor import BlockResult

logger = logging.getLogger("reporting.summary")
pattern_logger = logging.getLogger("reporting.patterns")

def log_block_summary(result: BlockResult) -> None:
    """Логирует найденные в блоке сэндвичи и распределение инструкций."""
    if result.instruction_counts:
        max_len_type = max(len(k) for k in result.instruction_counts)
        for kind_name, count in sorted(result.instruction_counts.items(), key=lambda item: item[1], reverse=True):
            logger.debug(f"  - {kind_name:<{max_len_type + 2}} : {count}")

    if not result.patterns:
        return

    logger.info(f"\n=== Found {len(result.patterns)} sandwich patterns at block height {result.block_height} ===\n")
    for pattern in result.patterns:
        logger.info(pattern.summary())
        logger.info("---")
        pattern_logger.info("sandwich detected", extra={"pattern": pattern.to_dict()})

def log_run_summary(results: List[BlockResult], skipped_slots: int) -> None:
    """Итоговая статистика запуска."""
    total_patterns = sum(len(r.patterns) for r in results)
    profitable = sum(1 for r in results for p in r.patterns if p.is_profitable())
    logger.info("\n--- Итоговая статистика ---")
    logger.info(f" Обработано блоков:        {len(results)}")
    logger.info(f" Пропущено слотов:         {skipped_slots}")
    logger.info(f" Транзакций-кандидатов:    {sum(r.candidate_transactions for r in results)}")
    logger.info(f" Найдено сэндвичей:        {total_patterns}")
    logger.info(f" Из них прибыльных:        {profitable}")
    logger.info("-" * 60)
