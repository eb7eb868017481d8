import logging
from unittest.mock import MagicMock

from decoder.schemas import Block
from main import recent_slots, run
from processing.block_processor import BlockResult
from processing.errors import RPCRequestError
from reporting.summary import log_block_summary, log_run_summary


def test_recent_slots_newest_first():
    assert recent_slots(100, 3) == [99, 98, 97]


def test_recent_slots_near_genesis():
    assert recent_slots(2, 5) == [1, 0]


def test_run_skips_missing_and_failed_blocks():
    client = MagicMock()
    block = Block(blockHeight=10, blockTime=1, transactions=[])
    client.get_block.side_effect = [block, None, RPCRequestError("getBlock", "timeout")]
    processor = MagicMock()
    processor.process_block.return_value = BlockResult(block_height=10, block_time=1)

    results = run(client, processor, [3, 2, 1])

    assert len(results) == 1
    processor.process_block.assert_called_once_with(block)


def test_block_summary_logs_patterns(caplog):
    pattern = MagicMock()
    pattern.summary.return_value = "Sandwich Pattern Detected:\nToken: TokenMint"
    pattern.to_dict.return_value = {"token": "TokenMint"}
    result = BlockResult(block_height=7, block_time=None, instruction_counts={"AutoSwapIn": 2}, patterns=[pattern])

    with caplog.at_level(logging.DEBUG):
        log_block_summary(result)

    assert "Sandwich Pattern Detected" in caplog.text
    records = [r for r in caplog.records if r.name == "reporting.patterns"]
    assert records and records[0].pattern == {"token": "TokenMint"}


def test_run_summary_counts(caplog):
    profitable = MagicMock()
    profitable.is_profitable.return_value = True
    results = [BlockResult(block_height=1, block_time=None, candidate_transactions=4, patterns=[profitable])]

    with caplog.at_level(logging.INFO):
        log_run_summary(results, skipped_slots=2)

    assert "Найдено сэндвичей:        1" in caplog.text
    assert "Пропущено слотов:         2" in caplog.text
