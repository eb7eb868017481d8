"""
Константы протокола, которые являются частью внешнего контракта детектора.
"""
from typing import FrozenSet

# Программа, через которую исполняются сэндвичи
SANDWICH_PROGRAM_ID = "vpeNALD89BZ4KxNUFjdLmFXBCwtyqBDQ85ouNoax38b"

VOTE_PROGRAM_ID = "Vote111111111111111111111111111111111111111"
WSOL_MINT = "So11111111111111111111111111111111111111112"

# Собственный аккаунт-хранилище стратегии, его свопы не являются свопами жертвы
HOLDING_ACCOUNT = "DKLvbSugkGMf4PBMakfHW9BdvcYj7Y7FRbsiL6v5DRy2"

LAMPORTS_PER_SOL = 1_000_000_000
BASE_FEE_LAMPORTS = 5000
DEFAULT_DECIMALS = 9

MIN_JITO_TIP = 1000  # lamports

# 8 статических tip-аккаунтов Jito
JITO_TIP_ADDRESSES: FrozenSet[str] = frozenset({
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
    "ADaUMid9yfUytqMBgopwjb2DTLSokTSzL1zt6iGPaS49",
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "DttWaMuVvTiduZRnguLF7jNxTgiMBZ1hyAumKUiL2KRL",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
})
