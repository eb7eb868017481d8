import os
from dotenv import load_dotenv

from config.constants import SANDWICH_PROGRAM_ID as DEFAULT_SANDWICH_PROGRAM_ID

# Загружаем переменные из config/.env
dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
load_dotenv(dotenv_path=dotenv_path)

# --- Пул ключей Helius ---
HELIUS_API_KEYS = os.getenv("HELIUS_API_KEYS", "").split(",")
# Убираем пустые строки
HELIUS_API_KEYS = [k.strip() for k in HELIUS_API_KEYS if k.strip()]
HELIUS_RPC_URL = os.getenv("HELIUS_RPC_URL", "https://mainnet.helius-rpc.com")

RPC_RATE_LIMIT_PER_SEC = int(os.getenv("RPC_RATE_LIMIT_PER_SEC", "9"))
RPC_TIMEOUT_SEC = float(os.getenv("RPC_TIMEOUT_SEC", "30"))

# Сколько последних блоков анализировать при запуске без --slot
RECENT_BLOCKS = int(os.getenv("RECENT_BLOCKS", "5"))

# Позволяет переключиться на другой деплой программы без правки кода
SANDWICH_PROGRAM_ID = os.getenv("SANDWICH_PROGRAM_ID", DEFAULT_SANDWICH_PROGRAM_ID)

LOG_DIR = os.getenv("LOG_DIR", 'logs')
