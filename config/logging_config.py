import logging
import os
import json
import sys

from config.config import LOG_DIR

class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_object = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger_name": record.name,
        }
        # Структурированные данные паттерна передаются через extra={"pattern": {...}}
        pattern = getattr(record, "pattern", None)
        if pattern is not None:
            log_object["pattern"] = pattern
        if record.exc_info:
            log_object['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(log_object, ensure_ascii=False)

def setup_console_run_logging(verbose: bool = False, log_dir: str = LOG_DIR):
    os.makedirs(log_dir, exist_ok=True)
    level = logging.DEBUG if verbose else logging.INFO
    file_handler = logging.FileHandler(os.path.join(log_dir, 'console_run.log'), mode='w', encoding='utf-8')
    file_handler.setLevel(level)
    formatter = logging.Formatter('[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s')
    file_handler.setFormatter(formatter)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

def setup_pattern_logging(log_dir: str = LOG_DIR):
    """Пишет найденные паттерны в logs/patterns.jsonl, по одному JSON-объекту на строку."""
    os.makedirs(log_dir, exist_ok=True)
    pattern_handler = logging.FileHandler(os.path.join(log_dir, 'patterns.jsonl'), mode='a', encoding='utf-8')
    pattern_handler.setLevel(logging.INFO)
    pattern_handler.setFormatter(JsonFormatter())
    pattern_logger = logging.getLogger("reporting.patterns")
    pattern_logger.setLevel(logging.INFO)
    pattern_logger.addHandler(pattern_handler)
    pattern_logger.propagate = False
    return pattern_logger
