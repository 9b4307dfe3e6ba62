import logging
from logging.handlers import RotatingFileHandler

from mrlister.config import Config
from mrlister.logger import setup_logger


def test_setup_logger_writes_rotating_file(tmp_path):
    logger = setup_logger("mrlister.test_logger", log_level="DEBUG", log_dir=tmp_path / "logs")

    assert logger.level == logging.DEBUG
    assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)

    logger.info("export finished")
    for handler in logger.handlers:
        handler.flush()
    assert "export finished" in (tmp_path / "logs" / "mrlister.log").read_text(encoding="utf-8")


def test_setup_logger_is_idempotent(tmp_path):
    first = setup_logger("mrlister.test_idempotent", log_dir=tmp_path)
    count = len(first.handlers)
    second = setup_logger("mrlister.test_idempotent", log_dir=tmp_path)
    assert second is first
    assert len(second.handlers) == count


def test_marketplace_api_url_reads_environment(monkeypatch):
    monkeypatch.setenv("ETSY_API_URL", "https://api.test/etsy")
    monkeypatch.delenv("AMAZON_API_URL", raising=False)
    assert Config.marketplace_api_url("etsy") == "https://api.test/etsy"
    assert Config.marketplace_api_url("amazon") is None
