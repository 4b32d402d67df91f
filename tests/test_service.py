import pytest
import structlog

from anomaly_engine.config import LogFormat, LoggingConfig
from anomaly_engine.service import main, setup_logging


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.mark.parametrize("log_format", [LogFormat.JSON, LogFormat.CONSOLE])
def test_setup_logging(log_format):
    setup_logging(LoggingConfig(format=log_format))
    structlog.get_logger("test").info("logging_configured", log_format=log_format.value)


@pytest.mark.asyncio
async def test_main_exits_on_bad_config(tmp_path, monkeypatch):
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "missing"))
    with pytest.raises(SystemExit) as exc_info:
        await main()
    assert exc_info.value.code == 1
