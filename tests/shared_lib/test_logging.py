import logging
from unittest.mock import patch

from shared_lib.logging import setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_quiets_http_loggers(self):
        with patch("logging.basicConfig") as mock_basic_config:
            setup_logging(logging.DEBUG)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING
        mock_basic_config.assert_called_once_with(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
