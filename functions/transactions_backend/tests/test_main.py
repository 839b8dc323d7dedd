import unittest
from unittest.mock import patch

from transactions_backend.__main__ import main


class MainTests(unittest.TestCase):
    @patch("transactions_backend.__main__.uvicorn.run")
    def test_serves_app_with_cli_options(self, mock_run):
        with patch("sys.argv", ["transactions-backend", "--host", "0.0.0.0", "--port", "9000"]):
            self.assertEqual(main(), 0)
        mock_run.assert_called_once_with(
            "transactions_backend.app:app", host="0.0.0.0", port=9000, reload=False
        )


if __name__ == "__main__":
    unittest.main()
