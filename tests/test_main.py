from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from printshop.main import app, status_code_for
from printshop.core.errors import ConcurrencyConflict, LedgerError, NotFoundError, StoreError, ValidationError
from printshop.services.notification_service import NotificationService


def test_status_codes():
    assert status_code_for(ConcurrencyConflict("x")) == 409
    assert status_code_for(StoreError("x")) == 502
    assert status_code_for(NotFoundError("x")) == 404
    assert status_code_for(ValidationError("x")) == 400
    assert status_code_for(LedgerError("x")) == 500


@patch("printshop.main.setup_logging")
@patch("printshop.main.get_db", return_value=MagicMock())
@patch("printshop.main.close_mongo_connection", new_callable=AsyncMock)
@patch("printshop.main.connect_to_mongo", new_callable=AsyncMock)
def test_lifespan_connects_and_closes(mock_connect, mock_close, mock_get_db, mock_setup_logging):
    try:
        with TestClient(app) as client:
            mock_connect.assert_awaited_once()
            assert isinstance(app.state.notifier, NotificationService)
            assert client.get("/").status_code == 200
            mock_close.assert_not_awaited()

        mock_close.assert_awaited_once()
        mock_setup_logging.assert_called_once()
    finally:
        del app.state.notifier
