from unittest.mock import MagicMock
import pytest
from fastapi.testclient import TestClient

from payref.core.config import PaymentConfig

QR_IBAN = "CH4431000123456789012"
STANDARD_IBAN = "CH4432000123456789012"
# SIX sample QR reference
QRR_SAMPLE = "210000000003139471430009017"


@pytest.fixture
def scor_config():
    return PaymentConfig.create(
        account=STANDARD_IBAN,
        currency="CHF",
        reference_scheme="SCOR",
    )


@pytest.fixture
def qrr_config():
    return PaymentConfig.create(
        account=QR_IBAN,
        currency="CHF",
        reference_scheme="QRR",
    )


@pytest.fixture
def mock_settings(mocker):
    """
    Replace the settings object seen by the payment routes.
    Usage:
        def test_something(mock_settings, scor_config):
            mock_settings.payment_config.return_value = scor_config
    """
    settings = MagicMock()
    mocker.patch("payref.routes.instructions.settings", settings)
    return settings


@pytest.fixture
def client():
    from payref.main import app
    return TestClient(app)
