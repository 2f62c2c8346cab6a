from dataclasses import dataclass
import logging

from pydantic_settings import BaseSettings

from payref.core.exceptions import ConfigurationError, FormatError
from payref.core.money import Currency
from payref.core.reference import ReferenceScheme, build_reference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentConfig:
    """Creditor-side options passed explicitly into every payment call."""

    account: str | None
    currency: Currency
    reference_scheme: ReferenceScheme
    preset_reference: str | None = None
    strict_checksum: bool = False

    @classmethod
    def create(
        cls,
        *,
        account: str | None,
        currency: str,
        reference_scheme: str,
        preset_reference: str | None = None,
        strict_checksum: bool = False,
    ) -> "PaymentConfig":
        try:
            currency_value = Currency(currency)
        except ValueError:
            raise ConfigurationError(f"Currency must be CHF or EUR, got {currency!r}") from None

        try:
            scheme_value = ReferenceScheme(reference_scheme)
        except ValueError:
            raise ConfigurationError(
                f"Reference scheme must be QRR, SCOR, or NON, got {reference_scheme!r}"
            ) from None

        preset = (preset_reference or "").strip() or None
        if preset and scheme_value is ReferenceScheme.NON:
            logger.warning("Preset reference ignored for reference scheme NON")
            preset = None
        if preset:
            try:
                build_reference(scheme_value, preset)
            except FormatError as exc:
                raise ConfigurationError(f"Invalid preset reference: {exc}") from exc

        return cls(
            account=account,
            currency=currency_value,
            reference_scheme=scheme_value,
            preset_reference=preset,
            strict_checksum=strict_checksum,
        )


class Settings(BaseSettings):
    PAYREF_ACCOUNT: str | None = None
    PAYREF_CURRENCY: str = "CHF"
    PAYREF_REFERENCE_SCHEME: str = "NON"
    PAYREF_PRESET_REFERENCE: str | None = None
    PAYREF_STRICT_REFERENCE_CHECKSUM: bool = False
    LOG_LEVEL: str = "INFO"
    API_V1_STR: str = "/api/v1"

    class Config:
        env_file = ".env"

    def payment_config(self) -> PaymentConfig:
        return PaymentConfig.create(
            account=self.PAYREF_ACCOUNT,
            currency=self.PAYREF_CURRENCY,
            reference_scheme=self.PAYREF_REFERENCE_SCHEME,
            preset_reference=self.PAYREF_PRESET_REFERENCE,
            strict_checksum=self.PAYREF_STRICT_REFERENCE_CHECKSUM,
        )


settings = Settings()
