"""Pydantic schemas for certificate data and API request/response validation."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

RECIPIENT_PLACEHOLDER = "Recipient Name"
PROFESSION_PLACEHOLDER = "RERA CONSULTANT"
VALUE_PLACEHOLDER = "-"
DEFAULT_RERA_WATERMARK = "PRM/KA/RERA/1251/309/AG/250318/006037"

OutputFormat = Literal["pdf", "jpeg"]


class CertificateData(BaseModel):
    """Recipient fields printed on a certificate.

    Callers send loosely-named payloads (the UI, CSV imports and the old
    Cloud Functions all spell the keys differently), so every field accepts
    several aliases. Nothing is validated: missing or blank values render as
    placeholders instead of failing the request.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    recipient_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("recipient_name", "name", "recipientName"),
    )
    certificate_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("certificate_number", "certificateNumber"),
    )
    award_rera_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "award_rera_number", "rera_awarde_no", "reraAwardeNo"
        ),
    )
    professional: str | None = Field(
        default=None,
        validation_alias=AliasChoices("professional", "Professional"),
    )

    @field_validator(
        "recipient_name",
        "certificate_number",
        "award_rera_number",
        "professional",
        mode="before",
    )
    @classmethod
    def coerce_loose_value(cls, v: object) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    def display_values(self) -> dict[str, str]:
        """Text for every layout field, with placeholders for missing values."""
        rera = self.award_rera_number or VALUE_PLACEHOLDER
        return {
            "recipient_name": self.recipient_name or RECIPIENT_PLACEHOLDER,
            "professional": self.professional or PROFESSION_PLACEHOLDER,
            "certificate_number": self.certificate_number or VALUE_PLACEHOLDER,
            "award_rera_number": rera,
            "watermark": (
                f"RERA NO. {self.award_rera_number or DEFAULT_RERA_WATERMARK}"
            ),
        }


class PreviewRequest(CertificateData):
    """Certificate data plus an optional background template URL."""

    template_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("template_url", "templateUrl"),
        max_length=4096,
    )

    def certificate_data(self) -> CertificateData:
        return CertificateData.model_validate(
            self.model_dump(include=set(CertificateData.model_fields))
        )


class RenderRequest(PreviewRequest):
    """Request to render a certificate file."""

    format: OutputFormat = "pdf"


class PreviewResponse(BaseModel):
    """Inline PNG preview of a certificate."""

    data_url: str
    filename: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
