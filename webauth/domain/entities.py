from __future__ import annotations

from dataclasses import dataclass

import webauth.domain.services as domain_services

VERIFICATION_CODE_PARTITION = "RegisterVerificationCode"


@dataclass
class VerificationCode:
    """
    Signup verification code addressed as (partition_key, row_key).

    row_key is the opaque token handed to the user in the confirmation link;
    the remaining context fields are carried through untouched.
    """

    row_key: str
    email: str
    code: str
    resend_count: int = 0
    referer: str = ""
    return_url: str = ""
    client_id: str = ""
    traffic_source: str = ""
    partition_key: str = VERIFICATION_CODE_PARTITION
    etag: str | None = None

    def __post_init__(self):
        if not self.row_key:
            raise ValueError("row_key is required")
        if not (len(self.code) == 6 and self.code.isdigit()):
            raise ValueError("code must be exactly 6 digits")
        if self.resend_count < 0:
            raise ValueError("resend_count cannot be negative")

    @property
    def key(self) -> str:
        return self.row_key

    @classmethod
    def create(
        cls,
        email: str,
        referer: str | None = None,
        return_url: str | None = None,
        client_id: str | None = None,
        traffic_source: str | None = None,
    ) -> "VerificationCode":
        return cls(
            row_key=domain_services.generate_key(),
            email=email,
            code=domain_services.generate_code(),
            referer=referer or "",
            return_url=return_url or "",
            client_id=client_id or "",
            traffic_source=traffic_source or "",
        )

    def regenerated(self) -> "VerificationCode":
        """Copy with a fresh code and one more resend."""
        return VerificationCode(
            row_key=self.row_key,
            email=self.email,
            code=domain_services.generate_code(),
            resend_count=self.resend_count + 1,
            referer=self.referer,
            return_url=self.return_url,
            client_id=self.client_id,
            traffic_source=self.traffic_source,
            partition_key=self.partition_key,
            etag=self.etag,
        )

    def to_fields(self) -> dict[str, str]:
        return {
            "email": self.email,
            "code": self.code,
            "resend_count": str(self.resend_count),
            "referer": self.referer,
            "return_url": self.return_url,
            "client_id": self.client_id,
            "traffic_source": self.traffic_source,
        }

    @classmethod
    def from_fields(
        cls,
        partition_key: str,
        row_key: str,
        fields: dict[str, str],
        etag: str | None = None,
    ) -> "VerificationCode":
        return cls(
            row_key=row_key,
            email=fields.get("email", ""),
            code=fields.get("code", ""),
            resend_count=int(fields.get("resend_count") or 0),
            referer=fields.get("referer", ""),
            return_url=fields.get("return_url", ""),
            client_id=fields.get("client_id", ""),
            traffic_source=fields.get("traffic_source", ""),
            partition_key=partition_key,
            etag=etag,
        )
