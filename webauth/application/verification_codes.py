from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass

import webauth.domain.services as domain_services
from webauth.domain.entities import VERIFICATION_CODE_PARTITION, VerificationCode
from webauth.domain.ports.accounts import AccountExistencePort
from webauth.domain.ports.lease import LeasePort
from webauth.domain.ports.table_storage import TableStoragePort

logger = logging.getLogger(__name__)

_MAX_KEY_ATTEMPTS = 5


@dataclass(frozen=True)
class VerifyResult:
    matched: bool
    email_already_registered: bool = False
    record: VerificationCode | None = None


class VerificationCodeService:
    """
    Email verification codes kept in table storage.

    One live code per email is the intent: add_code() clears the email's
    previous codes before writing the new one. Without a lease that
    delete-then-insert is not atomic, so two concurrent add_code() calls for
    the same email may leave zero or two records behind. Passing a lease
    serializes them per email.
    """

    def __init__(
        self,
        store: TableStoragePort[VerificationCode],
        accounts: AccountExistencePort | None = None,
        *,
        lease: LeasePort | None = None,
    ) -> None:
        self._store = store
        self._accounts = accounts
        self._lease = lease

    async def add_code(
        self,
        email: str,
        referer: str | None = None,
        return_url: str | None = None,
        client_id: str | None = None,
        traffic_source: str | None = None,
    ) -> VerificationCode:
        normalized_email = domain_services.normalize_email(email)
        guard = (
            self._lease.hold(f"verification:{normalized_email}")
            if self._lease is not None
            else nullcontext()
        )
        async with guard:
            await self.delete_codes(normalized_email)
            record = await self._new_record(
                normalized_email, referer, return_url, client_id, traffic_source
            )
            await self._store.upsert(record)

        logger.info(
            "verification code issued",
            extra={"key": record.key, "email": normalized_email},
        )
        return record

    async def _new_record(self, email: str, *context: str | None) -> VerificationCode:
        for _ in range(_MAX_KEY_ATTEMPTS):
            record = VerificationCode.create(email, *context)
            if await self._store.get(record.partition_key, record.row_key) is None:
                return record
            logger.warning("verification key collision", extra={"key": record.key})
        raise RuntimeError("could not allocate a unique verification key")

    async def get_code(self, key: str) -> VerificationCode | None:
        return await self._store.get(VERIFICATION_CODE_PARTITION, key)

    async def update_code(
        self, key: str, resend_limit: int | None = None
    ) -> VerificationCode:
        """
        Regenerate the code and bump resend_count in one atomic merge.

        With resend_limit, a record already at the limit comes back unchanged,
        so duplicate concurrent resends cannot push it past the limit.
        Raises RecordNotFound for an unknown key.
        """
        record, _ = await self.regenerate_code(key, resend_limit)
        return record

    async def regenerate_code(
        self, key: str, resend_limit: int | None = None
    ) -> tuple[VerificationCode, bool]:
        """Like update_code(), also telling whether this call produced a new code."""
        regenerated = False

        def regenerate(current: VerificationCode) -> VerificationCode:
            nonlocal regenerated
            # merge may call this again after a conflict
            regenerated = False
            if resend_limit is not None and current.resend_count >= resend_limit:
                return current
            regenerated = True
            return current.regenerated()

        record = await self._store.merge(VERIFICATION_CODE_PARTITION, key, regenerate)
        if regenerated:
            logger.info(
                "verification code regenerated",
                extra={"key": key, "resend_count": record.resend_count},
            )
        return record, regenerated

    async def verify_code(self, key: str, supplied_code: str) -> VerifyResult:
        record = await self.get_code(key)
        if record is None or not domain_services.secure_compare(
            supplied_code, record.code
        ):
            return VerifyResult(matched=False)

        registered = False
        if self._accounts is not None:
            registered = await self._accounts.is_email_registered(record.email)
        if registered:
            # the code cannot be used for signup anymore
            await self.delete_codes(record.email)

        return VerifyResult(
            matched=True, email_already_registered=registered, record=record
        )

    async def delete_codes(self, email: str) -> int:
        target = domain_services.normalize_email(email)
        # drain the scan before deleting so the cursor walk sees a stable index
        existing = [
            record
            async for record in self._store.scan(
                VERIFICATION_CODE_PARTITION, lambda r: r.email == target
            )
        ]
        deleted = 0
        for record in existing:
            if await self._store.delete_if_exists(record.partition_key, record.row_key):
                deleted += 1
        if deleted:
            logger.info(
                "verification codes deleted", extra={"email": target, "count": deleted}
            )
        return deleted
