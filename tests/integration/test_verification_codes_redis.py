import asyncio
import re

import pytest

from webauth.application.verification_codes import VerificationCodeService
from webauth.domain.entities import VERIFICATION_CODE_PARTITION as P
from webauth.infrastructure.redis_cache.lease import RedisLease
from tests.fakes import FakeAccounts


async def _live(table, email):
    return [r async for r in table.scan(P, lambda r: r.email == email)]


@pytest.mark.asyncio
async def test_add_code_leaves_exactly_one_record(table):
    codes = VerificationCodeService(table, FakeAccounts())
    await codes.add_code("a@b.com")
    await codes.add_code("a@b.com")
    record = await codes.add_code("a@b.com", "r", "u", "c", "t")

    live = await _live(table, "a@b.com")
    assert [r.key for r in live] == [record.key]
    fetched = await codes.get_code(record.key)
    assert (fetched.email, fetched.referer, fetched.return_url) == ("a@b.com", "r", "u")
    assert re.fullmatch(r"[0-9]{6}", fetched.code)


@pytest.mark.asyncio
async def test_concurrent_update_code(table):
    codes = VerificationCodeService(table, FakeAccounts())
    record = await codes.add_code("a@b.com")

    await asyncio.gather(*(codes.update_code(record.key) for _ in range(6)))
    assert (await codes.get_code(record.key)).resend_count == 6


@pytest.mark.asyncio
async def test_scenario_resend_and_verify(table):
    accounts = FakeAccounts(registered={"a@b.com"})
    codes = VerificationCodeService(table, accounts)
    k1 = (await codes.add_code("a@b.com")).key

    assert (await codes.update_code(k1, resend_limit=2)).resend_count == 1
    assert (await codes.update_code(k1, resend_limit=2)).resend_count == 2
    _, regenerated = await codes.regenerate_code(k1, resend_limit=2)
    assert regenerated is False

    actual = (await codes.get_code(k1)).code
    wrong = "000000" if actual != "000000" else "111111"
    miss = await codes.verify_code(k1, wrong)
    assert miss.matched is False
    assert await codes.get_code(k1) is not None

    hit = await codes.verify_code(k1, actual)
    assert hit.matched is True and hit.email_already_registered is True
    assert await codes.get_code(k1) is None
    assert await codes.delete_codes("a@b.com") == 0


@pytest.mark.asyncio
async def test_concurrent_add_code_with_lease(table, redis_client, key_prefix):
    lease = RedisLease(
        redis_client, key_prefix=f"{key_prefix}lease:", ttl_seconds=5, wait_seconds=5
    )
    codes = VerificationCodeService(table, FakeAccounts(), lease=lease)

    await asyncio.gather(*(codes.add_code("a@b.com") for _ in range(5)))
    assert len(await _live(table, "a@b.com")) == 1
