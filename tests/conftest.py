"""Pytest fixtures: isolated settings per test and a fake upstream API."""

import pytest_asyncio
import pytest

from clanwarfare.config import Settings
from clanwarfare.utils.http import UpstreamClient

from helpers import API, BUNGIE, FakeUpstream, scenario_payloads


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_base_url=API,
        bungie_api_base_url=BUNGIE,
        bungie_api_key="key",
        data_dir=tmp_path / "data",
        snapshot_file=tmp_path / "out" / "snapshot.json",
        artifacts_dir=tmp_path / ".cache",
        dist_dir=tmp_path / "public",
        upstream_attempts=1,
        enable_match_history=True,
        enable_previous_leaderboards=True,
        check_bungie_status=False,
        enable_enrollment=False,
        enable_alert=False,
        site_alert="Welcome back",
    )


@pytest.fixture
def upstream():
    return FakeUpstream(scenario_payloads())


@pytest_asyncio.fixture
async def client(settings, upstream):
    async with UpstreamClient(settings, transport=upstream.transport()) as c:
        yield c
