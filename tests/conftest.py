"""
Shared fixtures for companion bot tests
"""
import random

import pytest

from companion_bot.config import BotConfig
from companion_bot.tasks import TaskCoordinator
from companion_bot.world.catalog import MinecraftCatalog

from mocks import FakeMinecraftData, FakeSession, FakeTextGenerator, ManualScheduler


@pytest.fixture
def config():
    return BotConfig(
        _env_file=None,
        server_host="localhost",
        server_port=25565,
        bot_username="Aisha",
        owner_username="Owner",
        auth_password="hunter22",
    )


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def coordinator(session):
    return TaskCoordinator(session)


@pytest.fixture
def catalog():
    return MinecraftCatalog("1.21.1", mc_data=FakeMinecraftData())


@pytest.fixture
def text_generator():
    return FakeTextGenerator()


@pytest.fixture
def rng():
    return random.Random(1234)
