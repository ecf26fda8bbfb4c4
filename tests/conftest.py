"""Global pytest fixtures: logger, config, a recording alert sink and a pipeline."""
from __future__ import annotations

import logging
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from speedometer.config import Config
from speedometer.pipeline import SpeedPipeline
from tests._factories import RecordingSink


@pytest.fixture
def logger():
    return logging.getLogger("speedometer.tests")


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def pipeline(config, sink, logger):
    return SpeedPipeline(config, sink, logger)
