"""Shared pytest setup.

``src/`` is put on ``sys.path`` so the ``crusade`` package imports without an
editable install. Hypothesis runs a lighter profile when ``HYPOTHESIS_PROFILE=ci``.
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import settings

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from crusade.repository import JsonCampaignRepository  # noqa: E402

settings.register_profile("ci", max_examples=30, deadline=None)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def repo(tmp_path) -> JsonCampaignRepository:
    """Empty snapshot repository rooted in the test's temporary directory."""
    return JsonCampaignRepository(tmp_path)
