# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest

from factories import FakeClock, make_token

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'


@pytest.fixture
def clock():
    """Clock fixed at the reference test time."""
    return FakeClock()


@pytest.fixture
def admin_token():
    """Credential of a regional administrator."""
    return make_token("region_admin", username="regina")


@pytest.fixture
def observer_token():
    """Credential of a field observer."""
    return make_token("observer", subject="obs-1")
