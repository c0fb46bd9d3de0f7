"""Shared pytest fixtures for modelkit tests."""

import pytest
import torch

from modelkit.utils import set_seed


# ============================================================================
# Seed Fixture
# ============================================================================

@pytest.fixture(autouse=True)
def seed():
    """Set random seed for reproducibility in all tests."""
    set_seed(42)
    yield


# ============================================================================
# Sample Tensor Fixtures
# ============================================================================

@pytest.fixture
def batch_size() -> int:
    return 4


@pytest.fixture
def flat_batch(batch_size: int) -> torch.Tensor:
    """(batch, 10) inputs for fully connected stacks."""
    return torch.randn(batch_size, 10)


@pytest.fixture
def image_batch(batch_size: int) -> torch.Tensor:
    """(batch, 3, 8, 8) inputs for spatial stacks."""
    return torch.randn(batch_size, 3, 8, 8)


@pytest.fixture
def sequence_batch(batch_size: int) -> torch.Tensor:
    """(batch, time=5, features=6) inputs for recurrent networks."""
    return torch.randn(batch_size, 5, 6)
