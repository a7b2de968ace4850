import pytest
import torch

import torch_hmm


@pytest.fixture(autouse=True)
def deterministic():
    torch.manual_seed(0)
    torch.cuda.manual_seed_all(0)
    torch.use_deterministic_algorithms(True)


@pytest.fixture
def assignment_hmm() -> torch_hmm.HiddenMarkovModel:
    return torch_hmm.HiddenMarkovModel(
        torch.tensor([[0.7, 0.3], [0.4, 0.6]], dtype=torch.float64),
        torch.tensor([[0.8, 0.2], [0.3, 0.7]], dtype=torch.float64),
    )


@pytest.fixture
def umbrella_hmm() -> torch_hmm.HiddenMarkovModel:
    return torch_hmm.HiddenMarkovModel(
        torch.tensor([[0.7, 0.3], [0.3, 0.7]], dtype=torch.float64),
        torch.tensor([[0.9, 0.1], [0.2, 0.8]], dtype=torch.float64),
    )


def pytest_runtest_setup(item):
    if "cuda" in item.keywords and not torch.cuda.is_available():
        pytest.skip("CUDA not available")
