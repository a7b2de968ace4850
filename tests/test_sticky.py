import pytest
import torch

from torch_hmm import HiddenMarkovModel
from torch_hmm.sticky import as_state, noisy_sensor_matrix, sticky_hmm, sticky_transition_matrix


def test_as_state():
    assert as_state(True) == 0
    assert as_state(False) == 1


def test_sticky_transition_matrix():
    transition = sticky_transition_matrix(3, 0.8)

    assert torch.allclose(
        transition, torch.tensor([[0.8, 0.1, 0.1], [0.1, 0.8, 0.1], [0.1, 0.1, 0.8]])
    )
    assert torch.allclose(transition.sum(dim=-1), torch.ones(3))


def test_noisy_sensor_matrix():
    sensor = noisy_sensor_matrix(2, 0.9)

    assert torch.allclose(sensor, torch.tensor([[0.9, 0.1], [0.1, 0.9]]))


def test_single_state():
    assert torch.equal(sticky_transition_matrix(1, 0.3), torch.ones(1, 1))
    assert sticky_hmm(1).viterbi([0, 0, 0]).tolist() == [0, 0, 0]


@pytest.mark.parametrize("value", [-0.1, 1.5])
def test_invalid_probabilities(value):
    with pytest.raises(ValueError, match="stay_probability"):
        sticky_transition_matrix(2, value)

    with pytest.raises(ValueError, match="accuracy"):
        noisy_sensor_matrix(2, value)


def test_invalid_number_of_states():
    with pytest.raises(ValueError):
        sticky_hmm(0)


def test_sticky_hmm():
    hmm = sticky_hmm(4, stay_probability=0.6, accuracy=0.7)

    assert isinstance(hmm, HiddenMarkovModel)
    assert hmm.state_dim == 4
    assert hmm.observation_dim == 4
    assert torch.allclose(hmm.transition_matrix.diagonal(), torch.full((4,), 0.6))
    assert torch.allclose(hmm.sensor_matrix.diagonal(), torch.full((4,), 0.7))


def test_sticky_model_smooths_isolated_glitch():
    # A single contradicting observation is not enough to switch state with a sticky model
    hmm = sticky_hmm(2, stay_probability=0.9, accuracy=0.8)
    observations = [as_state(True)] * 3 + [as_state(False)] + [as_state(True)] * 3

    assert hmm.viterbi(observations).tolist() == [0] * 7
    assert hmm.smooth(observations)[4, 0] > 0.5
