"""Helpers for building sticky Hidden Markov Models.

A sticky model keeps its current state with a given probability and otherwise jumps
uniformly to any other state. Its sensor reports the true state with a given accuracy
and otherwise reports any other symbol uniformly. With two states, this covers the
classic boolean examples (rain/umbrella, ...):

- ``stay_probability`` is ``P(s_k = s_{k-1})``,
- ``accuracy`` is ``P(o_k = s_k)``.

Boolean evidence is mapped to indices with :func:`as_state`: by convention every matrix has
``(True, True)`` in its top left corner.

These helpers are designed to integrate seamlessly with :class:`HiddenMarkovModel`.
"""

from __future__ import annotations

import torch

from . import HiddenMarkovModel


def as_state(value: bool) -> int:
    """Convert a boolean state or observation into an index (True -> 0, False -> 1)."""
    return 0 if value else 1


def _check_probability(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} should be a probability in [0, 1]. Found {value}.")


def _sticky_matrix(n_states: int, diagonal: float) -> torch.Tensor:
    if n_states < 1:
        raise ValueError(f"A model requires at least one state. Found {n_states}.")

    if n_states == 1:
        return torch.ones(1, 1)

    matrix = torch.full((n_states, n_states), (1.0 - diagonal) / (n_states - 1))
    matrix.fill_diagonal_(diagonal)
    return matrix


def sticky_transition_matrix(n_states: int, stay_probability: float) -> torch.Tensor:
    """Create a transition matrix ``T`` that favors staying in the current state.

    Example:
        >>> sticky_transition_matrix(3, 0.8)
        tensor([[0.8000, 0.1000, 0.1000],
                [0.1000, 0.8000, 0.1000],
                [0.1000, 0.1000, 0.8000]])

    Args:
        n_states (int): Number of hidden states.
        stay_probability (float): Probability to keep the same state on the next step.
            With a single state, it is ignored (the state is always kept).

    Returns:
        torch.Tensor: Transition matrix ``T``
            Shape: ``(n_states, n_states)``

    """
    _check_probability("stay_probability", stay_probability)
    return _sticky_matrix(n_states, stay_probability)


def noisy_sensor_matrix(n_states: int, accuracy: float) -> torch.Tensor:
    """Create a sensor matrix ``S`` that reports the true state with a given accuracy.

    There is one observation symbol per state, so the matrix is square.

    Args:
        n_states (int): Number of hidden states (and of observation symbols).
        accuracy (float): Probability to observe the symbol of the true state.

    Returns:
        torch.Tensor: Sensor matrix ``S``
            Shape: ``(n_states, n_states)``

    """
    _check_probability("accuracy", accuracy)
    return _sticky_matrix(n_states, accuracy)


def sticky_hmm(n_states=2, stay_probability=0.7, accuracy=0.9) -> HiddenMarkovModel:
    """Create a sticky Hidden Markov Model with a noisy sensor.

    Args:
        n_states (int): Number of hidden states.
            Default: 2
        stay_probability (float): Probability to keep the same state on the next step.
            Default: 0.7
        accuracy (float): Probability to observe the symbol of the true state.
            Default: 0.9

    Returns:
        HiddenMarkovModel: Model with ``n_states`` states and ``n_states`` observation symbols.

    """
    return HiddenMarkovModel(
        sticky_transition_matrix(n_states, stay_probability), noisy_sensor_matrix(n_states, accuracy)
    )
