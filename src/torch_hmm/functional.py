"""Functional interface to the HMM inference algorithms.

Each function takes the transition and sensor models explicitly and delegates to
:class:`~torch_hmm.HiddenMarkovModel`. Results are identical to the methods.

Example:
    >>> import torch
    >>> import torch_hmm.functional as F
    >>> T = torch.tensor([[0.7, 0.3], [0.4, 0.6]])
    >>> S = torch.tensor([[0.8, 0.2], [0.3, 0.7]])
    >>> F.viterbi([0, 1, 0], T, S)
    tensor([0, 0, 0])
"""

from __future__ import annotations

from typing import Sequence

import torch

from .hidden_markov_model import HiddenMarkovModel


def filter(  # noqa: A001
    observations: Sequence[int] | torch.Tensor, transition_matrix: torch.Tensor, sensor_matrix: torch.Tensor
) -> torch.Tensor:
    """Forward belief after a prefix of observations. See :meth:`HiddenMarkovModel.filter`."""
    return HiddenMarkovModel(transition_matrix, sensor_matrix).filter(observations)


def back_filter(
    observations: Sequence[int] | torch.Tensor, transition_matrix: torch.Tensor, sensor_matrix: torch.Tensor
) -> torch.Tensor:
    """Backward belief given a suffix of observations. See :meth:`HiddenMarkovModel.back_filter`."""
    return HiddenMarkovModel(transition_matrix, sensor_matrix).back_filter(observations)


def estimate(
    at: int,
    observations: Sequence[int] | torch.Tensor,
    transition_matrix: torch.Tensor,
    sensor_matrix: torch.Tensor,
) -> torch.Tensor:
    """Smoothed belief at the one-based time index ``at``. See :meth:`HiddenMarkovModel.estimate`."""
    return HiddenMarkovModel(transition_matrix, sensor_matrix).estimate(at, observations)


def viterbi(
    observations: Sequence[int] | torch.Tensor, transition_matrix: torch.Tensor, sensor_matrix: torch.Tensor
) -> torch.Tensor:
    """Most likely sequence of states. See :meth:`HiddenMarkovModel.viterbi`."""
    return HiddenMarkovModel(transition_matrix, sensor_matrix).viterbi(observations)
