from __future__ import annotations

import contextlib
import logging
from typing import Sequence, overload

import torch

from .algebra import (
    apply_model_,
    check_square,
    flat_distribution,
    format_distribution,
    max_index,
    multiply_,
    normalize_,
    normalize_rows_,
    transpose,
)

logger = logging.getLogger(__name__)


if hasattr(torch._tensor_str, "printoptions"):  # noqa: SLF001
    printoptions = torch._tensor_str.printoptions  # noqa: SLF001
else:

    @contextlib.contextmanager
    def printoptions(**kwargs):
        """Change pytorch printoptions temporarily. From the future of pytorch."""
        old_printoptions = torch._tensor_str.PRINT_OPTS  # noqa: SLF001
        torch.set_printoptions(**kwargs)
        try:
            yield
        finally:
            torch._tensor_str.PRINT_OPTS = old_printoptions  # noqa: SLF001


class HiddenMarkovModel:
    """Exact inference in a discrete Hidden Markov Model with PyTorch.

    The model describes a hidden state s_k in {0, ..., n_states - 1} evolving in discrete time,
    and observed through a discrete symbol o_k in {0, ..., n_observations - 1}:

        P(s_k = j | s_{k-1} = i) = T[i, j]
        P(o_k = o | s_k = i) = S[i, o]

    where:
    - ``T`` is the transition matrix (square, rows sum to one by convention, not enforced),
    - ``S`` is the sensor (emission) matrix (rows indexed by state, columns by observation).

    Four algorithms are provided:
    - `filter`: belief on the state after a prefix of observations,
    - `back_filter`: belief on the state given a suffix of observations,
    - `estimate` / `smooth`: smoothed belief combining both passes,
    - `viterbi`: most likely sequence of states.

    Every algorithm starts from the flat distribution over the states of ``T``. Beliefs are
    normalized after each observation, but the normalization is never guarded: an observation
    that is impossible in every state yields NaN beliefs.

    Conventions:
    - The forward pass predicts with ``Tᵀ`` while the backward pass predicts with ``T``.
      This asymmetry is part of the model definition.
    - Given models are never modified. Returned tensors are always freshly allocated.

    Attributes:
        transition_matrix (torch.Tensor): Transition matrix ``T``.
            Shape: ``(n_states, n_states)``
        sensor_matrix (torch.Tensor): Sensor matrix ``S``.
            Shape: ``(n_states, n_observations)``
    """

    _REPR_SPLIT_LENGTH = 110

    def __init__(self, transition_matrix: torch.Tensor, sensor_matrix: torch.Tensor) -> None:
        # We do not check that device/dtype are shared (but they should be)
        self.transition_matrix = transition_matrix
        self.sensor_matrix = sensor_matrix

    @property
    def state_dim(self) -> int:
        """Number of hidden states."""
        return self.transition_matrix.shape[0]

    @property
    def observation_dim(self) -> int:
        """Number of observation symbols."""
        return self.sensor_matrix.shape[-1]

    @property
    def device(self) -> torch.device:
        """Device of the model."""
        return self.transition_matrix.device

    @property
    def dtype(self) -> torch.dtype:
        """Dtype of the model."""
        return self.transition_matrix.dtype

    @overload
    def to(self, dtype: torch.dtype) -> HiddenMarkovModel: ...

    @overload
    def to(self, device: torch.device) -> HiddenMarkovModel: ...

    def to(self, fmt):
        """Convert a model to a specific device or dtype.

        Args:
            fmt (torch.dtype | torch.device): Memory format to send the model to.

        Returns:
            HiddenMarkovModel: The model with the right format
        """
        return HiddenMarkovModel(self.transition_matrix.to(fmt), self.sensor_matrix.to(fmt))

    def flat_distribution(self) -> torch.Tensor:
        """Uniform belief over the states of the model (no evidence)."""
        return flat_distribution(self.state_dim, dtype=self.dtype, device=self.device)

    def _as_observations(self, observations: Sequence[int] | torch.Tensor) -> list[int]:
        observations = torch.as_tensor(observations)
        if observations.ndim != 1:
            raise ValueError(f"Observations should be a 1-D sequence. Found shape {tuple(observations.shape)}.")

        if observations.numel() and (
            observations.dtype == torch.bool or observations.dtype.is_floating_point or observations.dtype.is_complex
        ):
            raise ValueError(f"Observations should be integer indices. Found dtype {observations.dtype}.")

        if observations.numel() and (observations.min() < 0 or observations.max() >= self.observation_dim):
            raise ValueError(
                f"Observations should be in [0, {self.observation_dim}). "
                f"Found values in [{observations.min()}, {observations.max()}]."
            )

        return observations.tolist()

    def filter(self, observations: Sequence[int] | torch.Tensor, return_all=False) -> torch.Tensor:
        """Compute the forward belief after a prefix of observations.

        Starting from the flat distribution d, each observation e is incorporated with:
        1. Prediction: d <- Tᵀ d
        2. Update: d <- d * S[:, e]
        3. Normalization: d <- d / sum(d)

        With no observation, the flat distribution is returned.

        Args:
            observations (Sequence[int] | torch.Tensor): Observation indices, in time order.
                Shape: ``(steps,)``
            return_all (bool): If True, return the belief after each observation.
                Default: False

        Returns:
            torch.Tensor: The final belief, or all the beliefs over time.
                Shape: ``([steps, ]n_states)``
        """
        observations = self._as_observations(observations)

        prediction_matrix = transpose(self.transition_matrix)
        distribution = self.flat_distribution()

        if return_all:
            saver = torch.empty((len(observations), self.state_dim), dtype=self.dtype, device=self.device)

        for t, observation in enumerate(observations):
            apply_model_(distribution, prediction_matrix)
            multiply_(distribution, self.sensor_matrix[:, observation])
            normalize_(distribution)

            if return_all:
                saver[t] = distribution

        if return_all:
            return saver

        return distribution

    def back_filter(self, observations: Sequence[int] | torch.Tensor, return_all=False) -> torch.Tensor:
        """Compute the backward belief given a suffix of observations.

        Observations are processed from the last one to the first one. Starting from the
        flat distribution d, each observation e is incorporated with:
        1. Update: d <- d * S[:, e]
        2. Prediction: d <- T d
        3. Normalization: d <- d / sum(d)

        With no observation, the flat distribution is returned.

        Args:
            observations (Sequence[int] | torch.Tensor): Observation indices, in time order.
                Shape: ``(steps,)``
            return_all (bool): If True, return for each t the belief given ``observations[t:]``.
                Default: False

        Returns:
            torch.Tensor: The belief given all the observations, or the beliefs for each suffix.
                Shape: ``([steps, ]n_states)``
        """
        observations = self._as_observations(observations)

        distribution = self.flat_distribution()

        if return_all:
            saver = torch.empty((len(observations), self.state_dim), dtype=self.dtype, device=self.device)

        for t in range(len(observations) - 1, -1, -1):
            multiply_(distribution, self.sensor_matrix[:, observations[t]])
            apply_model_(distribution, self.transition_matrix)
            normalize_(distribution)

            if return_all:
                saver[t] = distribution

        if return_all:
            return saver

        return distribution

    def estimate(self, at: int, observations: Sequence[int] | torch.Tensor) -> torch.Tensor:
        """Smoothed belief at a given time, using every observation before and after it.

        The forward belief on ``observations[:at]`` is multiplied by the backward belief on
        ``observations[at:]`` and normalized. An empty side contributes the flat distribution.

        Args:
            at (int): One-based time index, in ``[0, steps]``.
            observations (Sequence[int] | torch.Tensor): All the observations, in time order.
                Shape: ``(steps,)``

        Returns:
            torch.Tensor: Smoothed belief.
                Shape: ``(n_states,)``
        """
        observations = self._as_observations(observations)
        if not 0 <= at <= len(observations):
            raise ValueError(f"Time index should be in [0, {len(observations)}]. Found {at}.")

        forward = self.filter(observations[:at]) if at > 0 else self.flat_distribution()
        backward = self.back_filter(observations[at:]) if at < len(observations) else self.flat_distribution()

        distribution = normalize_(multiply_(forward.clone(), backward))

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "%s . %s => %s",
                format_distribution(forward),
                format_distribution(backward),
                format_distribution(distribution),
            )

        return distribution

    def smooth(self, observations: Sequence[int] | torch.Tensor) -> torch.Tensor:
        """Smoothed beliefs at every time index.

        Equivalent to calling `estimate` for each ``at`` in ``[0, steps]``, but only a single
        forward and a single backward pass are run.

        Args:
            observations (Sequence[int] | torch.Tensor): All the observations, in time order.
                Shape: ``(steps,)``

        Returns:
            torch.Tensor: Smoothed beliefs. Row ``at`` is ``estimate(at, observations)``.
                Shape: ``(steps + 1, n_states)``
        """
        forward = self.filter(observations, return_all=True)
        backward = self.back_filter(observations, return_all=True)
        flat = self.flat_distribution()[None]

        return normalize_rows_(torch.cat((flat, forward)) * torch.cat((backward, flat)))

    def viterbi_table(self, observations: Sequence[int] | torch.Tensor) -> tuple[torch.Tensor, torch.Tensor]:
        """Fill the Viterbi dynamic programming tables.

        values[k, s] is the (normalized) probability of the best path ending in state s at step k:

            values[0, s] = flat[s] * S[s, o_0]
            values[k, s] = max_p (values[k - 1, p] * T[p, s]) * S[s, o_k]

        backpointer[k, s] is the previous state p on this best path. The lowest index wins ties,
        and p = 0 is kept when no candidate is strictly positive. Each row of values is
        normalized once computed: it bounds the magnitudes without changing the ranking.

        Args:
            observations (Sequence[int] | torch.Tensor): Observation indices, in time order.
                Shape: ``(steps,)``

        Returns:
            torch.Tensor: values
                Shape: ``(steps, n_states)``
            torch.Tensor: backpointer (int64)
                Shape: ``(steps, n_states)``
        """
        check_square(self.transition_matrix, "Viterbi decoding")
        observations = self._as_observations(observations)

        values = torch.zeros((len(observations), self.state_dim), dtype=self.dtype, device=self.device)
        backpointer = torch.zeros((len(observations), self.state_dim), dtype=torch.long, device=self.device)

        for step, observation in enumerate(observations):
            if step == 0:
                values[step] = self.flat_distribution()
            else:
                candidates = values[step - 1, :, None] * self.transition_matrix  # Shape: (prev, state)

                # Only strictly positive candidates may beat the initial (0, 0) best. NaN never wins.
                candidates = candidates.masked_fill(~(candidates > 0), 0.0)
                values[step], backpointer[step] = candidates.max(dim=0)

            multiply_(values[step], self.sensor_matrix[:, observation])
            normalize_(values[step])

        logger.debug("Viterbi values:\n%s", values)
        logger.debug("Viterbi backpointers:\n%s", backpointer)

        return values, backpointer

    def viterbi(self, observations: Sequence[int] | torch.Tensor) -> torch.Tensor:
        """Find the most likely sequence of states given all the observations.

        The Viterbi tables are filled in a single forward sweep (see `viterbi_table`), then the
        best path is traced back from the most likely final state.

        Args:
            observations (Sequence[int] | torch.Tensor): Observation indices, in time order.
                Shape: ``(steps,)``

        Returns:
            torch.Tensor: Most likely state at each step (int64). Empty if there is no observation.
                Shape: ``(steps,)``
        """
        values, backpointer = self.viterbi_table(observations)
        steps = values.shape[0]

        best_path = [0] * steps
        if steps:
            best_path[-1] = max_index(values[-1])

        for step in range(steps - 1, 0, -1):
            best_path[step - 1] = int(backpointer[step, best_path[step]].item())

        return torch.tensor(best_path, dtype=torch.long, device=self.device)

    def __repr__(self) -> str:
        """Convert the model into a readable string."""
        header = (
            f"Hidden Markov Model (State dimension: {self.state_dim}, "
            f"Observation dimension: {self.observation_dim})"
        )

        with printoptions(profile="short", sci_mode=False, linewidth=80):
            transition_repr = str(self.transition_matrix).split("\n")
            sensor_repr = str(self.sensor_matrix).split("\n")

        max_char_transition = max(len(line) for line in transition_repr)
        max_char_sensor = max(len(line) for line in sensor_repr)

        if max_char_transition + max_char_sensor <= self._REPR_SPLIT_LENGTH:  # Single line
            transition_repr = [line + " " * (max_char_transition - len(line)) for line in transition_repr]

            model_header = ["Model: T = "] + ["           "] * (len(transition_repr) - 1)
            model_sep = ["  &  S = "] + ["         "] * (len(transition_repr) - 1)
            model = "\n".join(
                ["".join(lines) for lines in zip(model_header, transition_repr, model_sep, sensor_repr)]
            )
        else:  # Two lines
            model_header = ["Transition: T = "] + ["                "] * (len(transition_repr) - 1)
            model_header += ["", "    Sensor: S = "] + ["                "] * (len(sensor_repr) - 1)
            model = "\n".join(["".join(lines) for lines in zip(model_header, [*transition_repr, "", *sensor_repr])])

        n_char = max(len(line) for line in (header + "\n" + model).split("\n"))
        return ("\n" + "-" * n_char + "\n").join([header, model])
