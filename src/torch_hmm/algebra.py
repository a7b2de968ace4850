"""Distribution and model algebra for discrete HMMs.

A distribution is a 1-D tensor with one entry per state, and a model is a 2-D tensor whose
rows are distributions. In-place operations follow the PyTorch convention: their name ends
with an underscore and they return the tensor they modified.

Note that a distribution sums to one only right after `normalize_`. Intermediate vectors
are left unnormalized during the inference loops.
"""

from __future__ import annotations

import torch


class HMMError(Exception):
    """Base class of torch-hmm errors."""


class DimensionMismatchError(HMMError, ValueError):
    """Operands do not share the same dimension."""


class NonSquareMatrixError(HMMError, ValueError):
    """A square model was expected."""


def _check_same_length(first: torch.Tensor, second: torch.Tensor, operation: str) -> None:
    if first.shape[-1] != second.shape[-1]:
        raise DimensionMismatchError(
            f"{operation} requires two inputs of same dimension. Found {first.shape[-1]} and {second.shape[-1]}."
        )


def check_square(model: torch.Tensor, operation: str) -> None:
    if model.ndim != 2 or model.shape[0] != model.shape[1]:
        raise NonSquareMatrixError(f"{operation} requires a square matrix. Found shape {tuple(model.shape)}.")


def normalize_(distribution: torch.Tensor) -> torch.Tensor:
    """Divide each entry by the sum of all entries (in place).

    A zero sum is not guarded: the distribution is filled with NaN.

    Args:
        distribution (torch.Tensor): Distribution to normalize.
            Shape: ``(n,)``

    Returns:
        torch.Tensor: The same tensor, normalized.
    """
    return distribution.div_(distribution.sum())


def normalize_rows_(model: torch.Tensor) -> torch.Tensor:
    """Normalize each row of a model (in place).

    Args:
        model (torch.Tensor): Model whose rows are normalized.
            Shape: ``(n, m)``

    Returns:
        torch.Tensor: The same tensor with normalized rows.
    """
    return model.div_(model.sum(dim=-1, keepdim=True))


def apply_model_(distribution: torch.Tensor, model: torch.Tensor) -> torch.Tensor:
    """Replace a distribution by the matrix-vector product ``model @ distribution`` (in place).

    Each new entry is ``d[i] = sum_j model[i, j] * d[j]``.

    Args:
        distribution (torch.Tensor): Distribution to update.
            Shape: ``(n,)``
        model (torch.Tensor): Square model applied on the left.
            Shape: ``(n, n)``

    Returns:
        torch.Tensor: The same distribution tensor, holding the product.
    """
    size = distribution.shape[-1]
    if model.shape != (size, size):
        raise DimensionMismatchError(
            f"Applying a model to a distribution of dimension {size} requires a ({size}, {size}) model. "
            f"Found shape {tuple(model.shape)}."
        )
    return distribution.copy_(model @ distribution)


def multiply_(distribution: torch.Tensor, other: torch.Tensor) -> torch.Tensor:
    """Multiply a distribution elementwise by another one (in place).

    Args:
        distribution (torch.Tensor): Distribution to update.
            Shape: ``(n,)``
        other (torch.Tensor): Factors for each entry.
            Shape: ``(n,)``

    Returns:
        torch.Tensor: The same distribution tensor, multiplied.
    """
    _check_same_length(distribution, other, "Elementwise product")
    return distribution.mul_(other)


def dot(first: torch.Tensor, second: torch.Tensor) -> torch.Tensor:
    """Inner product of two vectors of the same length."""
    _check_same_length(first, second, "Vector dot product")
    return torch.dot(first, second)


def transpose(model: torch.Tensor) -> torch.Tensor:
    """Return a new transposed model: ``result[r, c] = model[c, r]``.

    The input is never modified (the result does not share its memory).

    Args:
        model (torch.Tensor): Square model.
            Shape: ``(n, n)``

    Returns:
        torch.Tensor: Transposed copy.
            Shape: ``(n, n)``
    """
    check_square(model, "Transpose")
    return model.mT.clone()


def reverse_model(model: torch.Tensor) -> torch.Tensor:
    """Turn a forward transition model into a backward one.

    The model is transposed and each row of the result is normalized.

    Args:
        model (torch.Tensor): Square transition model.
            Shape: ``(n, n)``

    Returns:
        torch.Tensor: Backward model.
            Shape: ``(n, n)``
    """
    return normalize_rows_(transpose(model))


def flat_distribution(
    n_states: int, *, dtype: torch.dtype | None = None, device: torch.device | None = None
) -> torch.Tensor:
    """Uniform distribution over ``n_states``: every state is equally likely.

    Args:
        n_states (int): Number of states.
        dtype (torch.dtype | None): Dtype of the distribution. Default to torch default dtype.
        device (torch.device | None): Device of the distribution.

    Returns:
        torch.Tensor: Flat distribution.
            Shape: ``(n_states,)``
    """
    if n_states < 1:
        raise ValueError(f"A distribution requires at least one state. Found {n_states}.")
    return torch.full((n_states,), 1.0 / n_states, dtype=dtype, device=device)


def max_index(distribution: torch.Tensor) -> int:
    """Index of the first maximal entry.

    NaN entries never win. If every entry is NaN, 0 is returned.
    """
    return int(torch.argmax(distribution.masked_fill(distribution.isnan(), -torch.inf)).item())


def format_distribution(distribution: torch.Tensor, precision=4) -> str:
    """Format a distribution for display, e.g. ``<0.7652, 0.2348>``."""
    return "<" + ", ".join(f"{value:.{precision}f}" for value in distribution.tolist()) + ">"
