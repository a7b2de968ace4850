import pytest
import torch

from torch_hmm import DimensionMismatchError, HMMError, NonSquareMatrixError
from torch_hmm.algebra import (
    apply_model_,
    dot,
    flat_distribution,
    format_distribution,
    max_index,
    multiply_,
    normalize_,
    normalize_rows_,
    reverse_model,
    transpose,
)


def test_normalize_sums_to_one():
    distribution = torch.rand(7, dtype=torch.float64) + 0.1

    out = normalize_(distribution)

    assert out is distribution  # In place
    assert torch.isclose(distribution.sum(), torch.tensor(1.0, dtype=torch.float64), atol=1e-9)


def test_normalize_is_idempotent():
    distribution = normalize_(torch.rand(5, dtype=torch.float64))

    twice = normalize_(distribution.clone())

    assert torch.allclose(twice, distribution, atol=1e-12)


def test_normalize_zero_sum_yields_nan():
    distribution = torch.zeros(3)

    normalize_(distribution)  # Does not raise

    assert torch.isnan(distribution).all()


def test_normalize_rows():
    model = torch.rand(4, 3) + 0.1

    normalize_rows_(model)

    assert torch.allclose(model.sum(dim=-1), torch.ones(4))


def test_apply_model_is_matrix_vector_product():
    distribution = torch.tensor([0.5, 0.5])
    model = torch.tensor([[0.7, 0.4], [0.3, 0.6]])

    out = apply_model_(distribution, model)

    assert out is distribution
    assert torch.allclose(distribution, torch.tensor([0.55, 0.45]))


@pytest.mark.parametrize("shape", [(3, 3), (2, 3), (3, 2)])
def test_apply_model_dimension_mismatch(shape):
    with pytest.raises(DimensionMismatchError):
        apply_model_(torch.ones(2), torch.ones(shape))


def test_multiply():
    distribution = torch.tensor([0.55, 0.45])

    multiply_(distribution, torch.tensor([0.8, 0.3]))

    assert torch.allclose(distribution, torch.tensor([0.44, 0.135]))


def test_multiply_dimension_mismatch():
    distribution = torch.tensor([0.5, 0.5])

    with pytest.raises(DimensionMismatchError):
        multiply_(distribution, torch.ones(3))

    assert torch.equal(distribution, torch.tensor([0.5, 0.5]))


def test_dot_is_symmetric():
    first = torch.randn(6)
    second = torch.randn(6)

    assert torch.isclose(dot(first, second), dot(second, first))
    assert torch.isclose(dot(first, second), (first * second).sum())


def test_dot_dimension_mismatch():
    with pytest.raises(DimensionMismatchError, match="same dimension"):
        dot(torch.ones(2), torch.ones(3))


def test_errors_are_value_errors():
    assert issubclass(DimensionMismatchError, ValueError)
    assert issubclass(NonSquareMatrixError, ValueError)
    assert issubclass(DimensionMismatchError, HMMError)
    assert issubclass(NonSquareMatrixError, HMMError)


def test_transpose():
    model = torch.tensor([[0.7, 0.3], [0.4, 0.6]])

    transposed = transpose(model)

    assert torch.equal(transposed, torch.tensor([[0.7, 0.4], [0.3, 0.6]]))
    assert torch.equal(transpose(transposed), model)


def test_transpose_returns_a_copy():
    model = torch.rand(3, 3)
    original = model.clone()

    transposed = transpose(model)
    transposed += 1

    assert torch.equal(model, original)


def test_transpose_non_square():
    with pytest.raises(NonSquareMatrixError):
        transpose(torch.ones(2, 3))


def test_reverse_model():
    model = torch.tensor([[0.7, 0.3], [0.4, 0.6]])

    reversed_model = reverse_model(model)

    assert torch.allclose(reversed_model, torch.tensor([[0.7 / 1.1, 0.4 / 1.1], [0.3 / 0.9, 0.6 / 0.9]]))
    assert torch.equal(model, torch.tensor([[0.7, 0.3], [0.4, 0.6]]))


@pytest.mark.parametrize("n_states", [1, 2, 5])
def test_flat_distribution(n_states):
    flat = flat_distribution(n_states, dtype=torch.float64)

    assert flat.shape == (n_states,)
    assert flat.dtype == torch.float64
    assert torch.allclose(flat, torch.full((n_states,), 1 / n_states, dtype=torch.float64))


def test_flat_distribution_requires_a_state():
    with pytest.raises(ValueError):
        flat_distribution(0)


def test_max_index_first_maximum():
    assert max_index(torch.tensor([0.1, 0.4, 0.4, 0.1])) == 1
    assert max_index(torch.tensor([0.5, 0.5])) == 0
    assert max_index(torch.tensor([0.2, torch.nan, 0.3])) == 2
    assert max_index(torch.tensor([torch.nan, torch.nan])) == 0


def test_format_distribution():
    assert format_distribution(torch.tensor([0.765217, 0.234783])) == "<0.7652, 0.2348>"
    assert format_distribution(torch.tensor([0.5, 0.25, 0.25]), precision=2) == "<0.50, 0.25, 0.25>"
