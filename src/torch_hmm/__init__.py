"""Torch-HMM: Exact filtering, smoothing and decoding of discrete Hidden Markov Models in PyTorch.

torch-hmm implements the classic inference algorithms over a Hidden Markov Model with a
finite set of hidden states and a finite set of observation symbols. The model is fully
described by two matrices:
- a transition matrix ``T`` with ``T[s, s'] = P(s_k = s' | s_{k-1} = s)``,
- a sensor matrix ``S`` with ``S[s, o] = P(o_k = o | s_k = s)``.

Key features
------------
- **Filtering**: belief on the hidden state after a prefix of observations.
- **Backward filtering**: belief on the hidden state given a suffix of observations.
- **Smoothing**: belief at any time index, combining both passes.
- **Viterbi decoding**: most likely sequence of hidden states, with its DP tables.

Numerical notes
---------------
Beliefs are normalized after each observation (and so are each step of the Viterbi
table), which keeps magnitudes bounded over long sequences. Normalization is never
guarded: an observation that has a zero probability in every state yields NaN beliefs.

Getting started
---------------
The core API consists of:
- :class:`~torch_hmm.HiddenMarkovModel` with :meth:`~torch_hmm.HiddenMarkovModel.filter`,
  :meth:`~torch_hmm.HiddenMarkovModel.back_filter`, :meth:`~torch_hmm.HiddenMarkovModel.estimate`,
  :meth:`~torch_hmm.HiddenMarkovModel.smooth` and :meth:`~torch_hmm.HiddenMarkovModel.viterbi`.
- :mod:`torch_hmm.functional` exposing the same algorithms as plain functions.
- :mod:`torch_hmm.algebra` with the distribution/model primitives they rely on.

The :mod:`torch_hmm.sticky` module builds ready-to-use sticky models.

Notes on shapes
---------------
Distributions are 1-D tensors of shape ``(n_states,)``. Models are 2-D tensors whose
rows are distributions. Observations are sequences of integer symbols.
"""

from .algebra import DimensionMismatchError, HMMError, NonSquareMatrixError
from .hidden_markov_model import HiddenMarkovModel

__all__ = ["DimensionMismatchError", "HMMError", "HiddenMarkovModel", "NonSquareMatrixError"]
__version__ = "0.1.0"
