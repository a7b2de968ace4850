"""Example filtering/smoothing/decoding on the classic textbook HMMs"""

import argparse
import logging
from typing import Dict, List, Tuple

import torch
import yaml

import torch_hmm
import torch_hmm.algebra
from torch_hmm.sticky import as_state


# Each example: (transition matrix, sensor matrix, observations)
EXAMPLES: Dict[str, Tuple[List[List[float]], List[List[float]], List[int]]] = {
    "assignment": (
        [[0.7, 0.3], [0.4, 0.6]],
        [[0.8, 0.2], [0.3, 0.7]],
        [as_state(True), as_state(False), as_state(True)],
    ),
    "umbrella": (
        [[0.7, 0.3], [0.3, 0.7]],
        [[0.9, 0.1], [0.2, 0.8]],
        [as_state(True), as_state(True), as_state(False), as_state(True), as_state(True)],
    ),
    "wikipedia": (
        [[0.7, 0.3], [0.4, 0.6]],
        [[0.5, 0.4, 0.1], [0.1, 0.3, 0.6]],
        [0, 1, 2],
    ),
}


def load_model(path: str) -> Tuple[torch_hmm.HiddenMarkovModel, List[int]]:
    """Load a model and its observations from a yaml file

    Expected format:

    transition: [[0.7, 0.3], [0.4, 0.6]]
    sensor: [[0.8, 0.2], [0.3, 0.7]]
    observations: [0, 1, 0]

    Args:
        path (str): Path to the yaml file

    Returns:
        torch_hmm.HiddenMarkovModel: The model
        List[int]: Observations
    """
    with open(path, "r", encoding="utf-8") as file:
        config = yaml.safe_load(file)

    hmm = torch_hmm.HiddenMarkovModel(
        torch.tensor(config["transition"], dtype=torch.float64), torch.tensor(config["sensor"], dtype=torch.float64)
    )
    return hmm, list(config["observations"])


def main(example: str, config: str):
    if config:
        hmm, observations = load_model(config)
    else:
        transition, sensor, observations = EXAMPLES[example]
        hmm = torch_hmm.HiddenMarkovModel(
            torch.tensor(transition, dtype=torch.float64), torch.tensor(sensor, dtype=torch.float64)
        )

    print(hmm)
    print()

    smoothed = hmm.smooth(observations)
    results = {
        "observations": observations,
        "filter": torch_hmm.algebra.format_distribution(hmm.filter(observations)),
        "back_filter": torch_hmm.algebra.format_distribution(hmm.back_filter(observations)),
        "estimates": {at: torch_hmm.algebra.format_distribution(belief) for at, belief in enumerate(smoothed)},
        "most_likely_states": hmm.viterbi(observations).tolist(),
    }
    print(yaml.dump(results, sort_keys=False))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run HMM inference on a small example")
    parser.add_argument("--example", default="assignment", choices=sorted(EXAMPLES), help="Built-in example")
    parser.add_argument("--config", default="", help="Yaml file with transition, sensor and observations")
    parser.add_argument("--debug", action="store_true", help="Log intermediate beliefs and Viterbi tables")

    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    main(args.example, args.config)
