"""
Feed-forward neural controller.

Each layer holds a (n_out, n_in) weight matrix, an (n_out,) bias vector,
and one activation name per neuron; neuron i computes
activation_i(W[i] . x + b[i]). Evaluation is pure: no state is kept
between calls, so identical weights and inputs give bit-identical outputs.

Mutation, crossover, and cloning never share arrays between networks.
"""

import numpy as np
from typing import Callable, Dict, List, Sequence

from .constants import SIGMOID_SATURATION, WEIGHT_LIMIT


class DimensionMismatch(ValueError):
    """Raised when an input vector or partner network has the wrong shape"""
    pass


def sigmoid(x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype=np.float64)
    out = 1.0 / (1.0 + np.exp(-np.clip(x, -SIGMOID_SATURATION, SIGMOID_SATURATION)))
    out = np.where(x < -SIGMOID_SATURATION, 0.0, out)
    return np.where(x > SIGMOID_SATURATION, 1.0, out)


def tanh(x: np.ndarray) -> np.ndarray:
    return np.tanh(x)


def relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(0.0, x)


def leaky_relu(x: np.ndarray) -> np.ndarray:
    return np.where(x > 0.0, x, 0.01 * x)


def linear(x: np.ndarray) -> np.ndarray:
    return np.asarray(x, dtype=np.float64)


ACTIVATIONS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    'sigmoid': sigmoid,
    'tanh': tanh,
    'relu': relu,
    'leaky_relu': leaky_relu,
    'linear': linear,
}


def _check_activation(name: str):
    if name not in ACTIVATIONS:
        raise ValueError(f"Unknown activation '{name}' (expected one of {sorted(ACTIVATIONS)})")


class Layer:
    """
    One dense layer of neurons.

    Args:
        weights: (n_out, n_in) weight matrix
        biases: (n_out,) bias vector
        activations: Activation name per neuron (length n_out)
    """

    def __init__(self, weights: np.ndarray, biases: np.ndarray, activations: Sequence[str]):
        self.weights = np.array(weights, dtype=np.float64)
        self.biases = np.array(biases, dtype=np.float64)
        self.activations = list(activations)

        if self.weights.ndim != 2:
            raise DimensionMismatch(f"Weights must be 2D, got shape {self.weights.shape}")
        if self.biases.shape != (self.weights.shape[0],):
            raise DimensionMismatch(
                f"Bias shape {self.biases.shape} does not match {self.weights.shape[0]} neurons"
            )
        if len(self.activations) != self.weights.shape[0]:
            raise DimensionMismatch(
                f"{len(self.activations)} activations for {self.weights.shape[0]} neurons"
            )
        for name in self.activations:
            _check_activation(name)

        self._groups = self._group_activations()

    @classmethod
    def random(cls, input_size: int, output_size: int, activation, rng: np.random.Generator) -> 'Layer':
        """
        Layer with weights and biases drawn uniformly from [-1, 1].

        Args:
            activation: One name for all neurons, or a list with one name per neuron
        """
        if isinstance(activation, str):
            activation = [activation] * output_size
        weights = rng.uniform(-1.0, 1.0, size=(output_size, input_size))
        biases = rng.uniform(-1.0, 1.0, size=output_size)
        return cls(weights, biases, activation)

    def _group_activations(self):
        groups: Dict[str, List[int]] = {}
        for i, name in enumerate(self.activations):
            groups.setdefault(name, []).append(i)
        return [(ACTIVATIONS[name], np.array(idx)) for name, idx in groups.items()]

    @property
    def input_size(self) -> int:
        return self.weights.shape[1]

    @property
    def output_size(self) -> int:
        return self.weights.shape[0]

    def evaluate(self, inputs: np.ndarray) -> np.ndarray:
        if inputs.shape[0] != self.input_size:
            raise DimensionMismatch(f"Layer expects {self.input_size} inputs, got {inputs.shape[0]}")
        raw = self.weights @ inputs + self.biases
        if len(self._groups) == 1:
            return self._groups[0][0](raw)
        out = np.empty_like(raw)
        for fn, idx in self._groups:
            out[idx] = fn(raw[idx])
        return out

    def clone(self) -> 'Layer':
        return Layer(self.weights.copy(), self.biases.copy(), list(self.activations))

    def to_dict(self) -> dict:
        return {
            'weights': self.weights.tolist(),
            'biases': self.biases.tolist(),
            'activations': list(self.activations),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Layer':
        return cls(np.array(data['weights'], dtype=np.float64),
                   np.array(data['biases'], dtype=np.float64),
                   data['activations'])


class NeuralNetwork:
    """
    Minimal feed-forward network: a list of dense layers.

    Example:
        brain = NeuralNetwork.create([14, 8, 5], rng)
        outputs = brain.evaluate(sensors)
    """

    def __init__(self, layers: List[Layer]):
        if not layers:
            raise DimensionMismatch("Network needs at least one layer")
        for prev, nxt in zip(layers, layers[1:]):
            if prev.output_size != nxt.input_size:
                raise DimensionMismatch(
                    f"Layer output {prev.output_size} does not feed next layer input {nxt.input_size}"
                )
        self.layers = layers

    @classmethod
    def create(
        cls,
        architecture: Sequence[int],
        rng: np.random.Generator,
        hidden_activation: str = 'tanh',
        output_activations=None
    ) -> 'NeuralNetwork':
        """
        Build a randomly initialised network.

        Args:
            architecture: Layer sizes including input, e.g. [14, 8, 5]
            rng: Generator for initial weights
            hidden_activation: Activation for every hidden neuron
            output_activations: Name or per-neuron list for the output layer (default sigmoid)

        Returns:
            New NeuralNetwork
        """
        if len(architecture) < 2:
            raise DimensionMismatch(f"Architecture needs input and output sizes, got {list(architecture)}")
        if output_activations is None:
            output_activations = 'sigmoid'

        layers = []
        for i in range(1, len(architecture)):
            is_output = i == len(architecture) - 1
            activation = output_activations if is_output else hidden_activation
            layers.append(Layer.random(architecture[i - 1], architecture[i], activation, rng))
        return cls(layers)

    @property
    def architecture(self) -> List[int]:
        return [self.layers[0].input_size] + [layer.output_size for layer in self.layers]

    @property
    def input_size(self) -> int:
        return self.layers[0].input_size

    @property
    def output_size(self) -> int:
        return self.layers[-1].output_size

    @property
    def parameter_count(self) -> int:
        return sum(layer.weights.size + layer.biases.size for layer in self.layers)

    def evaluate(self, inputs: Sequence[float]) -> np.ndarray:
        """
        Forward pass.

        Raises:
            DimensionMismatch: If len(inputs) != input_size (never truncated or padded)
        """
        x = np.asarray(inputs, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.input_size:
            raise DimensionMismatch(
                f"Network expects {self.input_size} inputs, got shape {x.shape}"
            )
        for layer in self.layers:
            x = layer.evaluate(x)
        return x

    def clone(self) -> 'NeuralNetwork':
        return NeuralNetwork([layer.clone() for layer in self.layers])

    def mutate(self, rate: float, strength: float, rng: np.random.Generator):
        """
        Perturb weights and biases in place.

        Each parameter is independently perturbed with probability `rate`
        by uniform(-1, 1) * strength, then clamped to [-WEIGHT_LIMIT, WEIGHT_LIMIT].
        """
        for layer in self.layers:
            for params in (layer.weights, layer.biases):
                mask = rng.random(params.shape) < rate
                noise = rng.uniform(-1.0, 1.0, size=params.shape) * strength
                params += np.where(mask, noise, 0.0)
                np.clip(params, -WEIGHT_LIMIT, WEIGHT_LIMIT, out=params)

    @classmethod
    def crossover(cls, parent_a: 'NeuralNetwork', parent_b: 'NeuralNetwork',
                  rng: np.random.Generator) -> 'NeuralNetwork':
        """
        Uniform crossover: each weight and bias comes from either parent with p=0.5.

        Raises:
            DimensionMismatch: If the parents' architectures differ
        """
        if parent_a.architecture != parent_b.architecture:
            raise DimensionMismatch(
                f"Cannot cross {parent_a.architecture} with {parent_b.architecture}"
            )
        layers = []
        for la, lb in zip(parent_a.layers, parent_b.layers):
            w_mask = rng.random(la.weights.shape) < 0.5
            b_mask = rng.random(la.biases.shape) < 0.5
            layers.append(Layer(
                np.where(w_mask, la.weights, lb.weights),
                np.where(b_mask, la.biases, lb.biases),
                list(la.activations)
            ))
        return cls(layers)

    def set_weight(self, layer: int, neuron: int, input_index: int, value: float):
        self.layers[layer].weights[neuron, input_index] = value

    def set_bias(self, layer: int, neuron: int, value: float):
        self.layers[layer].biases[neuron] = value

    def to_dict(self) -> dict:
        return {
            'architecture': self.architecture,
            'layers': [layer.to_dict() for layer in self.layers],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'NeuralNetwork':
        network = cls([Layer.from_dict(layer) for layer in data['layers']])
        expected = data.get('architecture')
        if expected is not None and list(expected) != network.architecture:
            raise DimensionMismatch(
                f"Serialized architecture {expected} does not match layers {network.architecture}"
            )
        return network

    def __repr__(self) -> str:
        return f"NeuralNetwork({self.architecture})"
