"""Wire data types exchanged with the instrument."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence, Union

import numpy as np
from mashumaro import DataClassDictMixin

from .constants import Namespace


@dataclass
class SignalPayload(DataClassDictMixin):
    """One buffered slice of a fast channel (or a one-sample slow analog value)."""

    size: int
    value: list[float] = field(default_factory=list)

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"Signal size must be >= 0, got {self.size}")
        if len(self.value) != self.size:
            raise ValueError(
                f"Signal size {self.size} does not match its {len(self.value)} values"
            )

    @classmethod
    def from_samples(cls, samples: Sequence[float] | np.ndarray) -> SignalPayload:
        # tolist() turns numpy scalars into plain python numbers for the encoder
        values = np.asarray(samples).ravel().tolist()
        return cls(size=len(values), value=values)


@dataclass
class ParameterPayload(DataClassDictMixin):
    """One scalar I/O or configuration value."""

    value: Any  # number | bool, kept as received

    def __post_init__(self):
        if not isinstance(self.value, (bool, int, float)):
            raise TypeError(
                f"Parameter value must be a number or bool, got {type(self.value)}"
            )


Payload = Union[SignalPayload, ParameterPayload]


@dataclass
class Frame(DataClassDictMixin):
    """One decoded unit of the wire protocol.

    Either mapping may be empty; a key sits in at most one of them.
    """

    signals: dict[str, SignalPayload] = field(default_factory=dict)
    parameters: dict[str, ParameterPayload] = field(default_factory=dict)

    def __post_init__(self):
        shared = self.signals.keys() & self.parameters.keys()
        if shared:
            raise ValueError(
                f"Keys present in both signals and parameters: {sorted(shared)}"
            )

    def payloads(self, namespace: Namespace | str) -> dict[str, Payload]:
        match Namespace(namespace):
            case Namespace.SIGNALS:
                return self.signals
            case Namespace.PARAMETERS:
                return self.parameters

    def to_wire(self) -> dict[str, dict]:
        """Dict form with empty namespaces left out."""
        return {ns: keys for ns, keys in self.to_dict().items() if keys}

    def __repr__(self):
        sig = ", ".join(
            f"{k}=<{p.size} samples>" for k, p in self.signals.items()
        )
        par = ", ".join(f"{k}={p.value}" for k, p in self.parameters.items())
        return f"Frame(signals=[{sig}], parameters=[{par}])"


def payload_from_dict(namespace: Namespace | str, data: dict) -> Payload:
    if Namespace(namespace) is Namespace.SIGNALS:
        return SignalPayload.from_dict(data)
    return ParameterPayload.from_dict(data)
