"""Extract scores from Triton ModelInferResponse messages.

Triton may answer with typed values or with a packed raw buffer at its own
discretion, so decoding first classifies the response payload and then
decodes it in one place.

Fallback order:
    1. Typed ``fp32_contents`` of the output named as requested, if non-empty
    2. First entry of ``raw_output_contents``, read as little-endian float32

Author: Matthew Hong
"""

import enum
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from tritonclient.grpc import service_pb2

from verify_gateway.errors import InvalidResponseError

FLOAT32_SIZE = 4
_LE_FLOAT32 = np.dtype("<f4")


class PayloadKind(str, enum.Enum):
    TYPED = "typed"
    RAW = "raw"
    EMPTY = "empty"


@dataclass(frozen=True)
class OutputPayload:
    """The usable part of a response, tagged by encoding."""

    kind: PayloadKind
    typed: Sequence[float] = ()
    raw: bytes = b""


def select_payload(response: service_pb2.ModelInferResponse, output_name: str) -> OutputPayload:
    """Classify which encoding carries the requested output.

    Raises:
        InvalidResponseError: If no output is named ``output_name``
    """
    output = _find_output(response, output_name)
    if output is None:
        available = [out.name for out in response.outputs]
        raise InvalidResponseError(
            f"Triton response has no output {output_name!r} (got {available})"
        )

    if output.HasField("contents") and len(output.contents.fp32_contents) > 0:
        return OutputPayload(PayloadKind.TYPED, typed=output.contents.fp32_contents)
    if len(response.raw_output_contents) > 0:
        return OutputPayload(PayloadKind.RAW, raw=response.raw_output_contents[0])
    return OutputPayload(PayloadKind.EMPTY)


def extract_scores(response: service_pb2.ModelInferResponse, output_name: str) -> list[float]:
    """Decode the float values of ``output_name`` from a response.

    Args:
        response: Triton inference response
        output_name: Output tensor name that was requested

    Returns:
        Scores in the order the backend produced them

    Raises:
        InvalidResponseError: If the output is missing, the raw buffer is
            not a whole number of float32 values, or no floats are present
    """
    payload = select_payload(response, output_name)

    if payload.kind is PayloadKind.TYPED:
        return [float(value) for value in payload.typed]

    if payload.kind is PayloadKind.RAW:
        if len(payload.raw) % FLOAT32_SIZE != 0:
            raise InvalidResponseError(
                f"Raw output for {output_name!r} is {len(payload.raw)} bytes, "
                f"not a multiple of {FLOAT32_SIZE}"
            )
        scores = np.frombuffer(payload.raw, dtype=_LE_FLOAT32).tolist()
        if scores:
            return scores

    raise InvalidResponseError(f"Triton output {output_name!r} carries no float values")


def _find_output(
    response: service_pb2.ModelInferResponse, output_name: str
) -> Optional[service_pb2.ModelInferResponse.InferOutputTensor]:
    for output in response.outputs:
        if output.name == output_name:
            return output
    return None
