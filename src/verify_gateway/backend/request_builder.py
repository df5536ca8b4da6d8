"""Build Triton ModelInferRequest messages from preprocessed tensors.

Author: Matthew Hong
"""

from tritonclient.grpc import service_pb2

from verify_gateway.models import BackendConfig, Tensor

FP32 = "FP32"


def build_infer_request(tensor: Tensor, config: BackendConfig) -> service_pb2.ModelInferRequest:
    """Map a tensor into a single-input, single-output inference request.

    The input is sent as typed ``fp32_contents`` and the one requested output
    asks for typed (non-binary) values. ``model_version`` and ``id`` stay
    empty so Triton serves the latest model version.

    Args:
        tensor: Well-formed input tensor
        config: Backend configuration naming the model, input and output

    Returns:
        ModelInferRequest ready to send
    """
    request = service_pb2.ModelInferRequest(model_name=config.model_name)

    infer_input = request.inputs.add()
    infer_input.name = config.input_name
    infer_input.datatype = FP32
    infer_input.shape.extend(tensor.shape)
    infer_input.contents.fp32_contents.extend(tensor.data.tolist())

    requested_output = request.outputs.add()
    requested_output.name = config.output_name
    requested_output.parameters["binary_data"].bool_param = False

    return request
