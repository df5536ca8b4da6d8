"""ImageProcessor gRPC servicer implementation.

Implements the ImageProcessor service defined in verify.proto. Validates
inbound requests and maps gateway errors to gRPC status codes.

Author: Matthew Hong
"""

import logging
import time
import uuid

import grpc
import grpc.aio

from verify_gateway.errors import DecodeError, GatewayError
from verify_gateway.logger import request_id_var
from verify_gateway.pipeline import VerificationPipeline
from verify_gateway.proto import verify_pb2, verify_pb2_grpc

logger = logging.getLogger(__name__)


class ImageProcessorServicer(verify_pb2_grpc.ImageProcessorServicer):
    """gRPC servicer for image verification.

    Attributes:
        pipeline: VerificationPipeline shared by all requests
    """

    def __init__(self, pipeline: VerificationPipeline) -> None:
        self.pipeline = pipeline
        logger.info("ImageProcessorServicer initialized")

    async def ProcessImage(
        self,
        request: verify_pb2.VerifyRequest,
        context: grpc.aio.ServicerContext,
    ) -> verify_pb2.VerifyResponse:
        """Verify a user's image.

        Args:
            request: VerifyRequest with image bytes and user ID
            context: gRPC servicer context

        Returns:
            VerifyResponse with success flag, score and message
        """
        t_start = time.perf_counter()
        request_id_var.set(str(uuid.uuid4()))

        if not request.image_data:
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, "image data cannot be empty")
        if not request.user_id:
            await context.abort(grpc.StatusCode.INVALID_ARGUMENT, "user_id is required")

        log_extra = {"endpoint": "ProcessImage", "user_id": request.user_id}
        logger.info("Received verification request", extra=log_extra)

        try:
            result = await self.pipeline.verify(request.image_data)
        except DecodeError as e:
            logger.error(
                f"Image preprocessing failed: {e}",
                extra={**log_extra, "status_code": grpc.StatusCode.INTERNAL.name},
                exc_info=True,
            )
            await context.abort(grpc.StatusCode.INTERNAL, f"image preprocessing failed: {e}")
        except GatewayError as e:
            logger.error(
                f"Triton inference failed: {e}",
                extra={**log_extra, "status_code": grpc.StatusCode.INTERNAL.name},
                exc_info=True,
            )
            await context.abort(grpc.StatusCode.INTERNAL, f"triton inference failed: {e}")

        logger.info(
            result.message,
            extra={
                **log_extra,
                "score": result.score,
                "success": result.success,
                "latency_ms": (time.perf_counter() - t_start) * 1000,
                "status_code": grpc.StatusCode.OK.name,
            },
        )

        return verify_pb2.VerifyResponse(
            success=result.success,
            score=result.score,
            message=result.message,
        )
