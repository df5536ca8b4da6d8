"""Verification pipeline: preprocess -> Triton inference -> policy.

Author: Matthew Hong
"""

import asyncio
import logging
import time

from verify_gateway.backend import TritonVerifyClient
from verify_gateway.models import VerificationResult
from verify_gateway.policy import DEFAULT_THRESHOLD, decide
from verify_gateway.processing import VERIFY_INPUT_SIZE, VerifyPreprocessor

logger = logging.getLogger(__name__)


class VerificationPipeline:
    """End-to-end verification of a single image.

    Attributes:
        client: Shared Triton client
        preprocessor: Image to tensor conversion
        threshold: Minimum score for success
    """

    def __init__(
        self,
        client: TritonVerifyClient,
        input_size: int = VERIFY_INPUT_SIZE,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        self.client = client
        self.preprocessor = VerifyPreprocessor(input_size)
        self.threshold = threshold

    async def verify(self, image_bytes: bytes) -> VerificationResult:
        """Score an image against the verification model.

        Preprocessing runs in a worker thread so decoding large images does
        not stall the event loop.

        Raises:
            DecodeError: If the image cannot be decoded
            ConfigurationError, TransportError, InvalidResponseError: From
                the Triton client
        """
        t_start = time.perf_counter()
        tensor = await asyncio.to_thread(self.preprocessor, image_bytes)
        t_preprocess = time.perf_counter()

        scores = await self.client.infer(tensor)
        result = decide(scores, self.threshold)

        logger.debug(
            f"Preprocess {(t_preprocess - t_start) * 1000:.1f}ms, "
            f"total {(time.perf_counter() - t_start) * 1000:.1f}ms",
            extra={"score": result.score, "success": result.success},
        )
        return result
