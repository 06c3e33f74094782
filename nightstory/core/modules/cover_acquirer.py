"""
Cover acquisition through one of two exclusive paths.

- Path U (uploaded photo): composite onto the cover canvas, then try to refine.
- Path S (no photo): synthesize a cover from a description.

The acquirer only produces a result. Writing it is the cover lock's job.
"""

import asyncio
import logging
from typing import Callable

from nightstory.config import to_data_uri
from ..errors import StaleResponse
from ..themes import get_style
from ..types import AnswerSet, ImageAcquisitionResult, ImageOrigin
from .cover_compositor import compose_cover
from .cover_refiner import CoverRefiner
from .cover_synthesizer import CoverSynthesizer, build_synthesis_request

logger = logging.getLogger(__name__)


class CoverAcquirer:
    """
    Pick the acquisition path for an answer set and run it.

    Args:
        synthesizer: Path S client (default: CoverSynthesizer)
        refiner: Path U enhancement client (default: CoverRefiner)
    """

    def __init__(self, synthesizer: CoverSynthesizer = None, refiner: CoverRefiner = None):
        self.synthesizer = synthesizer or CoverSynthesizer()
        self.refiner = refiner or CoverRefiner()

    async def acquire(
        self,
        answer_set: AnswerSet,
        is_current: Callable[[], bool] = lambda: True,
    ) -> ImageAcquisitionResult:
        """
        Produce a cover for the answer set.

        Args:
            answer_set: Submitted answers
            is_current: Returns False once this acquisition has been superseded

        Raises:
            StaleResponse: If superseded between compositing and refinement
            TransportError, ParseError: If the chosen path fails
        """
        if answer_set.uploaded_image:
            return await self._acquire_uploaded(answer_set, is_current)
        return await self._acquire_synthesized(answer_set)

    async def _acquire_uploaded(self, answer_set: AnswerSet, is_current: Callable[[], bool]) -> ImageAcquisitionResult:
        composite = await asyncio.to_thread(compose_cover, answer_set.uploaded_image)
        if not is_current():
            raise StaleResponse("cover acquisition superseded after compositing")

        style = get_style(answer_set.primary_style)
        style_name = style.name if style else answer_set.custom_visual_style.strip()
        tone = style.refinement_tone if style else ""

        refined = await self.refiner.refine(composite, style_name, tone, answer_set.children)
        if refined is None:
            logger.info("Using unenhanced composited photo as cover")

        return ImageAcquisitionResult(
            image_reference=to_data_uri(refined or composite),
            origin=ImageOrigin.UPLOADED,
            style=answer_set.primary_style,
        )

    async def _acquire_synthesized(self, answer_set: AnswerSet) -> ImageAcquisitionResult:
        request = build_synthesis_request(answer_set)
        logger.info(f"Synthesizing {request.style_name} cover with {request.child_count_description}")
        reference = await self.synthesizer.synthesize(request)
        return ImageAcquisitionResult(
            image_reference=reference,
            origin=ImageOrigin.SYNTHESIZED,
            style=answer_set.primary_style,
        )
