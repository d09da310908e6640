"""
Variant Orchestrator for the responsive image engine

This module contains the VariantOrchestrator class which encodes and
commits every (format, size) variant of a request, produces the
placeholder and assembles the final ImageMetadata.
"""

import logging
from typing import List, Tuple

from .codec import CodecAdapter
from .enums import ImageFormat, PlaceholderStrategy
from .errors import VariantBuildError
from .geometry import Geometry, variant_height
from .models import DecodedImage, ImageMetadata, RequestParameters, Variant
from .parallel import ParallelProcessor
from .placeholder import PlaceholderGenerator
from .sink import OutputStrategy
from .srcset import assemble_sources

logger = logging.getLogger(__name__)


class VariantOrchestrator:
    """Builds all variants of one decoded image"""

    def __init__(self, codec: CodecAdapter, output: OutputStrategy,
                 placeholder_generator: PlaceholderGenerator,
                 parallel_processor: ParallelProcessor):
        self.codec = codec
        self.output = output
        self.placeholder_generator = placeholder_generator
        self.parallel_processor = parallel_processor

    def plan(self, request: RequestParameters, geometry: Geometry) -> List[Tuple[ImageFormat, int]]:
        """Format-major (format, width) jobs"""
        return [(fmt, size) for fmt in request.formats for size in geometry.sizes]

    def build(self, decoded: DecodedImage, request: RequestParameters, geometry: Geometry) -> ImageMetadata:
        jobs = self.plan(request, geometry)
        logger.info(f"Building {len(jobs)} variants for {decoded.path.name}")

        def build_one(job: Tuple[ImageFormat, int]) -> Variant:
            return self._build_variant(decoded, job[0], job[1], request, geometry)

        # Results are slotted by job index, so ordering stays format-major
        variants = self.parallel_processor.map_ordered(build_one, jobs)

        placeholder = None
        if request.placeholder is not PlaceholderStrategy.NONE:
            target_ratio = None
            if request.width and request.height:
                target_ratio = request.width / request.height
            placeholder = self.placeholder_generator.generate(
                decoded, request.placeholder, request.fit, aspect_ratio=target_ratio
            )

        # Falls back to the first variant when no original was requested
        src = next((v.url for v in variants if v.format is ImageFormat.ORIGINAL), variants[0].url)

        return ImageMetadata(
            src=src,
            width=geometry.final_width,
            height=geometry.final_height,
            aspect_ratio=geometry.aspect_ratio,
            placeholder=placeholder,
            sources=assemble_sources(variants, request.sizes),
        )

    def _build_variant(self, decoded: DecodedImage, fmt: ImageFormat, width: int,
                       request: RequestParameters, geometry: Geometry) -> Variant:
        height = variant_height(width, geometry.aspect_ratio, request.height)
        try:
            data = self.codec.encode(decoded, width, height, fmt, request.fit)
            extension = decoded.path.suffix if fmt is ImageFormat.ORIGINAL else f".{fmt.value}"
            url = self.output.commit(data, decoded.path, width, extension)
        except Exception as e:
            logger.error(f"Variant {fmt.value} {width}x{height} of {decoded.path.name} failed: {e}")
            raise VariantBuildError(fmt.value, width, str(e)) from e

        logger.debug(f"Built {fmt.value} {width}x{height} -> {url}")
        return Variant(format=fmt, width=width, height=height, url=url)
