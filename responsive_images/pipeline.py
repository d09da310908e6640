"""
Main Pipeline for the responsive image engine

This module contains the ResponsiveImagePipeline class which is the entry
point used by the host build system: it validates requests, consults the
two-tier cache and, on a miss, decodes the image and runs the variant
orchestrator.
"""

import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .cache import ImageCache, fingerprint
from .codec import CodecAdapter
from .errors import ImageRequestError
from .geometry import calculate_breakpoints, resolve_geometry
from .models import EngineConfig, ImageMetadata, RequestParameters
from .orchestrator import VariantOrchestrator
from .parallel import ParallelProcessor
from .placeholder import PlaceholderGenerator
from .sink import AssetSink, DirectorySink, OutputStrategy

logger = logging.getLogger(__name__)

IMAGE_ID_PATTERN = re.compile(r"\.(jpg|jpeg|png|webp|avif|tiff)\?", re.IGNORECASE)
IMAGE_GLOBS = ['*.png', '*.jpg', '*.jpeg', '*.webp', '*.avif', '*.tiff']

ConfigSource = Union[None, str, Path, Dict[str, Any], EngineConfig]


def load_config(config: ConfigSource = None) -> EngineConfig:
    """Load configuration from a JSON file, a dict or an EngineConfig"""
    if config is None:
        return EngineConfig()
    if isinstance(config, EngineConfig):
        return config
    if isinstance(config, dict):
        return EngineConfig.from_dict(config)
    with open(config, 'r') as f:
        return EngineConfig.from_dict(json.load(f))


def render_module(serialized: str) -> str:
    """Module source the image reference resolves to"""
    return f"export default {serialized};"


class ResponsiveImagePipeline:
    """Cache-fronted responsive image pipeline"""

    def __init__(self, config: ConfigSource = None, sink: Optional[AssetSink] = None,
                 codec: Optional[CodecAdapter] = None):
        self.config = load_config(config)

        # Initialize components
        self.codec = codec or CodecAdapter()
        self.sink = sink or DirectorySink(self.config.output_dir, self.config.assets_dir)
        self.cache = ImageCache(self.config.cache_dir)
        self.parallel_processor = ParallelProcessor(self.config.max_workers)
        self.output = OutputStrategy(self.sink, self.config.build_mode, self.config.cache_dir)
        self.placeholder_generator = PlaceholderGenerator(self.codec)
        self.orchestrator = VariantOrchestrator(
            self.codec, self.output, self.placeholder_generator, self.parallel_processor
        )

        logger.info(f"Responsive image pipeline initialized ({self.config.build_mode.value} mode)")

    def parse_request(self, query: str) -> RequestParameters:
        return RequestParameters.from_query(query, self.config)

    def transform(self, image_path: str, query: str = "") -> str:
        """Serialized ImageMetadata for an image request, served from cache after the first build"""
        try:
            request = self.parse_request(query)
            key = fingerprint(image_path, request)

            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit for {image_path}?{query}")
                return cached

            logger.info(f"Cache miss for {image_path}?{query}, processing")
            serialized = self._compute(image_path, request).to_json()
        except Exception as e:
            logger.error(f"Image request failed for {image_path}?{query}: {e}")
            raise ImageRequestError(image_path, query, f"{type(e).__name__}: {e}") from e

        self.cache.set(key, serialized)
        return serialized

    def get_metadata(self, image_path: str, query: str = "") -> ImageMetadata:
        return ImageMetadata.from_json(self.transform(image_path, query))

    def _compute(self, image_path: str, request: RequestParameters) -> ImageMetadata:
        decoded = self.codec.decode(image_path)

        if self.config.breakpoints == "auto":
            breakpoints = calculate_breakpoints(decoded.width)
        else:
            breakpoints = self.config.breakpoints

        geometry = resolve_geometry(
            decoded.width, decoded.height, request.width, request.height, breakpoints
        )
        return self.orchestrator.build(decoded, request, geometry)

    def load(self, module_id: str) -> Optional[str]:
        """Load hook: resolve `path.ext?query` ids to module source; ignore anything else"""
        if not IMAGE_ID_PATTERN.search(module_id):
            return None
        image_path, _, query = module_id.partition("?")
        return render_module(self.transform(image_path, query))

    def process_dataset(self, dataset_path: Union[str, Path], query: str = "") -> Dict:
        """Process every image in a directory concurrently"""
        logger.info(f"Starting dataset processing: {dataset_path}")

        dataset_path = Path(dataset_path)
        if dataset_path.is_file():
            image_files = [dataset_path]
        else:
            image_files = []
            for pattern in IMAGE_GLOBS:
                image_files.extend(dataset_path.glob(pattern))
            image_files = sorted(image_files)

        if not image_files:
            logger.warning(f"No image files found in {dataset_path}")
            return {"status": "no_files", "processed": 0}

        start_time = time.time()
        results = self.parallel_processor.map_ordered(
            lambda path: self._process_wrapper(str(path), query), image_files
        )

        processing_stats: Dict[str, Any] = {
            "total_files": len(image_files),
            "processed": 0,
            "failed": 0,
            "processing_time": 0,
            "images": {},
        }
        for path, result in zip(image_files, results):
            if result is None:
                processing_stats["failed"] += 1
            else:
                processing_stats["processed"] += 1
                processing_stats["images"][str(path)] = result

        processing_stats["processing_time"] = time.time() - start_time

        logger.info(f"Processing complete. Processed: {processing_stats['processed']}, "
                    f"Failed: {processing_stats['failed']}")
        logger.info(f"Total processing time: {processing_stats['processing_time']:.2f} seconds")
        return processing_stats

    def _process_wrapper(self, image_path: str, query: str) -> Optional[Dict]:
        """Run one image of a batch; a failed image is counted, not fatal to the batch"""
        try:
            return json.loads(self.transform(image_path, query))
        except ImageRequestError:
            # Already logged with the offending path and parameters
            return None


def create_default_config(config_path: Union[str, Path] = 'config.json') -> Dict:
    """Create default configuration file"""
    config = EngineConfig().to_dict()

    with open(config_path, 'w') as f:
        json.dump(config, f, indent=2)

    return config
