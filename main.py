#!/usr/bin/env python3
"""
Main entry point for the responsive image engine

This script demonstrates how to use the pipeline outside a host build
system: it builds every image found in an input directory and writes the
resulting metadata manifest next to the emitted assets.
"""

import os
import sys
import json
import logging
from pathlib import Path

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

from responsive_images.pipeline import ResponsiveImagePipeline, create_default_config


def main():
    """Main function to run the responsive image pipeline"""

    # Create default configuration if it doesn't exist
    if not os.path.exists('config.json'):
        logger.info("Creating default configuration file...")
        create_default_config()
        logger.info("Default configuration created: config.json")
    else:
        logger.info("Using existing configuration file: config.json")

    dataset_path = sys.argv[1] if len(sys.argv) > 1 else "./images"
    query = sys.argv[2] if len(sys.argv) > 2 else ""

    try:
        logger.info("Initializing responsive image pipeline...")
        pipeline = ResponsiveImagePipeline('config.json')

        if not os.path.exists(dataset_path):
            logger.warning(f"Input directory does not exist: {dataset_path}")
            Path(dataset_path).mkdir(parents=True, exist_ok=True)
            logger.info(f"Please place your images in: {dataset_path}")
            logger.info("Then run this script again.")
            return 1

        logger.info(f"Input: {dataset_path}")
        logger.info(f"Query: {query or '(defaults)'}")
        results = pipeline.process_dataset(dataset_path, query)

        if results["processed"] > 0:
            output_dir = pipeline.config.output_dir
            output_dir.mkdir(parents=True, exist_ok=True)
            manifest_path = output_dir / "images.json"
            with open(manifest_path, 'w') as f:
                json.dump(results["images"], f, indent=2)

            print(f"\nProcessed {results['processed']} image(s), {results['failed']} failed")
            print(f"Manifest: {manifest_path}")
            print(f"Total processing time: {results['processing_time']:.2f} seconds")
        else:
            print("\nNo images were successfully processed")
            print("Check the logs above for detailed error information")

        return 0 if results.get("failed", 0) == 0 else 1

    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
