"""Tests for request parsing, configuration and metadata serialization."""

from __future__ import annotations

import json

import pytest

from responsive_images.enums import BuildMode, FitMode, ImageFormat, PlaceholderStrategy
from responsive_images.errors import InvalidParameterError
from responsive_images.models import (
    DEFAULT_BREAKPOINTS,
    DEFAULT_FORMATS,
    EngineConfig,
    ImageMetadata,
    ImageSource,
    RequestParameters,
)


def test_empty_query_uses_configuration_defaults() -> None:
    config = EngineConfig(placeholder=PlaceholderStrategy.DOMINANT_COLOR,
                          formats=(ImageFormat.WEBP,))

    request = RequestParameters.from_query("", config)

    assert request.width is None
    assert request.height is None
    assert request.fit is FitMode.COVER
    assert request.placeholder is PlaceholderStrategy.DOMINANT_COLOR
    assert request.formats == (ImageFormat.WEBP,)
    assert request.sizes is None
    assert request.responsive is False


def test_query_fields_are_typed() -> None:
    request = RequestParameters.from_query(
        "?w=400&h=300&fit=contain&formats=webp,jpg,webp&placeholder=none&sizes=50vw&responsive"
    )

    assert request.width == 400
    assert request.height == 300
    assert request.fit is FitMode.CONTAIN
    assert request.formats == (ImageFormat.WEBP, ImageFormat.JPEG)
    assert request.placeholder is PlaceholderStrategy.NONE
    assert request.sizes == "50vw"
    assert request.responsive is True


@pytest.mark.parametrize(
    "query",
    ["w=abc", "w=0", "h=-4", "fit=squash", "placeholder=sparkles", "formats=gif", "formats=,"],
)
def test_invalid_parameters_are_rejected(query: str) -> None:
    with pytest.raises(InvalidParameterError):
        RequestParameters.from_query(query)


def test_invalid_parameter_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        RequestParameters.from_query("w=wide")


def test_canonical_query_ignores_key_order() -> None:
    first = RequestParameters.from_query("w=400&formats=webp&placeholder=blur")
    second = RequestParameters.from_query("placeholder=blur&w=400&formats=webp")

    assert first.canonical_query() == second.canonical_query()
    assert first.canonical_query() == "formats=webp&placeholder=blur&w=400"


def test_config_defaults() -> None:
    config = EngineConfig()

    assert config.formats == DEFAULT_FORMATS
    assert config.breakpoints == DEFAULT_BREAKPOINTS
    assert config.placeholder is PlaceholderStrategy.BLUR
    assert config.build_mode is BuildMode.DEVELOPMENT


def test_config_round_trips_through_json() -> None:
    config = EngineConfig.from_dict({
        "formats": ["jpeg", "png"],
        "breakpoints": [320, 640],
        "placeholder": "pixelated",
        "cache_dir": "/tmp/images-cache",
        "build_mode": "production",
        "assets_dir": "/static/",
        "max_workers": 2,
    })

    restored = EngineConfig.from_dict(json.loads(json.dumps(config.to_dict())))

    assert restored == config
    assert restored.assets_dir == "static"
    assert restored.formats == (ImageFormat.JPEG, ImageFormat.PNG)


def test_config_accepts_auto_breakpoints() -> None:
    assert EngineConfig.from_dict({"breakpoints": "auto"}).breakpoints == "auto"


@pytest.mark.parametrize(
    "data",
    [{"placeholder": "fancy"}, {"build_mode": "staging"}, {"breakpoints": ["wide"]}],
)
def test_config_rejects_unknown_values(data: dict) -> None:
    with pytest.raises(InvalidParameterError):
        EngineConfig.from_dict(data)


def test_metadata_serialization_uses_camel_case_keys() -> None:
    metadata = ImageMetadata(
        src="/assets/a-100w-0123abcd.jpg",
        width=100,
        height=50,
        aspect_ratio=2.0,
        placeholder=["data:a", "data:b"],
        sources=[ImageSource("webp", "image/webp", "/assets/a-100w-0123abcd.webp 100w")],
    )

    payload = json.loads(metadata.to_json())

    assert payload["aspectRatio"] == 2.0
    assert payload["sources"][0]["mimeType"] == "image/webp"
    assert payload["sources"][0]["sizes"] == "100vw"
    assert ImageMetadata.from_json(metadata.to_json()) == metadata
