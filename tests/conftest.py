"""
tests/conftest.py
Shared fixtures for the blockschema test suite.

Raw package declarations are plain dicts, exactly as they would come out
of a YAML file; tests build compilers and collections from them.  File
I/O happens inside pytest's tmp_path directories.
"""

from __future__ import annotations

import copy
import logging
import pathlib
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest
import yaml

from blockschema.compiler import TableDefinitionCompiler
from blockschema.models import CompilerConfig


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "content_blocks_example.yaml"


# ---------------------------------------------------------------------------
# Logging isolation (the CLI reconfigures the package logger)
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_package_logger() -> Iterator[None]:
    package_logger = logging.getLogger("blockschema")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate


# ---------------------------------------------------------------------------
# Example file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_dict() -> Dict[str, Any]:
    """Load content_blocks_example.yaml once per session."""
    assert EXAMPLE_PATH.exists(), (
        f"Example declarations not found at {EXAMPLE_PATH}. "
        "Make sure content_blocks_example.yaml is in the project root."
    )
    with open(EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def example_dict(raw_example_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_example_dict)


@pytest.fixture()
def example_packages(example_dict: Dict[str, Any]) -> List[Dict[str, Any]]:
    return example_dict["contentBlocks"]


# ---------------------------------------------------------------------------
# Package declaration fixtures
# ---------------------------------------------------------------------------


def make_package(
    name: str,
    fields: Optional[List[Dict[str, Any]]] = None,
    **yaml_extra: Any,
) -> Dict[str, Any]:
    """Raw package declaration with empty icon metadata."""
    block: Dict[str, Any] = {"fields": fields if fields is not None else []}
    block.update(yaml_extra)
    return {
        "composerName": name,
        "icon": "",
        "iconProvider": "",
        "yaml": block,
    }


@pytest.fixture()
def package_factory() -> Callable[..., Dict[str, Any]]:
    return make_package


@pytest.fixture()
def simple_package() -> Dict[str, Any]:
    """One package, two plain fields."""
    return make_package(
        "foo/bar",
        [
            {"identifier": "header", "type": "Text"},
            {"identifier": "bodytext", "type": "Textarea", "properties": {"rows": 5}},
        ],
        group="common",
        typeField="CType",
    )


@pytest.fixture()
def nested_package() -> Dict[str, Any]:
    """A collection two levels deep: root → slides → links."""
    return make_package(
        "foo/slider",
        [
            {
                "identifier": "slides",
                "type": "Collection",
                "properties": {
                    "fields": [
                        {"identifier": "image", "type": "Image"},
                        {
                            "identifier": "links",
                            "type": "Collection",
                            "properties": {
                                "fields": [
                                    {"identifier": "url", "type": "Link"},
                                ]
                            },
                        },
                    ]
                },
            }
        ],
    )


@pytest.fixture()
def parent_field_packages() -> List[Dict[str, Any]]:
    """Two packages nesting content elements inside the root table itself."""
    return [
        make_package(
            "foo/bar",
            [
                {
                    "identifier": "nested_content",
                    "type": "Collection",
                    "foreign_table": "tt_content",
                }
            ],
            table="tt_content",
            typeField="CType",
        ),
        make_package(
            "t3ce/example",
            [
                {
                    "identifier": "nested_content2",
                    "type": "Collection",
                    "foreign_table": "tt_content",
                    "foreign_field": "alternative_foreign_field",
                }
            ],
            table="tt_content",
            typeField="CType",
        ),
    ]


# ---------------------------------------------------------------------------
# Compiler fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> CompilerConfig:
    return CompilerConfig()


@pytest.fixture()
def compiler(config: CompilerConfig) -> TableDefinitionCompiler:
    return TableDefinitionCompiler(config)


@pytest.fixture()
def example_yaml_path(example_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the example declarations to a temporary YAML file."""
    path = tmp_path / "content_blocks.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(example_dict, fh, default_flow_style=False, sort_keys=False)
    return path
