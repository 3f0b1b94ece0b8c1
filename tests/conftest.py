"""Pytest configuration for Accessh tests."""

import json
import logging
from pathlib import Path

import pytest

from accessh.config import load_config
from accessh.locations import LocationTable, build_location_table

logging.getLogger("accessh").handlers.clear()

SAMPLE_CONFIG = {
    "settings": {
        "title": "zachl.tech directory",
        "description": "Where would you like to go",
        "SSH": {"enabled": False, "hostname": "127.0.0.1", "port": "23234"},
    },
    "locations": {
        "exit.zachl.tech": {
            "service": "Exit Node",
            "description": "Public exit node",
            "repo": "https://github.com/example/exit",
            "hostname": "exit.zachl.tech",
            "port": 2222,
        },
        "zachl.tech": {
            "service": "Homepage",
            "description": "Personal site over SSH",
            "repo": "https://github.com/example/site",
            "hostname": "zachl.tech",
            "port": 22,
        },
        "chat.zachl.tech": {
            "service": "Chat",
            "description": "Terminal chat room",
            "repo": "https://github.com/example/chat",
            "hostname": "chat.zachl.tech",
            "port": 2323,
        },
    },
}


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory and set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        path = str(item.fspath)
        if "/tests/integration/" in path:
            item.add_marker(pytest.mark.integration)
        elif "/tests/unit/" in path:
            item.add_marker(pytest.mark.unit)

        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")
    return path


@pytest.fixture
def table(config_file: Path) -> LocationTable:
    return build_location_table(load_config(config_file))
