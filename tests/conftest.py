"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from efis_checklists.config.settings import settings
from efis_checklists.data.models import (
    Checklist, ChecklistFile, ChecklistFileMetadata, ChecklistFormat, ChecklistGroup,
    ChecklistGroupCategory, ChecklistItem, ChecklistItemType,
)


@pytest.fixture(scope="session")
def project_root_dir():
    """Provide the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point the shared settings at a temporary config directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(settings, "config_dir", config_dir)
    monkeypatch.setattr(settings, "config_file", config_dir / "settings.json")
    return config_dir


def item(item_type, challenge="", response="", indent=0, centered=False):
    """Shorthand for building checklist items."""
    return ChecklistItem(
        type=item_type,
        challenge_text=challenge,
        response_text=response,
        indent=indent,
        centered=centered,
    )


@pytest.fixture
def sample_file():
    """A file using every item type, two groups and full metadata."""
    return ChecklistFile(
        name="Sample",
        format=ChecklistFormat.JSON,
        groups=[
            ChecklistGroup(
                name="Normal",
                category=ChecklistGroupCategory.NORMAL,
                checklists=[
                    Checklist(name="Preflight", items=[
                        item(ChecklistItemType.TITLE, "Cabin"),
                        item(ChecklistItemType.CHALLENGE_RESPONSE, "Parking brake", "SET", indent=1),
                        item(ChecklistItemType.CHALLENGE_ONLY, "Doors closed", indent=1),
                        item(ChecklistItemType.NOTE, "Check seat belts", indent=2),
                        item(ChecklistItemType.NOTE, ""),
                        item(ChecklistItemType.CAUTION, "Hot engine"),
                        item(ChecklistItemType.TITLE, "Checklist complete", centered=True),
                    ]),
                    Checklist(name="Before takeoff", items=[
                        item(ChecklistItemType.CHALLENGE_RESPONSE, "Flaps", "10 DEG"),
                    ]),
                ],
            ),
            ChecklistGroup(
                name="Emergency",
                category=ChecklistGroupCategory.EMERGENCY,
                checklists=[
                    Checklist(name="Engine fire", items=[
                        item(ChecklistItemType.WARNING, "Land immediately"),
                        item(ChecklistItemType.CHALLENGE_RESPONSE, "Mixture", "IDLE CUTOFF"),
                    ]),
                ],
            ),
        ],
        metadata=ChecklistFileMetadata(
            aircraft_registration="N12345",
            make_model="Cessna 172S",
            copyright="Example Aero Club",
        ),
    )


@pytest.fixture
def uppercase_file():
    """An all-uppercase file for formats that force uppercase output."""
    return ChecklistFile(
        name="N12345",
        format=ChecklistFormat.AFS_DYNON,
        groups=[
            ChecklistGroup(name="MAIN GROUP", checklists=[
                Checklist(name="PREFLIGHT", items=[
                    item(ChecklistItemType.TITLE, "CABIN"),
                    item(ChecklistItemType.CHALLENGE_RESPONSE, "PARKING BRAKE", "SET", indent=1),
                    item(ChecklistItemType.CHALLENGE_ONLY, "DOORS CLOSED", indent=1),
                    item(ChecklistItemType.NOTE, "CHECK SEAT BELTS", indent=2),
                    item(ChecklistItemType.NOTE, ""),
                    item(ChecklistItemType.CAUTION, "HOT ENGINE"),
                    item(ChecklistItemType.TITLE, "DONE", centered=True),
                ]),
                Checklist(name="BEFORE TAKEOFF", items=[
                    item(ChecklistItemType.CHALLENGE_RESPONSE, "FLAPS", "10 DEG"),
                ]),
            ]),
            ChecklistGroup(name="EMERGENCY", checklists=[
                Checklist(name="ENGINE FIRE", items=[
                    item(ChecklistItemType.WARNING, "LAND IMMEDIATELY"),
                    item(ChecklistItemType.CHALLENGE_RESPONSE, "MIXTURE", "IDLE CUTOFF"),
                ]),
            ]),
        ],
        metadata=ChecklistFileMetadata(
            aircraft_registration="N12345",
            make_model="CESSNA 172S",
            copyright="EXAMPLE AERO CLUB",
        ),
    )
