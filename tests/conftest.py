"""Shared test fixtures for Provenant."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from provenant.core.artifact_registry import ArtifactRegistry
from provenant.core.authentication_registry import AuthenticationRegistry
from provenant.core.host import LedgerHost
from provenant.core.receipt_journal import ReceiptJournal
from provenant.core.state_store import InMemoryStateStore
from provenant.models.context import CallContext

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
OTHER = "ST2PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
THIRD = "ST3PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
BLOCK_HEIGHT = 100


@pytest.fixture
def admin() -> str:
    """The deploying identity (initial admin)."""
    return ADMIN


@pytest.fixture
def stranger() -> str:
    """An identity holding no role."""
    return OTHER


@pytest.fixture
def third() -> str:
    """A second identity holding no role."""
    return THIRD


@pytest.fixture
def store() -> InMemoryStateStore:
    """Provide a fresh in-memory state store."""
    return InMemoryStateStore()


@pytest.fixture
def artifacts(store: InMemoryStateStore) -> ArtifactRegistry:
    """Provide an ArtifactRegistry over the test store."""
    return ArtifactRegistry(store)


@pytest.fixture
def auth(store: InMemoryStateStore) -> AuthenticationRegistry:
    """Provide an AuthenticationRegistry deployed by ADMIN."""
    return AuthenticationRegistry(store, deployer=ADMIN)


@pytest.fixture
def receipts(tmp_path: Path) -> ReceiptJournal:
    """Provide a ReceiptJournal backed by a temp SQLite database."""
    return ReceiptJournal(tmp_path / "receipts.db")


@pytest.fixture
def host(store: InMemoryStateStore, receipts: ReceiptJournal) -> LedgerHost:
    """Provide a LedgerHost deployed by ADMIN at BLOCK_HEIGHT."""
    return LedgerHost(
        store, deployer=ADMIN, receipts=receipts, genesis_block_height=BLOCK_HEIGHT
    )


@pytest.fixture
def ctx() -> Callable[..., CallContext]:
    """Factory fixture: build a CallContext, defaulting to ADMIN at BLOCK_HEIGHT."""

    def _factory(caller: str = ADMIN, block_height: int = BLOCK_HEIGHT) -> CallContext:
        return CallContext(caller=caller, block_height=block_height)

    return _factory


@pytest.fixture
def vase() -> dict[str, Any]:
    """Descriptive fields for the canonical test artifact."""
    return {
        "name": "Ancient Vase",
        "description": "A ceramic vase from the Ming Dynasty",
        "origin_location": "China",
        "origin_date": "1500 CE",
        "creator": "Unknown",
        "image_uri": "https://example.com/vase.jpg",
    }


@pytest.fixture
def vase_update() -> dict[str, Any]:
    """Replacement descriptive fields for the canonical test artifact."""
    return {
        "name": "Ming Dynasty Vase",
        "description": "A rare ceramic vase from the Ming Dynasty",
        "origin_location": "China, Jingdezhen",
        "origin_date": "1505-1521 CE",
        "creator": "Imperial Workshop",
        "image_uri": "https://example.com/vase-updated.jpg",
    }


@pytest.fixture
def attestation() -> dict[str, Any]:
    """A valid attestation payload (artifact 1, authentic, 95%)."""
    return {
        "artifact_id": 1,
        "is_authentic": True,
        "confidence_score": 95,
        "methodology": "Carbon dating, spectroscopy, and stylistic analysis",
        "verifier_credentials": "PhD in Archaeology, 20 years experience",
        "report_uri": "https://example.com/reports/artifact1.pdf",
    }


@pytest.fixture
def dr_smith() -> dict[str, Any]:
    """Verifier roster fields."""
    return {
        "name": "Dr. Smith",
        "organization": "Museum of Ancient History",
        "credentials": "PhD in Archaeology, 20 years experience in artifact authentication",
    }
