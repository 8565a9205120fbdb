"""
Shared fixtures for generator tests.
"""

from pathlib import Path

import pytest

from idlgen.idl_loader import idl_from_document, load_idl


EXAMPLES_DIR = Path(__file__).resolve().parents[2] / "examples" / "idl"


def make_idl(**sections):
    """Minimal document with the given sections."""
    doc = {"metadata": {"name": sections.pop("name", "test_program"), "version": "0.1.0"}}
    doc.update(sections)
    return idl_from_document(doc)


@pytest.fixture
def examples_dir():
    return EXAMPLES_DIR


@pytest.fixture
def transfer_idl():
    return load_idl(EXAMPLES_DIR / "transfer.json")


@pytest.fixture
def swap_idl():
    return load_idl(EXAMPLES_DIR / "swap.json")


@pytest.fixture
def vault_idl():
    return load_idl(EXAMPLES_DIR / "vault.yaml")
