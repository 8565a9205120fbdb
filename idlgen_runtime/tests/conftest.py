"""
Pytest configuration for runtime tests.

Generates interface packages from examples/idl into a temporary directory
and makes them importable, so the tests exercise generated code the way a
caller would.
"""

import importlib
import sys
from pathlib import Path

import pytest

from idlgen import GeneratorConfig, load_idl, write_package


EXAMPLES_DIR = Path(__file__).resolve().parents[2] / "examples" / "idl"

GENERATED = {
    "transfer_interface": ("transfer.json", GeneratorConfig()),
    "swap_pool_interface": ("swap.json", GeneratorConfig()),
    "vault_interface": ("vault.yaml", GeneratorConfig(zero_copy=frozenset({"VaultState"}))),
}


@pytest.fixture(scope="session")
def generated_dir(tmp_path_factory):
    """Regenerate every example package before the tests use them."""
    output_dir = tmp_path_factory.mktemp("generated")
    paths = []
    for package, (idl_name, config) in GENERATED.items():
        write_package(load_idl(EXAMPLES_DIR / idl_name), config, output_dir, idl_name)
        paths.append(str(output_dir / package))
    sys.path[:0] = paths
    yield output_dir
    for path in paths:
        sys.path.remove(path)
    for name in list(sys.modules):
        if name.split(".")[0] in GENERATED:
            del sys.modules[name]


@pytest.fixture(scope="session")
def transfer_interface(generated_dir):
    return importlib.import_module("transfer_interface")


@pytest.fixture(scope="session")
def swap_interface(generated_dir):
    return importlib.import_module("swap_pool_interface")


@pytest.fixture(scope="session")
def vault_interface(generated_dir):
    return importlib.import_module("vault_interface")
