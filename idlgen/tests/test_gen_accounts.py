"""Tests for accounts code generation."""

import pytest

from idlgen.codegen import GeneratorConfig, generate_interface
from idlgen.diagnostics import DuplicateName
from idlgen.discriminator import account_discriminator, bytes_literal

from .conftest import make_idl


def accounts_module(idl, config=None):
    return generate_interface(idl, config).module("accounts")


class TestAccounts:

    def test_wrapper_for_type_list_layout(self, swap_idl):
        module = accounts_module(swap_idl)
        expected = bytes_literal(account_discriminator("AmmConfig"))
        assert f"AMM_CONFIG_ACCOUNT_DISCM = {expected}" in module.body
        assert "class AmmConfigAccount:" in module.body
        assert "    value: AmmConfig" in module.body
        # Layout lives in typedefs
        assert "class AmmConfig(BorshStruct)" not in module.body
        assert "from .typedefs import" in module.head
        assert "AmmConfig" in module.head

    def test_zero_copy_from_type_declaration(self, swap_idl):
        module = accounts_module(swap_idl)
        assert "PoolStateZeroCopy" in module.head
        assert "return zero_copy_view(PoolStateZeroCopy, memoryview(buf)[DISCRIMINATOR_LEN:])" in module.body
        # AmmConfig is not zero-copy
        assert "AmmConfigZeroCopy" not in module.head

    def test_inline_layout(self, vault_idl):
        module = accounts_module(vault_idl)
        assert "class VaultState(BorshStruct):" in module.body
        assert "class VaultStateAccount:" in module.body
        assert "class Depositor(BorshStruct):" in module.body
        # Depositor references Tier from the type list
        assert "from .typedefs import Tier" in module.head

    def test_inline_zero_copy(self, vault_idl):
        module = accounts_module(vault_idl, GeneratorConfig(zero_copy=frozenset({"VaultState"})))
        assert "import ctypes" in module.head
        assert "class VaultStateZeroCopy(ctypes.LittleEndianStructure):" in module.body
        assert "DepositorZeroCopy" not in module.body

    def test_declared_discriminator_used_as_is(self):
        idl = make_idl(accounts=[{"name": "Pool", "discriminator": [9, 9, 9, 9, 9, 9, 9, 9]}])
        module = accounts_module(idl)
        assert "POOL_ACCOUNT_DISCM = bytes([9, 9, 9, 9, 9, 9, 9, 9])" in module.body

    def test_deserialize_checks_discriminator(self, swap_idl):
        body = accounts_module(swap_idl).body
        assert "        if discm != POOL_STATE_ACCOUNT_DISCM:\n" in body
        assert "            raise DiscriminatorMismatch(POOL_STATE_ACCOUNT_DISCM, discm)" in body

    def test_colliding_account_names_abort(self):
        with pytest.raises(DuplicateName, match="accounts: pool_state, PoolState"):
            accounts_module(make_idl(accounts=[{"name": "pool_state"}, {"name": "PoolState"}]))
