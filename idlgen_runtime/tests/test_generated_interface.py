"""
End-to-end tests: generate interface packages from examples/idl, import
them and drive the generated code against the runtime.
"""

import ctypes
import hashlib

import pytest

from idlgen_runtime import (
    SYSTEM_PROGRAM_ID, AccountInfo, AccountKeyMismatch, AccountMeta, AccountPrivilegeError,
    CustomProgramError, DecodeError, DiscriminatorMismatch, EncodeError, InvalidAccountData,
    MissingRequiredSignature, Pubkey, RecordingDispatcher,
)


def key(n: int) -> Pubkey:
    return Pubkey(bytes([n]) * 32)


def sighash(namespace: str, name: str) -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode()).digest()[:8]


# =============================================================================
# transfer: the minimal interface
# =============================================================================

class TestTransfer:

    def test_program_id_defaults_to_system_program(self, transfer_interface):
        assert transfer_interface.PROGRAM_ID == SYSTEM_PROGRAM_ID

    def test_only_instruction_section(self, transfer_interface):
        assert not hasattr(transfer_interface, "TransferError")
        assert transfer_interface.TRANSFER_IX_ACCOUNTS_LEN == 2

    def test_instruction_data(self, transfer_interface):
        t = transfer_interface
        assert t.TRANSFER_IX_DISCM == sighash("global", "transfer")
        data = t.TransferIxData(t.TransferIxArgs(amount=500)).to_bytes()
        assert data == t.TRANSFER_IX_DISCM + (500).to_bytes(8, "little")

    def test_ix_metas(self, transfer_interface):
        t = transfer_interface
        keys = t.TransferKeys(from_=key(1), to=key(2))
        ix = t.transfer_ix(keys, t.TransferIxArgs(amount=1))
        assert ix.program_id == SYSTEM_PROGRAM_ID
        assert ix.accounts == [
            AccountMeta(key(1), is_signer=True, is_writable=True),
            AccountMeta(key(2), is_signer=False, is_writable=True),
        ]

    def test_ix_with_program_id(self, transfer_interface):
        t = transfer_interface
        keys = t.TransferKeys.from_pubkeys([key(1), key(2)])
        ix = t.transfer_ix_with_program_id(key(9), keys, t.TransferIxArgs(amount=1))
        assert ix.program_id == key(9)

    def test_from_pubkeys_checks_length(self, transfer_interface):
        with pytest.raises(ValueError, match="expected 2 pubkeys"):
            transfer_interface.TransferKeys.from_pubkeys([key(1)])

    def test_data_roundtrip(self, transfer_interface):
        t = transfer_interface
        data = t.TransferIxData(t.TransferIxArgs(amount=2 ** 64 - 1))
        assert t.TransferIxData.deserialize(data.to_bytes()) == data

    def test_wrong_discriminator(self, transfer_interface):
        with pytest.raises(DiscriminatorMismatch) as exc:
            transfer_interface.TransferIxData.deserialize(bytes(16))
        assert exc.value.actual == bytes(8)

    def test_truncated_payload(self, transfer_interface):
        t = transfer_interface
        with pytest.raises(DecodeError):
            t.TransferIxData.deserialize(t.TRANSFER_IX_DISCM + b"\x01")


class TestTransferVerification:

    def accounts(self, transfer_interface, **flags):
        from_ = AccountInfo(key(1), is_signer=flags.get("from_signer", True),
                            is_writable=flags.get("from_writable", True))
        to = AccountInfo(key(2), is_writable=flags.get("to_writable", True))
        return transfer_interface.TransferAccounts(from_=from_, to=to)

    def test_all_privileges_present(self, transfer_interface):
        accounts = self.accounts(transfer_interface)
        transfer_interface.transfer_verify_account_privileges(accounts)

    def test_reports_first_non_writable(self, transfer_interface):
        accounts = self.accounts(transfer_interface, to_writable=False)
        with pytest.raises(AccountPrivilegeError) as exc:
            transfer_interface.transfer_verify_writable_privileges(accounts)
        assert exc.value.account is accounts.to
        assert isinstance(exc.value.error, InvalidAccountData)

    def test_missing_signer(self, transfer_interface):
        accounts = self.accounts(transfer_interface, from_signer=False)
        with pytest.raises(AccountPrivilegeError) as exc:
            transfer_interface.transfer_verify_signer_privileges(accounts)
        assert exc.value.account is accounts.from_
        assert isinstance(exc.value.error, MissingRequiredSignature)

    def test_writable_checked_before_signer(self, transfer_interface):
        accounts = self.accounts(transfer_interface, from_signer=False, to_writable=False)
        with pytest.raises(AccountPrivilegeError) as exc:
            transfer_interface.transfer_verify_account_privileges(accounts)
        assert isinstance(exc.value.error, InvalidAccountData)

    def test_account_keys(self, transfer_interface):
        t = transfer_interface
        accounts = self.accounts(t)
        t.transfer_verify_account_keys(accounts, t.TransferKeys.from_accounts(accounts))
        with pytest.raises(AccountKeyMismatch) as exc:
            t.transfer_verify_account_keys(accounts, t.TransferKeys(from_=key(1), to=key(3)))
        assert exc.value.actual == key(2)
        assert exc.value.expected == key(3)

    def test_account_infos_roundtrip(self, transfer_interface):
        t = transfer_interface
        accounts = self.accounts(t)
        infos = accounts.to_account_infos()
        assert infos == (accounts.from_, accounts.to)
        assert t.TransferAccounts.from_account_infos(infos) == accounts

    def test_from_account_infos_checks_length(self, transfer_interface):
        with pytest.raises(ValueError, match="expected 2 accounts"):
            transfer_interface.TransferAccounts.from_account_infos([])

    def test_invoke(self, transfer_interface):
        t = transfer_interface
        accounts = self.accounts(t)
        dispatcher = RecordingDispatcher()
        t.transfer_invoke(dispatcher, accounts, t.TransferIxArgs(amount=3))
        call = dispatcher.last
        assert call.instruction.program_id == t.PROGRAM_ID
        assert call.instruction.data == t.TRANSFER_IX_DISCM + (3).to_bytes(8, "little")
        assert call.account_infos == [accounts.from_, accounts.to]
        assert call.signers_seeds is None


# =============================================================================
# swap_pool: groups, enums, errors, zero-copy accounts
# =============================================================================

class TestSwapInstructions:

    def test_program_id_from_address(self, swap_interface):
        assert str(swap_interface.PROGRAM_ID) == "CPMMoo8L3F4NbTegBCKVNunggL7H1ZpdTHKxQB5qKP1C"

    def test_known_discriminator(self, swap_interface):
        assert list(swap_interface.INITIALIZE_IX_DISCM) == [175, 175, 109, 31, 13, 152, 155, 237]

    def test_group_accounts_flattened(self, swap_interface):
        s = swap_interface
        assert s.INITIALIZE_IX_ACCOUNTS_LEN == 8
        keys = s.InitializeKeys.from_pubkeys([key(i) for i in range(8)])
        assert keys.token_0_mint == key(3)
        assert keys.token_1_vault == key(6)
        metas = keys.to_account_metas()
        assert [m.is_writable for m in metas] == [True, False, True, False, True, False, True, False]
        assert [m.is_signer for m in metas] == [True, False, True] + [False] * 5

    def test_args_with_enums(self, swap_interface):
        s = swap_interface
        args = s.SwapBaseInputIxArgs(
            side=s.Side.Sell(),
            mode=s.SwapMode.ExactOut(field_0=10, field_1=20),
            limit=None,
            route=[key(4), key(5)],
        )
        data = s.SwapBaseInputIxData(args)
        decoded = s.SwapBaseInputIxData.deserialize(data.to_bytes())
        assert decoded == data
        assert isinstance(decoded.args.mode, s.SwapMode)

    def test_instruction_without_args(self, swap_interface):
        s = swap_interface
        assert not hasattr(s, "PauseIxArgs")
        ix = s.pause_ix(s.PauseKeys(authority=key(1), pool_state=key(2)))
        assert ix.data == s.PAUSE_IX_DISCM

    def test_instruction_without_accounts(self, swap_interface):
        s = swap_interface
        assert not hasattr(s, "CrankAccounts")
        assert not hasattr(s, "CrankKeys")
        assert not hasattr(s, "crank_verify_account_keys")
        ix = s.crank_ix(s.CrankIxArgs(slot=7))
        assert ix.accounts == []

    def test_invoke_without_accounts(self, swap_interface):
        s = swap_interface
        dispatcher = RecordingDispatcher()
        s.crank_invoke(dispatcher, s.CrankIxArgs(slot=1))
        assert dispatcher.last.account_infos == []

    def test_instruction_without_accounts_or_args(self, swap_interface):
        s = swap_interface
        ix = s.ping_ix()
        assert ix.accounts == []
        assert ix.data == s.PING_IX_DISCM
        assert s.PingIxData.deserialize(ix.data) == s.PingIxData()

    def test_invoke_signed(self, swap_interface):
        s = swap_interface
        accounts = s.PauseAccounts(
            authority=AccountInfo(key(1), is_signer=True),
            pool_state=AccountInfo(key(2), is_writable=True),
        )
        dispatcher = RecordingDispatcher()
        s.pause_invoke_signed(dispatcher, accounts, [[b"pool", b"\x01"]])
        assert dispatcher.last.signers_seeds == [[b"pool", b"\x01"]]
        assert dispatcher.last.instruction.program_id == s.PROGRAM_ID


class TestFirstFailureReported:

    def initialize_accounts(self, swap_interface, **flags):
        infos = [AccountInfo(key(i), **flags) for i in range(8)]
        return swap_interface.InitializeAccounts.from_account_infos(infos)

    def test_first_of_several_non_writable(self, swap_interface):
        accounts = self.initialize_accounts(swap_interface, is_signer=True)
        with pytest.raises(AccountPrivilegeError) as exc:
            swap_interface.initialize_verify_writable_privileges(accounts)
        assert exc.value.account is accounts.creator
        assert bytes(exc.value.account.key)[0] == 0

    def test_first_of_several_missing_signers(self, swap_interface):
        accounts = self.initialize_accounts(swap_interface, is_writable=True)
        with pytest.raises(AccountPrivilegeError) as exc:
            swap_interface.initialize_verify_signer_privileges(accounts)
        assert exc.value.account is accounts.creator
        assert isinstance(exc.value.error, MissingRequiredSignature)

    def test_later_signer_reported_once_first_passes(self, swap_interface):
        accounts = self.initialize_accounts(swap_interface, is_writable=True)
        accounts.creator.is_signer = True
        with pytest.raises(AccountPrivilegeError) as exc:
            swap_interface.initialize_verify_account_privileges(accounts)
        assert exc.value.account is accounts.pool_state


class TestSwapTypes:

    def test_unit_enum(self, swap_interface):
        s = swap_interface
        assert s.Side.Buy().to_bytes() == b"\x00"
        assert s.Side.from_bytes(b"\x01") == s.SideSell()

    def test_named_variant(self, swap_interface):
        s = swap_interface
        mode = s.SwapMode.ExactIn(amount_in=5, minimum_amount_out=4)
        data = mode.to_bytes()
        assert data == b"\x00" + (5).to_bytes(8, "little") + (4).to_bytes(8, "little")
        assert s.SwapMode.from_bytes(data) == mode

    def test_optional_pubkey_field(self, swap_interface):
        s = swap_interface
        config = s.AmmConfig(
            bump=255, disable_create_pool=False, index=3, trade_fee_rate=2500,
            protocol_owner=key(1), fee_receiver=key(2), padding=[0, 0, 0, 0],
        )
        assert s.AmmConfig.from_bytes(config.to_bytes()) == config

    def test_account_wrapper(self, swap_interface):
        s = swap_interface
        assert s.AMM_CONFIG_ACCOUNT_DISCM == sighash("account", "AmmConfig")
        config = s.AmmConfig(
            bump=1, disable_create_pool=True, index=0, trade_fee_rate=0,
            protocol_owner=key(1), fee_receiver=None, padding=[1, 2, 3, 4],
        )
        data = s.AmmConfigAccount(config).to_bytes()
        assert data[:8] == s.AMM_CONFIG_ACCOUNT_DISCM
        assert s.AmmConfigAccount.deserialize(data).value == config
        assert not hasattr(s.AmmConfigAccount, "view")

    def test_account_wrong_discriminator(self, swap_interface):
        with pytest.raises(DiscriminatorMismatch):
            swap_interface.AmmConfigAccount.deserialize(bytes(64))


class TestSwapErrors:

    def test_codes_follow_declaration_order(self, swap_interface):
        e = swap_interface.SwapPoolError
        assert [int(v) for v in e] == [0, 1, 2, 3]
        assert e.from_code(1) is e.InvalidFee

    def test_messages(self, swap_interface):
        e = swap_interface.SwapPoolError
        assert e.InvalidFee.message == "Fee rate is out of range"
        assert str(e.PoolPaused) == 'Pool is "paused"'
        assert e.ExceededSlippage.message == "ExceededSlippage"

    def test_unknown_code(self, swap_interface):
        with pytest.raises(ValueError):
            swap_interface.SwapPoolError.from_code(99)

    def test_to_program_error(self, swap_interface):
        error = swap_interface.SwapPoolError.PoolPaused.to_program_error()
        assert isinstance(error, CustomProgramError)
        assert error.code == 2
        assert str(error) == 'Pool is "paused"'


class TestZeroCopy:

    def pool_state(self, swap_interface):
        return swap_interface.PoolState(
            amm_config=key(1), token_0_vault=key(2), token_1_vault=key(3), status=1,
            lp_supply=10 ** 12, open_time=1700000000, padding=[0] * 8,
        )

    def test_view_sizes_match_borsh(self, swap_interface):
        s = swap_interface
        assert ctypes.sizeof(s.PoolStateZeroCopy) == 177
        assert ctypes.sizeof(s.ObservationZeroCopy) == 40
        assert ctypes.sizeof(s.ObservationStateZeroCopy) == 195
        assert len(self.pool_state(s).to_bytes()) == 177

    def test_struct_view(self, swap_interface):
        s = swap_interface
        view = s.PoolState.view(self.pool_state(s).to_bytes())
        assert view.lp_supply == 10 ** 12
        assert view.status == 1
        assert bytes(view.token_1_vault) == bytes(key(3))

    def test_account_view_shares_buffer(self, swap_interface):
        s = swap_interface
        buf = bytearray(s.PoolStateAccount(self.pool_state(s)).to_bytes())
        view = s.PoolStateAccount.view(buf)
        view.lp_supply = 7
        assert buf[8 + 97:8 + 105] == (7).to_bytes(8, "little")
        assert s.PoolStateAccount.deserialize(bytes(buf)).value.lp_supply == 7

    def test_account_view_checks_discriminator(self, swap_interface):
        with pytest.raises(DiscriminatorMismatch):
            swap_interface.PoolStateAccount.view(bytes(8 + 177))

    def test_view_needs_full_buffer(self, swap_interface):
        with pytest.raises(DecodeError):
            swap_interface.PoolState.view(bytes(10))

    def test_nested_view(self, swap_interface):
        s = swap_interface
        observations = [
            s.Observation(
                block_timestamp=i, cumulative_token_0_price_x32=2 ** 100 + i,
                cumulative_token_1_price_x32=i,
            )
            for i in range(4)
        ]
        state = s.ObservationState(
            initialized=True, observation_index=2, pool_id=key(8), observations=observations,
        )
        view = s.ObservationStateAccount.view(s.ObservationStateAccount(state).to_bytes())
        assert view.initialized is True
        assert view.observation_index == 2
        assert view.observations[3].block_timestamp == 3
        assert bytes(view.observations[1].cumulative_token_0_price_x32) == (2 ** 100 + 1).to_bytes(16, "little")


# =============================================================================
# vault: legacy layout, inline account kinds, zero-copy by configuration
# =============================================================================

class TestVault:

    def test_legacy_flags_and_groups(self, vault_interface):
        v = vault_interface
        assert v.DEPOSIT_IX_ACCOUNTS_LEN == 5
        keys = v.DepositKeys.from_pubkeys([key(i) for i in range(5)])
        assert keys.token_accounts_source == key(2)
        metas = keys.to_account_metas()
        assert metas[0] == AccountMeta(key(0), is_signer=True, is_writable=True)
        assert metas[4] == AccountMeta(key(4), is_signer=False, is_writable=False)

    def test_shorthand_arg_types(self, vault_interface):
        v = vault_interface
        data = v.DepositIxData(v.DepositIxArgs(amount=5, memo="hi"))
        assert v.DepositIxData.deserialize(data.to_bytes()) == data
        withdraw = v.WithdrawIxData(v.WithdrawIxArgs(amounts=[1, 2, 3, 4]))
        assert len(withdraw.to_bytes()) == 8 + 32

    def test_wrong_typed_args_raise_encode_error(self, vault_interface):
        v = vault_interface
        with pytest.raises(EncodeError):
            v.WithdrawIxData(v.WithdrawIxArgs(amounts=None)).to_bytes()
        with pytest.raises(EncodeError):
            v.DepositIxData(v.DepositIxArgs(amount="5", memo=None)).to_bytes()

    def test_configured_zero_copy_account(self, vault_interface):
        v = vault_interface
        state = v.VaultState(authority=key(5), balances=[1, 2, 3, 4], bump=254)
        data = v.VaultStateAccount(state).to_bytes()
        assert len(data) == 8 + 65
        view = v.VaultStateAccount.view(data)
        assert list(view.balances) == [1, 2, 3, 4]
        assert view.bump == 254

    def test_inline_account_with_defined_field(self, vault_interface):
        v = vault_interface
        depositor = v.Depositor(owner=key(1), deposits=[10, 20], label=None, tier=v.Tier.Premium())
        decoded = v.DepositorAccount.deserialize(v.DepositorAccount(depositor).to_bytes())
        assert decoded.value == depositor
        assert isinstance(decoded.value.tier, v.TierPremium)
        assert not hasattr(v.DepositorAccount, "view")

    def test_errors(self, vault_interface):
        e = vault_interface.VaultError
        assert e.InsufficientFunds.message == "Not enough funds"
        assert e.Unauthorized.to_program_error().code == 1
