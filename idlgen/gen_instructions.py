"""
Instruction codegen.

For every instruction the generated module declares, in this order:

    X_IX_ACCOUNTS_LEN                      number of flattened accounts
    XAccounts / XKeys                      account handles and their keys
    X_IX_DISCM                             8-byte instruction tag
    XIxArgs / XIxData                      Borsh args and tagged payload
    x_ix[_with_program_id]                 Instruction builders
    x_invoke[_signed][_with_program_id]    dispatch wrappers
    x_verify_account_keys                  key check
    x_verify_*_privileges                  writable / signer checks

Account, key and privilege artifacts are only emitted when the instruction
declares accounts, args artifacts only when it declares args. Account order
is always the flattened order.
"""

from typing import List

from .account_flattener import FlattenedAccount, check_unique, flatten_accounts
from .codegen import CodegenModule, ImportSet, docstring_lines, join_blocks, section_banner
from .diagnostics import GenerationReport
from .discriminator import bytes_literal, instruction_discriminator
from .idl_ast import NamedInstruction, StructKind
from .naming import check_names, to_pascal_case, to_shouty_snake_case, to_snake_case
from .gen_typedefs import struct_lines
from .type_resolver import defined_references


class InstructionCodegen:
    """Emits the declarations of one instruction."""

    def __init__(self, ix: NamedInstruction, imports: ImportSet, report: GenerationReport):
        self.ix = ix
        self.imports = imports
        self.report = report

        self.accounts: List[FlattenedAccount] = flatten_accounts(ix.accounts)
        check_unique(ix.name, self.accounts)

        self.pascal = to_pascal_case(ix.name)
        self.snake = to_snake_case(ix.name)
        self.shouty = to_shouty_snake_case(ix.name)
        self.discm = instruction_discriminator(ix.name)
        if ix.discriminator is not None and ix.discriminator != self.discm:
            report.warn(
                f"declared discriminator {list(ix.discriminator)} differs from "
                f"derived {list(self.discm)}; using the derived one",
                ix.name,
            )

    # Names of the generated artifacts
    @property
    def accounts_len_const(self):
        return f"{self.shouty}_IX_ACCOUNTS_LEN"

    @property
    def discm_const(self):
        return f"{self.shouty}_IX_DISCM"

    @property
    def accounts_class(self):
        return f"{self.pascal}Accounts"

    @property
    def keys_class(self):
        return f"{self.pascal}Keys"

    @property
    def args_class(self):
        return f"{self.pascal}IxArgs"

    @property
    def data_class(self):
        return f"{self.pascal}IxData"

    @property
    def writables(self):
        return [a for a in self.accounts if a.writable]

    @property
    def signers(self):
        return [a for a in self.accounts if a.signer]

    def _params(self, *params: str) -> List[str]:
        """Parameters of the builders and wrappers, with or without accounts/args."""
        out = list(params)
        if self.ix.has_accounts:
            out.append(f"accounts: {self.accounts_class}")
        if self.ix.has_args:
            out.append(f"args: {self.args_class}")
        return out

    def _signature(self, name: str, params: List[str], returns: str = "") -> List[str]:
        ret = f" -> {returns}" if returns else ""
        one_line = f"def {name}({', '.join(params)}){ret}:"
        if len(one_line) <= 88:
            return [one_line]
        return [f"def {name}("] + [f"    {p}," for p in params] + [f"){ret}:"]

    # =========================================================================
    # Accounts and keys
    # =========================================================================

    def write_accounts_len(self) -> List[str]:
        return [f"{self.accounts_len_const} = {len(self.accounts)}"]

    def write_accounts_struct(self) -> List[str]:
        self.imports.add("dataclasses", "dataclass")
        self.imports.add("typing", "Sequence", "Tuple")
        self.imports.add_runtime("AccountInfo")
        lines = ["@dataclass(frozen=True)", f"class {self.accounts_class}:"]
        lines.extend(docstring_lines([f"Account handles of {self.ix.name}, in instruction order."]))
        lines.extend(f"    {a.field_name}: AccountInfo" for a in self.accounts)
        lines.extend([
            "",
            "    @classmethod",
            f"    def from_account_infos(cls, infos: Sequence[AccountInfo]) -> {self.accounts_class}:",
            f"        if len(infos) != {self.accounts_len_const}:",
            "            raise ValueError(",
            f'                f"expected {{{self.accounts_len_const}}} accounts, got {{len(infos)}}"',
            "            )",
        ])
        lines.extend(self._construct("infos[{index}]"))
        lines.extend([
            "",
            "    def to_account_infos(self) -> Tuple[AccountInfo, ...]:",
        ])
        lines.extend(self._tuple_of("self.{field}"))
        return lines

    def write_keys_struct(self) -> List[str]:
        self.imports.add("typing", "List", "Sequence", "Tuple")
        self.imports.add_runtime("AccountMeta", "Pubkey")
        lines = ["@dataclass(frozen=True)", f"class {self.keys_class}:"]
        lines.extend(f"    {a.field_name}: Pubkey" for a in self.accounts)
        if self.accounts:
            lines.append("")
        lines.extend([
            "    @classmethod",
            f"    def from_accounts(cls, accounts: {self.accounts_class}) -> {self.keys_class}:",
        ])
        lines.extend(self._construct("accounts.{field}.key"))
        lines.extend([
            "",
            "    @classmethod",
            f"    def from_pubkeys(cls, pubkeys: Sequence[Pubkey]) -> {self.keys_class}:",
            f"        if len(pubkeys) != {self.accounts_len_const}:",
            "            raise ValueError(",
            f'                f"expected {{{self.accounts_len_const}}} pubkeys, got {{len(pubkeys)}}"',
            "            )",
        ])
        lines.extend(self._construct("pubkeys[{index}]"))
        lines.extend([
            "",
            "    def to_account_metas(self) -> Tuple[AccountMeta, ...]:",
        ])
        if self.accounts:
            lines.append("        return (")
            for a in self.accounts:
                lines.append("            AccountMeta(")
                lines.append(f"                pubkey=self.{a.field_name},")
                lines.append(f"                is_signer={a.signer},")
                lines.append(f"                is_writable={a.writable},")
                lines.append("            ),")
            lines.append("        )")
        else:
            lines.append("        return ()")
        lines.extend([
            "",
            "    def to_account_meta_list(self) -> List[AccountMeta]:",
            "        return list(self.to_account_metas())",
        ])
        return lines

    def _construct(self, value: str) -> List[str]:
        if not self.accounts:
            return ["        return cls()"]
        lines = ["        return cls("]
        for a in self.accounts:
            v = value.format(index=a.index, field=a.field_name)
            lines.append(f"            {a.field_name}={v},")
        lines.append("        )")
        return lines

    def _tuple_of(self, value: str) -> List[str]:
        if not self.accounts:
            return ["        return ()"]
        lines = ["        return ("]
        lines.extend(f"            {value.format(field=a.field_name)}," for a in self.accounts)
        lines.append("        )")
        return lines

    # =========================================================================
    # Payload
    # =========================================================================

    def write_discm(self) -> List[str]:
        return [f"{self.discm_const} = {bytes_literal(self.discm)}"]

    def write_args_struct(self) -> List[str]:
        return struct_lines(self.args_class, StructKind(self.ix.args), (), self.imports)

    def write_data_struct(self) -> List[str]:
        self.imports.add("dataclasses", "dataclass")
        self.imports.add_runtime("BorshReader", "BorshWriter", "DISCRIMINATOR_LEN", "DiscriminatorMismatch")
        lines = ["@dataclass", f"class {self.data_class}:"]
        lines.extend(docstring_lines([f"Payload of {self.ix.name}: {self.discm_const} followed by the args."]))
        if self.ix.has_args:
            lines.append(f"    args: {self.args_class}")
        lines.extend([
            "",
            "    @classmethod",
            f"    def deserialize(cls, buf: bytes) -> {self.data_class}:",
            "        reader = BorshReader(buf)",
            "        discm = reader.read(DISCRIMINATOR_LEN)",
            f"        if discm != {self.discm_const}:",
            f"            raise DiscriminatorMismatch({self.discm_const}, discm)",
        ])
        if self.ix.has_args:
            lines.append(f"        return cls({self.args_class}.decode(reader))")
        else:
            lines.append("        return cls()")
        lines.extend([
            "",
            "    def serialize(self, writer: BorshWriter) -> None:",
            f"        writer.write({self.discm_const})",
        ])
        if self.ix.has_args:
            lines.append("        self.args.serialize(writer)")
        lines.extend([
            "",
            "    def to_bytes(self) -> bytes:",
            "        writer = BorshWriter()",
            "        self.serialize(writer)",
            "        return writer.getvalue()",
        ])
        return lines

    # =========================================================================
    # Builders and dispatch wrappers
    # =========================================================================

    def write_ix_fn(self) -> List[List[str]]:
        self.imports.add_runtime("Instruction", "Pubkey")
        self.imports.add(".program_id", "PROGRAM_ID")
        with_id = f"{self.snake}_ix_with_program_id"

        params = ["program_id: Pubkey"]
        if self.ix.has_accounts:
            params.append(f"keys: {self.keys_class}")
        if self.ix.has_args:
            params.append(f"args: {self.args_class}")
        lines = self._signature(with_id, params, "Instruction")
        if self.ix.has_accounts:
            lines.append("    metas = keys.to_account_meta_list()")
        data = f"{self.data_class}(args)" if self.ix.has_args else f"{self.data_class}()"
        lines.extend([
            f"    data = {data}",
            "    return Instruction(",
            "        program_id=program_id,",
            f"        accounts={'metas' if self.ix.has_accounts else '[]'},",
            "        data=data.to_bytes(),",
            "    )",
        ])

        call_args = ["PROGRAM_ID"] + [p.split(":")[0] for p in params[1:]]
        short = self._signature(f"{self.snake}_ix", params[1:], "Instruction")
        short.append(f"    return {with_id}({', '.join(call_args)})")
        return [lines, short]

    def _invoke_fns(self, suffix: str, method: str, extra: List[str]) -> List[List[str]]:
        self.imports.add_runtime("Dispatcher", "Pubkey")
        name = f"{self.snake}_invoke{suffix}"
        with_id = f"{name}_with_program_id"
        params = self._params("dispatcher: Dispatcher", "program_id: Pubkey") + extra

        lines = self._signature(with_id, params)
        ix_args = ["program_id"]
        if self.ix.has_accounts:
            lines.append(f"    keys = {self.keys_class}.from_accounts(accounts)")
            ix_args.append("keys")
        if self.ix.has_args:
            ix_args.append("args")
        lines.append(f"    ix = {self.snake}_ix_with_program_id({', '.join(ix_args)})")
        infos = "accounts.to_account_infos()" if self.ix.has_accounts else "()"
        dispatch_args = ["ix", infos] + [p.split(":")[0] for p in extra]
        lines.append(f"    return dispatcher.{method}({', '.join(dispatch_args)})")

        short_params = [p for p in params if not p.startswith("program_id")]
        call_args = [p.split(":")[0] for p in short_params]
        call_args.insert(1, "PROGRAM_ID")
        short = self._signature(name, short_params)
        short.append(f"    return {with_id}({', '.join(call_args)})")
        return [lines, short]

    def write_invoke_fn(self) -> List[List[str]]:
        return self._invoke_fns("", "invoke", [])

    def write_invoke_signed_fn(self) -> List[List[str]]:
        self.imports.add("typing", "Sequence")
        return self._invoke_fns("_signed", "invoke_signed", ["signers_seeds: Sequence[Sequence[bytes]]"])

    # =========================================================================
    # Verification
    # =========================================================================

    def write_verify_account_keys_fn(self) -> List[str]:
        self.imports.add_runtime("AccountKeyMismatch")
        lines = self._signature(
            f"{self.snake}_verify_account_keys",
            [f"accounts: {self.accounts_class}", f"keys: {self.keys_class}"],
            "None",
        )
        if not self.accounts:
            lines.append("    return None")
            return lines
        lines.append("    for actual, expected in (")
        lines.extend(
            f"        (accounts.{a.field_name}.key, keys.{a.field_name}),"
            for a in self.accounts
        )
        lines.extend([
            "    ):",
            "        if actual != expected:",
            "            raise AccountKeyMismatch(actual, expected)",
        ])
        return lines

    def _verify_privilege_fn(self, kind: str, accounts: List[FlattenedAccount], flag: str, error: str) -> List[str]:
        self.imports.add_runtime("AccountPrivilegeError", error)
        var = f"should_be_{kind}"
        lines = self._signature(
            f"{self.snake}_verify_{kind}_privileges",
            [f"accounts: {self.accounts_class}"],
            "None",
        )
        lines.append(f"    for {var} in (")
        lines.extend(f"        accounts.{a.field_name}," for a in accounts)
        lines.extend([
            "    ):",
            f"        if not {var}.{flag}:",
            f"            raise AccountPrivilegeError({var}, {error}())",
        ])
        return lines

    def write_verify_writable_privileges_fn(self) -> List[str]:
        return self._verify_privilege_fn("writable", self.writables, "is_writable", "InvalidAccountData")

    def write_verify_signer_privileges_fn(self) -> List[str]:
        return self._verify_privilege_fn("signer", self.signers, "is_signer", "MissingRequiredSignature")

    def write_verify_account_privileges_fn(self) -> List[str]:
        lines = self._signature(
            f"{self.snake}_verify_account_privileges",
            [f"accounts: {self.accounts_class}"],
            "None",
        )
        if self.writables:
            lines.append(f"    {self.snake}_verify_writable_privileges(accounts)")
        if self.signers:
            lines.append(f"    {self.snake}_verify_signer_privileges(accounts)")
        return lines

    # =========================================================================

    def blocks(self) -> List[List[str]]:
        blocks = [section_banner(self.pascal)[:-1]]
        if self.ix.has_accounts:
            blocks[0].extend(["", *self.write_accounts_len()])
            blocks.append(self.write_accounts_struct())
            blocks.append(self.write_keys_struct())
        blocks.append(self.write_discm())
        if self.ix.has_args:
            blocks.append(self.write_args_struct())
        blocks.append(self.write_data_struct())
        blocks.extend(self.write_ix_fn())
        blocks.extend(self.write_invoke_fn())
        blocks.extend(self.write_invoke_signed_fn())
        if self.ix.has_accounts:
            blocks.append(self.write_verify_account_keys_fn())
        if self.writables:
            blocks.append(self.write_verify_writable_privileges_fn())
        if self.signers:
            blocks.append(self.write_verify_signer_privileges_fn())
        if self.writables or self.signers:
            blocks.append(self.write_verify_account_privileges_fn())
        return blocks


class InstructionsCodegenModule(CodegenModule):
    name = "instructions"

    def gen_body(self) -> str:
        blocks = []
        referenced = set()
        check_names(
            "instructions",
            [(ix.name, f"{to_snake_case(ix.name)}_ix") for ix in self.idl.instructions or ()],
        )
        for ix in self.idl.instructions or ():
            blocks.extend(InstructionCodegen(ix, self.imports, self.report).blocks())
            for arg in ix.args:
                referenced |= defined_references(arg.type)
        self.import_defined(sorted(referenced))
        return join_blocks(blocks)
