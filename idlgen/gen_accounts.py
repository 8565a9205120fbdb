"""
Accounts codegen: discriminator constants and tag-checking wrappers for
program-owned account data.
"""

from typing import Dict, List

from .codegen import CodegenModule, join_blocks
from .discriminator import account_discriminator, bytes_literal
from .idl_ast import EnumKind, NamedAccount, StructKind
from .naming import PYTHON_KEYWORDS, check_names, to_shouty_snake_case
from .type_resolver import defined_type_name, zero_copy_class_name
from .gen_typedefs import kind_blocks, kind_defined_references, zero_copy_blocks


def account_discm_const(name: str) -> str:
    return f"{to_shouty_snake_case(name)}_ACCOUNT_DISCM"


class AccountsCodegenModule(CodegenModule):
    name = "accounts"

    def discriminator(self, account: NamedAccount) -> bytes:
        if account.discriminator is not None:
            return account.discriminator
        return account_discriminator(account.name)

    def wrapper_lines(self, account: NamedAccount, zero_copy: bool) -> List[str]:
        class_name = defined_type_name(account.name)
        const = account_discm_const(account.name)
        self.imports.add("dataclasses", "dataclass")
        self.imports.add_runtime("BorshReader", "BorshWriter", "DISCRIMINATOR_LEN", "DiscriminatorMismatch")

        lines = [
            "@dataclass",
            f"class {class_name}Account:",
            f'    """{class_name} account data prefixed by its 8-byte discriminator."""',
            f"    value: {class_name}",
            "",
            "    @classmethod",
            f"    def deserialize(cls, buf: bytes) -> {class_name}Account:",
            "        reader = BorshReader(buf)",
            "        discm = reader.read(DISCRIMINATOR_LEN)",
            f"        if discm != {const}:",
            f"            raise DiscriminatorMismatch({const}, discm)",
            f"        return cls({class_name}.decode(reader))",
            "",
            "    def serialize(self, writer: BorshWriter) -> None:",
            f"        writer.write({const})",
            "        self.value.serialize(writer)",
            "",
            "    def to_bytes(self) -> bytes:",
            "        writer = BorshWriter()",
            "        self.serialize(writer)",
            "        return writer.getvalue()",
        ]
        if zero_copy:
            self.imports.add_runtime("zero_copy_view")
            lines.extend([
                "",
                "    @staticmethod",
                "    def view(buf):",
                '        """Check the discriminator, then view the rest of ``buf`` in place."""',
                "        discm = bytes(buf[:DISCRIMINATOR_LEN])",
                f"        if discm != {const}:",
                f"            raise DiscriminatorMismatch({const}, discm)",
                f"        return zero_copy_view({zero_copy_class_name(account.name)}, "
                "memoryview(buf)[DISCRIMINATOR_LEN:])",
            ])
        return lines

    def gen_body(self) -> str:
        blocks = []
        zero_copy: Dict[str, StructKind] = {}
        referenced = set()
        check_names(
            "accounts",
            [(a.name, defined_type_name(a.name)) for a in self.idl.accounts or ()],
            PYTHON_KEYWORDS,
        )
        local = {defined_type_name(a.name) for a in self.idl.accounts or () if a.kind is not None}

        for account in self.idl.accounts or ():
            class_name = defined_type_name(account.name)
            is_zero_copy = self.is_zero_copy(account.name)
            kind = account.kind if account.kind is not None else self.type_kind(account.name)
            if is_zero_copy and isinstance(kind, EnumKind):
                self.report.info("enums have no zero-copy view", account.name)
                is_zero_copy = False

            blocks.append([f"{account_discm_const(account.name)} = {bytes_literal(self.discriminator(account))}"])
            if account.kind is not None:
                blocks.extend(kind_blocks(account.name, account.kind, account.docs, self.imports, is_zero_copy))
                referenced |= kind_defined_references(account.kind)
                if is_zero_copy:
                    zero_copy[account.name] = account.kind
            else:
                # Layout declared in the type list
                self.import_defined([class_name])
                if is_zero_copy:
                    self.import_defined([class_name], suffix="ZeroCopy")
            blocks.append(self.wrapper_lines(account, is_zero_copy))

        self.import_defined(sorted(referenced - local))
        blocks.extend(zero_copy_blocks(zero_copy, self.imports, self))
        return join_blocks(blocks)
