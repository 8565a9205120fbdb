"""
Errors codegen: the program's error codes as an IntEnum.
"""

import json

from .codegen import CodegenModule, join_blocks
from .naming import (
    check_names, conditional_pascal_case, python_identifier, to_pascal_case, to_shouty_snake_case,
)


# Attributes of the generated IntEnum an error variant must not replace
RESERVED_ERROR_ATTRS = frozenset(("message", "from_code", "to_program_error", "name", "value", "mro"))


def error_enum_name(program_name: str) -> str:
    return f"{to_pascal_case(program_name)}Error"


class ErrorsCodegenModule(CodegenModule):
    name = "errors"

    def gen_body(self) -> str:
        self.imports.add("enum", "IntEnum")
        self.imports.add_runtime("CustomProgramError")

        enum_name = error_enum_name(self.idl.program_name)
        table = f"_{to_shouty_snake_case(self.idl.program_name)}_ERROR_MESSAGES"
        variants = [
            (python_identifier(conditional_pascal_case(e.name)), e.msg if e.msg is not None else e.name)
            for e in self.idl.errors or ()
        ]
        check_names(
            f"errors of {self.idl.program_name}",
            [(e.name, name) for e, (name, _) in zip(self.idl.errors or (), variants)],
            RESERVED_ERROR_ATTRS,
        )

        enum = [
            f"class {enum_name}(IntEnum):",
            f'    """Error codes of the {self.idl.program_name} program; the value is the custom code."""',
            "",
        ]
        enum.extend(f"    {name} = {code}" for code, (name, _) in enumerate(variants))
        if variants:
            enum.append("")
        enum.extend([
            "    @property",
            "    def message(self) -> str:",
            f"        return {table}[self]",
            "",
            "    def __str__(self):",
            "        return self.message",
            "",
            "    @classmethod",
            f"    def from_code(cls, code: int) -> {enum_name}:",
            '        """Raises ValueError for a code this program does not declare."""',
            "        return cls(code)",
            "",
            "    def to_program_error(self) -> CustomProgramError:",
            "        return CustomProgramError(int(self), self.message)",
        ])

        messages = [f"{table} = {{"]
        # JSON string literals are valid Python string literals
        messages.extend(
            f"    {enum_name}.{name}: {json.dumps(msg, ensure_ascii=False)}," for name, msg in variants
        )
        messages.append("}")
        return join_blocks([enum, messages])
